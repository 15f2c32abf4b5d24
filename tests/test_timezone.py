import pytest

from maptaws.timezone import REGION_TIMEZONES, region_timezone


@pytest.mark.parametrize(
    "region,expected",
    [
        ("us-east-1", "America/New_York"),
        ("eu-west-1", "Europe/Dublin"),
        ("ap-northeast-3", "Asia/Tokyo"),
        ("sa-east-1", "America/Sao_Paulo"),
    ],
)
def test_known_regions(region, expected):
    assert region_timezone(region) == expected


def test_unknown_region_has_no_timezone():
    assert region_timezone("nowhere-1") is None


def test_every_region_maps_to_area_location_name():
    for region in REGION_TIMEZONES:
        zone = region_timezone(region)
        assert "/" in zone
        assert zone == REGION_TIMEZONES[region]