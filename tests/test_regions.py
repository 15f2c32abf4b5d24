import pytest

from maptaws.clients import AwsClients
from maptaws.regions import get_regions


class FakeEc2:
    def __init__(self, regions, error=None):
        self.regions = regions
        self.error = error
        self.requests = []

    def describe_regions(self, **kwargs):
        self.requests.append(kwargs)
        if self.error:
            raise self.error
        return {"Regions": [{"RegionName": name} for name in self.regions]}


def make_clients(ec2):
    return AwsClients(lambda service, region: ec2)


def test_get_regions_returns_names_in_order():
    ec2 = FakeEc2(["us-east-1", "eu-west-1", "ap-south-1"])
    assert get_regions(make_clients(ec2)) == ["us-east-1", "eu-west-1", "ap-south-1"]


def test_get_regions_filters_on_opt_in_status():
    ec2 = FakeEc2(["us-east-1"])
    get_regions(make_clients(ec2))
    assert ec2.requests == [
        {"Filters": [{"Name": "opt-in-status", "Values": ["opt-in-not-required"]}]}
    ]


def test_get_regions_empty():
    assert get_regions(make_clients(FakeEc2([]))) == []


def test_get_regions_propagates_errors():
    ec2 = FakeEc2([], error=RuntimeError("denied"))
    with pytest.raises(RuntimeError, match="denied"):
        get_regions(make_clients(ec2))