"""Worldwide search for the cheapest, most reliable place to run spot instances."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from statistics import fmean
from typing import Any, TypeVar

from maptaws.ami import ImageRequest, is_ami_offered
from maptaws.azs import describe_availability_zones_by_regions, get_zone_name
from maptaws.clients import AwsClients
from maptaws.regions import get_regions

log = logging.getLogger(__name__)

X = TypeVar("X")
Y = TypeVar("Y")

ARM64_AMI_ARCH = "aarch64"
X86_64_AMI_ARCH = "x86_64"

DEFAULT_OS = "linux"

_AMI_PRODUCTS: dict[str, str] = {
    "windows": "Windows",
    "RHEL": "Red Hat Enterprise Linux",
    "fedora": "Linux/UNIX",
    DEFAULT_OS: "Linux/UNIX",
}

# Placement scores range from 1 to 10; lower scores are not considered.
TOLERANCE = 3

# Max number of results for the placement score query.
_MAX_PLACEMENT_SCORE_RESULTS = 10
_FILTER_PRODUCT_DESCRIPTION = "product-description"
# Price used when a reported spot price cannot be read, so the option loses.
_OVERCOST_PRICE = 100.0


def product_description(os_name: str | None = None) -> str:
    """Spot price product description for an operating system name."""
    key = DEFAULT_OS if os_name is None else os_name
    try:
        return _AMI_PRODUCTS[key]
    except KeyError:
        raise ValueError(f"no product description for os {os_name}") from None


@dataclass(frozen=True)
class SpotInfoArgs:
    instance_types: list[str]
    product_description: str = _AMI_PRODUCTS[DEFAULT_OS]
    ami_name: str | None = None
    ami_arch: str | None = None


@dataclass(frozen=True)
class SpotInfoResult:
    region: str
    availability_zone: str
    avg_price: float
    max_price: float
    score: int
    instance_type: str


@dataclass(frozen=True)
class SpotPricingResult:
    region: str
    availability_zone: str
    instance_type: str
    avg_price: float
    max_price: float


@dataclass(frozen=True)
class PlacementScoreResult:
    region: str
    availability_zone_id: str
    score: int
    # Zone ids are per account; this is the name the account sees for the id.
    az_name: str = field(default="")


def run_by_region(
    regions: Sequence[str], data: X, run: Callable[[str, X], Y]
) -> dict[str, Y]:
    """Run ``run(region, data)`` for every region concurrently.

    Results are keyed by region; regions whose run raises are left out.
    """
    if not regions:
        return {}

    def attempt(region: str) -> tuple[str, Y] | None:
        try:
            return region, run(region, data)
        except Exception as err:
            log.debug("skipping region %s: %s", region, err)
            return None

    result: dict[str, Y] = {}
    with ThreadPoolExecutor(max_workers=min(32, len(regions))) as pool:
        for outcome in pool.map(attempt, regions):
            if outcome is not None:
                region, value = outcome
                result[region] = value
    return result


def _parse_price(text: Any) -> float:
    try:
        return float(text)
    except (TypeError, ValueError):
        return _OVERCOST_PRICE


def spot_pricing(
    clients: AwsClients,
    region: str,
    product_description: str,
    instance_types: Iterable[str],
) -> list[SpotPricingResult]:
    """Average and max spot price over the last hour per zone and instance type."""
    end_time = datetime.now(timezone.utc)
    start_time = end_time - timedelta(hours=1)
    response = clients.ec2(region or None).describe_spot_price_history(
        InstanceTypes=list(instance_types),
        Filters=[{"Name": _FILTER_PRODUCT_DESCRIPTION, "Values": [product_description]}],
        StartTime=start_time,
        EndTime=end_time,
    )
    groups: dict[tuple[str, str], list[float]] = {}
    for entry in (response or {}).get("SpotPriceHistory") or []:
        log.debug(
            "Found InstanceType %s at Availability Zone %s with spot price %s",
            entry.get("InstanceType"),
            entry.get("AvailabilityZone"),
            entry.get("SpotPrice"),
        )
        key = (entry["AvailabilityZone"], entry["InstanceType"])
        groups.setdefault(key, []).append(_parse_price(entry.get("SpotPrice")))
    return [
        SpotPricingResult(
            region=region,
            availability_zone=az,
            instance_type=instance_type,
            avg_price=fmean(prices),
            max_price=max(prices),
        )
        for (az, instance_type), prices in groups.items()
    ]


def placement_scores(
    clients: AwsClients, region: str, instance_types: Iterable[str], capacity: int = 1
) -> list[PlacementScoreResult]:
    """Single-zone placement scores in ``region`` at or above the tolerance.

    Results are ordered by ascending score. Raises LookupError when the region
    reports no scores or a zone id cannot be matched to a zone name.
    """
    zones_by_region = describe_availability_zones_by_regions(clients, [region])
    response = clients.ec2(region or None).get_spot_placement_scores(
        SingleAvailabilityZone=True,
        InstanceTypes=list(instance_types),
        RegionNames=[region],
        TargetCapacity=capacity,
        MaxResults=_MAX_PLACEMENT_SCORE_RESULTS,
    )
    scores = (response or {}).get("SpotPlacementScores") or []
    if not scores:
        raise LookupError("non available scores")
    results = [
        PlacementScoreResult(
            region=score["Region"],
            availability_zone_id=score["AvailabilityZoneId"],
            score=score["Score"],
            az_name=get_zone_name(
                score["AvailabilityZoneId"], zones_by_region.get(score["Region"], [])
            ),
        )
        for score in scores
        if score["Score"] >= TOLERANCE
    ]
    results.sort(key=lambda result: result.score)
    return results


def select_spot_choice(
    clients: AwsClients,
    placement_scores: Mapping[str, Sequence[PlacementScoreResult]],
    spot_pricing: Mapping[str, Sequence[SpotPricingResult]],
    ami_name: str | None = None,
    ami_arch: str | None = None,
) -> SpotInfoResult:
    """Cross prices with placement scores and pick the option with the lowest max price.

    Regions where ``ami_name`` is not offered are discarded.
    """
    chosen: dict[str, SpotInfoResult] = {}
    for region, prices in spot_pricing.items():
        valid_ami = True
        if ami_name:
            valid_ami, _ = is_ami_offered(
                clients, ImageRequest(name=ami_name, arch=ami_arch, region=region)
            )
        if not valid_ami:
            continue
        scores = placement_scores.get(region, ())
        for price in prices:
            match = next(
                (s for s in scores if s.az_name == price.availability_zone), None
            )
            if match is not None:
                chosen[region] = SpotInfoResult(
                    region=match.region,
                    availability_zone=price.availability_zone,
                    avg_price=price.avg_price,
                    max_price=price.max_price,
                    score=match.score,
                    instance_type=price.instance_type,
                )
    if not chosen:
        raise LookupError("no good choice was found")
    return min(chosen.values(), key=lambda option: option.max_price)


def spot_info(clients: AwsClients, args: SpotInfoArgs) -> SpotInfoResult:
    """The best spot option worldwide for the requested instance types."""
    regions = get_regions(clients)
    scores = run_by_region(
        regions,
        args.instance_types,
        lambda region, types: placement_scores(clients, region, types, 1),
    )
    pricing = run_by_region(
        list(scores),
        args.instance_types,
        lambda region, types: spot_pricing(
            clients, region, args.product_description, types
        ),
    )
    try:
        choice = select_spot_choice(
            clients, scores, pricing, args.ami_name, args.ami_arch
        )
    except LookupError as err:
        raise LookupError(
            f"couldn't find the best price for instance types {args.instance_types}"
        ) from err
    log.debug(
        "Based on avg prices for instance types %s is az %s, current avg price is %.2f "
        "and max price is %.2f with a score of %d",
        args.instance_types,
        choice.availability_zone,
        choice.avg_price,
        choice.max_price,
        choice.score,
    )
    return choice