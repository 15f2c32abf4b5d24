"""Instance type offering lookups by region and availability zone."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed

from maptaws.clients import AwsClients
from maptaws.regions import get_regions

log = logging.getLogger(__name__)

_LOCATION_REGION = "region"
_LOCATION_AZ = "availability-zone"
_FILTER_LOCATION = "location"
_FILTER_INSTANCE_TYPE = "instance-type"


def _offerings(
    clients: AwsClients,
    region: str,
    location_type: str,
    location: str,
    instance_types: list[str],
) -> list[str]:
    response = clients.ec2(region or None).describe_instance_type_offerings(
        LocationType=location_type,
        Filters=[
            {"Name": _FILTER_LOCATION, "Values": [location]},
            {"Name": _FILTER_INSTANCE_TYPE, "Values": instance_types},
        ],
    )
    return [
        offering["InstanceType"]
        for offering in (response or {}).get("InstanceTypeOfferings") or []
    ]


def filter_instance_types_offered_by_region(
    clients: AwsClients, instance_types: Iterable[str], region: str
) -> list[str]:
    """The subset of ``instance_types`` offered in ``region``."""
    return _offerings(clients, region, _LOCATION_REGION, region, list(instance_types))


def is_instance_type_offered_by_region(
    clients: AwsClients, instance_type: str, region: str
) -> bool:
    """Whether ``instance_type`` is offered in ``region``."""
    offerings = filter_instance_types_offered_by_region(clients, [instance_type], region)
    return len(offerings) == 1


def is_instance_type_offered_by_az(
    clients: AwsClients, region: str, instance_type: str, az: str
) -> bool:
    """Whether ``instance_type`` is offered in the availability zone ``az``."""
    offerings = _offerings(clients, region, _LOCATION_AZ, az, [instance_type])
    return len(offerings) == 1


def _offered_in(clients: AwsClients, instance_type: str, region: str) -> bool:
    try:
        return is_instance_type_offered_by_region(clients, instance_type, region)
    except Exception as err:
        log.debug("ignoring %s while looking for %s: %s", region, instance_type, err)
        return False


def lookup_region_offering_instance_type(clients: AwsClients, instance_type: str) -> str:
    """The first region found to offer ``instance_type``."""
    regions = get_regions(clients)
    if regions:
        pool = ThreadPoolExecutor(max_workers=min(32, len(regions)))
        try:
            futures = {
                pool.submit(_offered_in, clients, instance_type, region): region
                for region in regions
            }
            for future in as_completed(futures):
                if future.result():
                    return futures[future]
        finally:
            pool.shutdown(wait=False, cancel_futures=True)
    raise LookupError(f"no region offers instance type {instance_type}")