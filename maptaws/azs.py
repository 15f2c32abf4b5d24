"""Availability zone lookups."""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from maptaws.clients import AwsClients

log = logging.getLogger(__name__)


def describe_availability_zones(clients: AwsClients, region: str) -> list[dict[str, Any]]:
    """Descriptions of the availability zones (not local or wavelength zones) in ``region``."""
    response = clients.ec2(region or None).describe_availability_zones(
        Filters=[{"Name": "zone-type", "Values": ["availability-zone"]}]
    )
    return list(response.get("AvailabilityZones", []))


def get_availability_zones(clients: AwsClients, region: str) -> list[str]:
    """Zone names in ``region``; an empty list when the lookup fails."""
    try:
        zones = describe_availability_zones(clients, region)
    except Exception:
        log.exception("failed to describe availability zones for %s", region)
        return []
    return [zone["ZoneName"] for zone in zones]


def get_random_availability_zone(
    clients: AwsClients, region: str, excluded_azs: Iterable[str] | None = None
) -> str:
    """A random zone name in ``region`` that is not in ``excluded_azs``."""
    excluded = set(excluded_azs or ())
    candidates = [
        zone["ZoneName"]
        for zone in describe_availability_zones(clients, region)
        if zone["ZoneName"] not in excluded
    ]
    if not candidates:
        raise LookupError(f"no availability zone available in {region}")
    return random.choice(candidates)


def get_zone_name(az_id: str, az_descriptions: Sequence[dict[str, Any]]) -> str:
    """Account specific zone name for the zone id ``az_id``."""
    for description in az_descriptions:
        if description.get("ZoneId") == az_id:
            return description["ZoneName"]
    raise LookupError("az id not found")


def describe_availability_zones_by_regions(
    clients: AwsClients, regions: Sequence[str]
) -> dict[str, list[dict[str, Any]]]:
    """Zone descriptions grouped by region; regions that fail are left out.

    Zone ids are assigned per account, so the descriptions are what map an id
    such as ``use1-az1`` to the name this account sees.
    """
    result: dict[str, list[dict[str, Any]]] = {}
    if not regions:
        return result

    def describe(region: str) -> list[dict[str, Any]] | None:
        try:
            return describe_availability_zones(clients, region)
        except Exception as err:
            log.debug("skipping availability zones for %s: %s", region, err)
            return None

    with ThreadPoolExecutor(max_workers=min(32, len(regions))) as pool:
        for zones in pool.map(describe, regions):
            if zones:
                result.setdefault(zones[0]["RegionName"], []).extend(zones)
    return result