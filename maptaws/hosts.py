"""Dedicated host and instance lookups."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from maptaws.clients import AwsClients, all_tags_matches
from maptaws.regions import get_regions

log = logging.getLogger(__name__)

_HOST_STATES = ["available", "pending"]


@dataclass(frozen=True)
class DedicatedHostRequest:
    host_id: str = ""
    tags: dict[str, str] = field(default_factory=dict)


def get_dedicated_hosts_by_region(
    clients: AwsClients, request: DedicatedHostRequest, region: str
) -> list[dict[str, Any]]:
    """Available or pending hosts in ``region`` matching ``request``."""
    filters: list[dict[str, Any]] = [{"Name": "state", "Values": list(_HOST_STATES)}]
    params: dict[str, Any] = {"Filter": filters}
    if request.host_id:
        params["HostIds"] = [request.host_id]
    if request.tags:
        filters.append({"Name": "tag-key", "Values": list(request.tags)})
    response = clients.ec2(region or None).describe_hosts(**params)
    hosts = list((response or {}).get("Hosts") or [])
    if not hosts:
        raise LookupError("dedicated host was not found on current region")
    if request.tags:
        return [h for h in hosts if all_tags_matches(request.tags, h.get("Tags"))]
    return hosts


def get_dedicated_hosts(
    clients: AwsClients, request: DedicatedHostRequest
) -> list[dict[str, Any]]:
    """Hosts matching ``request`` across all regions; failing regions are skipped."""
    regions = get_regions(clients)
    if not regions:
        return []

    def lookup(region: str) -> list[dict[str, Any]]:
        try:
            return get_dedicated_hosts_by_region(clients, request, region)
        except Exception as err:
            log.debug("no dedicated hosts in %s: %s", region, err)
            return []

    with ThreadPoolExecutor(max_workers=min(32, len(regions))) as pool:
        return [host for hosts in pool.map(lookup, regions) for host in hosts]


def get_dedicated_host(clients: AwsClients, host_id: str) -> dict[str, Any]:
    """The single dedicated host with id ``host_id``."""
    hosts = get_dedicated_hosts(clients, DedicatedHostRequest(host_id=host_id))
    if len(hosts) != 1:
        raise LookupError(f"error getting the dedicated host {host_id}")
    return hosts[0]


def get_instances_by_region(
    clients: AwsClients, tags: dict[str, str], region: str
) -> list[dict[str, Any]]:
    """Instances in ``region`` carrying the keys of ``tags``, filtered on their values."""
    response = clients.ec2(region or None).describe_instances(
        Filters=[{"Name": "tag-key", "Values": list(tags)}]
    )
    reservations = (response or {}).get("Reservations") or []
    if len(reservations) != 1 or len(reservations[0].get("Instances") or []) != 1:
        raise LookupError("dedicated host was not found on current region")
    instances = list(reservations[0]["Instances"])
    if tags:
        return [i for i in instances if all_tags_matches(tags, i.get("Tags"))]
    return instances