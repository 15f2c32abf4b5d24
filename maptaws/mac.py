"""Mac dedicated host information, selection of region and zone, and pool lookups."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from maptaws.azs import get_random_availability_zone
from maptaws.clients import AwsClients
from maptaws.hosts import DedicatedHostRequest, get_dedicated_hosts
from maptaws.instance_types import (
    is_instance_type_offered_by_az,
    is_instance_type_offered_by_region,
    lookup_region_offering_instance_type,
)

log = logging.getLogger(__name__)

STACK_DEDICATED_HOST = "stackDedicatedHost"
STACK_MAC_MACHINE = "stackMacMachine"

# Internal id of the mac dedicated host component.
AWS_MAC_HOST_ID = "amh"

TAG_KEY_PREFIX = "prefix"
TAG_KEY_BACKED_URL = "backedURL"
TAG_KEY_ARCH = "arch"
# Tags added when the dedicated host is part of a pool.
TAG_KEY_OS_VERSION = "osVersion"
TAG_KEY_POOL_NAME = "poolName"
TAG_KEY_PROJECT_NAME = "projectName"
TAG_KEY_RUN_ID = "runid"

OUTPUT_DEDICATED_HOST_ID = "ammDedicatedHostID"
OUTPUT_DEDICATED_HOST_AZ = "ammDedicatedHostAZ"
OUTPUT_REGION = "ammRegion"

TYPES_BY_ARCH: dict[str, str] = {
    "x86": "mac1.metal",
    "m1": "mac2.metal",
    "m2": "mac2-m2pro.metal",
}

AWS_ARCH_ID_BY_ARCH: dict[str, str] = {
    "x86": "x86_64_mac",
    "m1": "arm64_mac",
    "m2": "arm64_mac",
}


@dataclass(frozen=True)
class HostInformation:
    arch: str
    os_version: str
    backed_url: str
    prefix: str
    project_name: str
    run_id: str
    region: str
    host: dict[str, Any]


@dataclass(frozen=True)
class PoolID:
    pool_name: str
    arch: str
    os_version: str

    def as_tags(self) -> dict[str, str]:
        """Tags identifying hosts that belong to this pool."""
        return {
            TAG_KEY_ARCH: self.arch,
            TAG_KEY_OS_VERSION: self.os_version,
            TAG_KEY_POOL_NAME: self.pool_name,
        }


@dataclass(frozen=True)
class MacDedicatedHostRequest:
    prefix: str
    architecture: str
    fixed_location: bool = False


def tag_value(tags: Iterable[Mapping[str, str]] | None, key: str) -> str:
    """Value of the tag ``key``; raises KeyError when the tag is absent."""
    for tag in tags or ():
        if tag.get("Key") == key:
            return tag["Value"]
    raise KeyError(key)


def host_information(host: dict[str, Any]) -> HostInformation:
    """Information about a dedicated host composed from its zone and tags."""
    az = host["AvailabilityZone"]
    tags = host.get("Tags")
    return HostInformation(
        arch=AWS_ARCH_ID_BY_ARCH.get(tag_value(tags, TAG_KEY_ARCH), ""),
        os_version=tag_value(tags, TAG_KEY_OS_VERSION),
        backed_url=tag_value(tags, TAG_KEY_BACKED_URL),
        prefix=tag_value(tags, TAG_KEY_PREFIX),
        project_name=tag_value(tags, TAG_KEY_PROJECT_NAME),
        run_id=tag_value(tags, TAG_KEY_RUN_ID),
        region=az[:-1],
        host=host,
    )


def matching_hosts_information(
    clients: AwsClients, tags: Mapping[str, str], state: str | None = None
) -> list[HostInformation]:
    """Hosts carrying all ``tags`` (and in ``state`` if given), oldest allocation first."""
    hosts = get_dedicated_hosts(clients, DedicatedHostRequest(tags=dict(tags)))
    infos = [
        host_information(host)
        for host in hosts
        if state is None or host.get("State") == state
    ]
    infos.sort(key=lambda info: info.host["AllocationTime"])
    return infos


def pool_dedicated_hosts_information(
    clients: AwsClients, pool_id: PoolID
) -> list[HostInformation]:
    """Hosts belonging to the pool, oldest allocation first."""
    return matching_hosts_information(clients, pool_id.as_tags())


def backed_url_for_run(backed_url: str, run_id: str) -> str:
    """Backed URL for a host: remote URLs get the run id appended as a sub path."""
    if "file://" in backed_url:
        return backed_url
    return f"{backed_url}/{run_id}"


def select_region(
    clients: AwsClients, arch: str, fixed_location: bool, default_region: str
) -> str:
    """Region to create the mac host in.

    The default region is used when it offers the machine; otherwise another
    region offering it is looked up, unless the location is fixed.
    """
    instance_type = TYPES_BY_ARCH[arch]
    log.debug("checking if %s is offered at %s", arch, default_region)
    if is_instance_type_offered_by_region(clients, instance_type, default_region):
        log.debug("%s offers it", default_region)
        return default_region
    if fixed_location:
        raise ValueError(
            f"the requested mac {arch} is not available at the current region "
            f"{default_region} and the fixed-location flag has been set"
        )
    log.debug(
        "%s is not offered, a new region offering it will be used instead",
        default_region,
    )
    return lookup_region_offering_instance_type(clients, instance_type)


def select_az(clients: AwsClients, region: str, arch: str) -> str:
    """A random zone in ``region`` that offers the mac machine for ``arch``."""
    instance_type = TYPES_BY_ARCH[arch]
    excluded: list[str] = []
    while True:
        az = get_random_availability_zone(clients, region, excluded)
        if is_instance_type_offered_by_az(clients, region, instance_type, az):
            return az
        excluded.append(az)