"""Machine image lookups."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import datetime
from functools import cmp_to_key
from typing import Any

from maptaws.clients import AwsClients
from maptaws.regions import get_regions

log = logging.getLogger(__name__)

ERROR_NO_AMI = "no AMI"


class NoAmiError(LookupError):
    """No image matches the request."""


@dataclass(frozen=True)
class ImageRequest:
    name: str
    region: str = ""
    arch: str | None = None
    owner: str | None = None
    block_device_type: str | None = None


@dataclass(frozen=True)
class ImageInfo:
    region: str
    image: dict[str, Any]


def _creation_day(image: dict[str, Any]) -> datetime | None:
    try:
        return datetime.strptime(image["CreationDate"], "%Y-%m-%d")
    except (KeyError, TypeError, ValueError):
        return None


def _newest_first(a: dict[str, Any], b: dict[str, Any]) -> int:
    ac, bc = _creation_day(a), _creation_day(b)
    if ac is None or bc is None:
        return 0
    return (bc > ac) - (bc < ac)


def get_ami(clients: AwsClients, request: ImageRequest) -> ImageInfo:
    """The image matching ``request``; the newest one when several match."""
    filters = [{"Name": "name", "Values": [request.name]}]
    if request.arch is not None:
        filters.append({"Name": "architecture", "Values": [request.arch]})
    if request.block_device_type is not None:
        filters.append(
            {"Name": "block-device-mapping.volume-type", "Values": [request.block_device_type]}
        )
    params: dict[str, Any] = {"Filters": filters}
    if request.owner is not None:
        params["Owners"] = [request.owner]
    try:
        response = clients.ec2(request.region or None).describe_images(**params)
    except Exception as err:
        log.debug("error checking %s in %s error is %s", request.name, request.region, err)
        raise
    images = list((response or {}).get("Images") or [])
    if not images:
        log.debug("result len 0 checking %s in %s", request.name, request.region)
        raise NoAmiError(f"{ERROR_NO_AMI} {request.name} in {request.region}")
    log.debug("len %d checking %s in %s", len(images), request.name, request.region)
    images.sort(key=cmp_to_key(_newest_first))
    return ImageInfo(region=request.region, image=images[0])


def is_ami_offered(
    clients: AwsClients, request: ImageRequest
) -> tuple[bool, ImageInfo | None]:
    """Whether the image is offered in the request's region, with its details."""
    try:
        return True, get_ami(clients, request)
    except NoAmiError:
        return False, None


def _offered_in(
    clients: AwsClients, ami_name: str, ami_arch: str | None, region: str
) -> ImageInfo | None:
    try:
        offered, info = is_ami_offered(
            clients, ImageRequest(name=ami_name, arch=ami_arch, region=region)
        )
    except Exception as err:
        log.debug("ignoring %s while looking for %s: %s", region, ami_name, err)
        return None
    return info if offered else None


def find_ami(clients: AwsClients, ami_name: str, ami_arch: str | None = None) -> ImageInfo:
    """The image from the first region found to offer it."""
    regions = get_regions(clients)
    if regions:
        pool = ThreadPoolExecutor(max_workers=min(32, len(regions)))
        try:
            futures = [
                pool.submit(_offered_in, clients, ami_name, ami_arch, region)
                for region in regions
            ]
            for future in as_completed(futures):
                info = future.result()
                if info is not None:
                    return info
        finally:
            pool.shutdown(wait=False, cancel_futures=True)
    raise NoAmiError(f"not AMI find with name {ami_name} on any region")