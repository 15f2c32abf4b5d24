"""Public subnet discovery in default VPCs."""

from __future__ import annotations

import logging
import random
from typing import Any

from maptaws.clients import AwsClients

log = logging.getLogger(__name__)

_FILTER_VPC_ID = "vpc-id"
_FILTER_ASSOCIATION_SUBNET_ID = "association.subnet-id"


class NoDefaultVpcError(LookupError):
    """The region has no VPC marked as default."""

    def __init__(self, message: str = "no VPC marked as default") -> None:
        super().__init__(message)


class NoRouteTableError(LookupError):
    """No route table is explicitly associated with the subnet."""

    def __init__(self, message: str = "no Route table by association.subnet-id") -> None:
        super().__init__(message)


def is_public(ec2: Any, subnet_id: str) -> bool:
    """Whether a route table associated with the subnet routes through an internet gateway.

    Raises NoRouteTableError when the subnet has no associated route table.
    """
    try:
        response = ec2.describe_route_tables(
            Filters=[{"Name": _FILTER_ASSOCIATION_SUBNET_ID, "Values": [subnet_id]}]
        )
    except Exception as err:
        raise RuntimeError(f"failed to describe route tables: {err}") from err
    tables = response.get("RouteTables") or []
    if not tables:
        raise NoRouteTableError()
    return any(
        (route.get("GatewayId") or "").startswith("igw")
        for table in tables
        for route in table.get("Routes") or []
    )


def get_public_subnets(ec2: Any, vpc_id: str) -> list[str]:
    """Public subnet ids in ``vpc_id``.

    The first subnet found to be public is returned alone. When no subnet has
    its own route table, all of them use the main table and are all returned.
    """
    try:
        response = ec2.describe_subnets(
            Filters=[{"Name": _FILTER_VPC_ID, "Values": [vpc_id]}]
        )
    except Exception as err:
        raise RuntimeError(f"failed to describe subnets: {err}") from err
    subnet_ids = [s["SubnetId"] for s in response.get("Subnets") or []]
    public: list[str] = []
    without_route_table = 0
    for subnet_id in subnet_ids:
        try:
            if is_public(ec2, subnet_id):
                public.append(subnet_id)
                break
        except NoRouteTableError:
            without_route_table += 1
        except RuntimeError as err:
            log.debug("skipping subnet %s: %s", subnet_id, err)
    if without_route_table == len(subnet_ids):
        return subnet_ids
    return public


def get_random_public_subnet(clients: AwsClients, region: str) -> str:
    """A random public subnet id from a default VPC in ``region``."""
    ec2 = clients.ec2(region or None)
    try:
        response = ec2.describe_vpcs(Filters=[{"Name": "isDefault", "Values": ["true"]}])
    except Exception as err:
        raise RuntimeError(f"failed to describe VPCs: {err}") from err
    vpcs = response.get("Vpcs") or []
    if not vpcs:
        raise NoDefaultVpcError()
    for vpc in vpcs:
        try:
            subnets = get_public_subnets(ec2, vpc["VpcId"])
        except RuntimeError as err:
            log.error("%s", err)
            break
        if subnets:
            return random.choice(subnets)
    raise LookupError("no public subnet can be found on a default VPC")