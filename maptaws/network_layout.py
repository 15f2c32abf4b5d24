"""Layout of the networks created for targets: CIDR blocks, zones and gateways."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TypeVar

from maptaws.azs import get_availability_zones
from maptaws.clients import AwsClients

T = TypeVar("T")

STACK_CREATE_NETWORK_NAME = "Manage-Network"
STACK_CREATE_NETWORK_OUTPUT_VPC_ID = "VPCID"

DEFAULT_CIDR_NETWORK = "10.0.0.0/16"
DEFAULT_LB_IPS = ("10.0.1.15", "10.0.2.15", "10.0.3.15")
DEFAULT_AVAILABILITY_ZONES = ("us-east-1b", "us-east-1c", "us-east-1d")
DEFAULT_REGION = "us-east-1"

# Layout of the single target network (standard or airgap).
CIDR_VN = "10.0.0.0/16"
CIDR_PUBLIC_SN = "10.0.2.0/24"
CIDR_INTRA_SN = "10.0.101.0/24"
INTERNAL_LB_IP = "10.0.101.15"

_DEFAULT_AZ_COUNT = 3


class Connectivity(Enum):
    """Phase of an airgap network: with or without its NAT gateway."""

    ON = 0
    OFF = 1


def _generate_cidr_blocks(count: int, offset: int) -> list[str]:
    return [f"10.0.{offset + i}.0/24" for i in range(count)]


def generate_public_subnet_cidrs(az_count: int) -> list[str]:
    """CIDR blocks for public subnets, one per availability zone."""
    return _generate_cidr_blocks(az_count, 1)


def generate_private_subnet_cidrs(az_count: int) -> list[str]:
    """CIDR blocks for private subnets, one per availability zone."""
    return _generate_cidr_blocks(az_count, 101)


def generate_intra_subnet_cidrs(az_count: int) -> list[str]:
    """CIDR blocks for intra subnets, one per availability zone."""
    return _generate_cidr_blocks(az_count, 201)


@dataclass
class NetworkRequest:
    name: str
    cidr: str = DEFAULT_CIDR_NETWORK
    region: str = ""
    availability_zones: list[str] = field(default_factory=list)
    public_subnets_cidrs: list[str] = field(default_factory=list)
    private_subnets_cidrs: list[str] = field(default_factory=list)
    intra_subnets_cidrs: list[str] = field(default_factory=list)
    single_nat_gateway: bool = False
    public_to_intra: bool | None = None
    map_public_ip: bool = False

    def validate(self) -> None:
        """Raise ValueError when a subnet kind has more CIDR blocks than zones."""
        zones = len(self.availability_zones)
        for kind, cidrs in (
            ("public", self.public_subnets_cidrs),
            ("private", self.private_subnets_cidrs),
            ("intra", self.intra_subnets_cidrs),
        ):
            if len(cidrs) > zones:
                raise ValueError(
                    "availability zones should be minimum same number as "
                    f"{kind} subnets CIDRs blocks"
                )

    def nat_gateway_required(self, index: int) -> bool:
        """Whether the public subnet at ``index`` needs a NAT gateway."""
        return (self.single_nat_gateway and index == 0) or bool(
            self.private_subnets_cidrs
        )


def select_nat_gateway(
    single_nat_gateway: bool, nat_gateways: Sequence[T] | None, index: int
) -> T | None:
    """NAT gateway used by the private subnet at ``index``."""
    if nat_gateways is None:
        return None
    if single_nat_gateway:
        return nat_gateways[0]
    return nat_gateways[index]


def default_network_request(clients: AwsClients, name: str) -> NetworkRequest:
    """Request for a network spread over the first three zones of the default region."""
    zones = get_availability_zones(clients, "")
    if len(zones) < _DEFAULT_AZ_COUNT:
        raise ValueError(
            f"at least {_DEFAULT_AZ_COUNT} availability zones are required, "
            f"found {len(zones)}"
        )
    azs = zones[:_DEFAULT_AZ_COUNT]
    count = len(azs)
    return NetworkRequest(
        name=name,
        cidr=DEFAULT_CIDR_NETWORK,
        availability_zones=azs,
        public_subnets_cidrs=generate_public_subnet_cidrs(count),
        private_subnets_cidrs=generate_private_subnet_cidrs(count),
        intra_subnets_cidrs=generate_intra_subnet_cidrs(count),
        single_nat_gateway=False,
        map_public_ip=False,
    )