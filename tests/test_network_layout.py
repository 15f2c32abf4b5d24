import ipaddress

import pytest

from maptaws.clients import AwsClients
from maptaws.network_layout import (
    CIDR_INTRA_SN,
    CIDR_PUBLIC_SN,
    DEFAULT_CIDR_NETWORK,
    Connectivity,
    NetworkRequest,
    default_network_request,
    generate_intra_subnet_cidrs,
    generate_private_subnet_cidrs,
    generate_public_subnet_cidrs,
    select_nat_gateway,
)


class FakeEc2:
    def __init__(self, zones):
        self.zones = zones

    def describe_availability_zones(self, Filters):
        return {
            "AvailabilityZones": [
                {"ZoneName": z, "RegionName": "us-east-1"} for z in self.zones
            ]
        }


def clients_with_zones(zones):
    return AwsClients(lambda service, region: FakeEc2(zones))


def test_public_cidrs():
    cidrs = generate_public_subnet_cidrs(3)
    assert cidrs == ["10.0.1.0/24", CIDR_PUBLIC_SN, "10.0.3.0/24"]


def test_private_cidrs_start_at_offset():
    cidrs = generate_private_subnet_cidrs(2)
    assert cidrs[0] == CIDR_INTRA_SN
    assert len(cidrs) == 2


@pytest.mark.parametrize(
    "generate",
    [generate_public_subnet_cidrs, generate_private_subnet_cidrs, generate_intra_subnet_cidrs],
)
def test_cidrs_inside_default_network_and_disjoint(generate):
    network = ipaddress.ip_network(DEFAULT_CIDR_NETWORK)
    blocks = [ipaddress.ip_network(c) for c in generate(4)]
    assert len(blocks) == 4
    assert all(block.subnet_of(network) for block in blocks)
    assert len(set(blocks)) == 4


def test_kinds_do_not_overlap():
    all_blocks = (
        generate_public_subnet_cidrs(3)
        + generate_private_subnet_cidrs(3)
        + generate_intra_subnet_cidrs(3)
    )
    assert len(set(all_blocks)) == 9


def test_zero_count_gives_empty():
    assert generate_intra_subnet_cidrs(0) == []


def test_validate_accepts_matching_counts():
    request = NetworkRequest(
        name="n",
        availability_zones=["a", "b"],
        public_subnets_cidrs=generate_public_subnet_cidrs(2),
        private_subnets_cidrs=generate_private_subnet_cidrs(1),
    )
    request.validate()
    assert request.public_subnets_cidrs == generate_public_subnet_cidrs(2)


@pytest.mark.parametrize("kind", ["public", "private", "intra"])
def test_validate_rejects_more_cidrs_than_zones(kind):
    cidrs = generate_public_subnet_cidrs(2)
    request = NetworkRequest(name="n", availability_zones=["a"])
    setattr(request, f"{kind}_subnets_cidrs", cidrs)
    with pytest.raises(ValueError, match=kind):
        request.validate()


def test_nat_gateway_required():
    single = NetworkRequest(name="n", single_nat_gateway=True)
    assert single.nat_gateway_required(0) is True
    assert single.nat_gateway_required(1) is False
    with_private = NetworkRequest(name="n", private_subnets_cidrs=["x"])
    assert with_private.nat_gateway_required(2) is True
    plain = NetworkRequest(name="n")
    assert plain.nat_gateway_required(0) is False


def test_select_nat_gateway():
    gateways = ["g0", "g1", "g2"]
    assert select_nat_gateway(True, gateways, 2) == "g0"
    assert select_nat_gateway(False, gateways, 2) == "g2"
    assert select_nat_gateway(False, None, 1) is None


def test_connectivity_order():
    assert Connectivity.ON.value < Connectivity.OFF.value
    assert Connectivity(1) is Connectivity.OFF


def test_default_network_request_uses_first_three_zones():
    zones = ["z1", "z2", "z3", "z4"]
    request = default_network_request(clients_with_zones(zones), "net")
    assert request.availability_zones == zones[:3]
    assert request.cidr == DEFAULT_CIDR_NETWORK
    assert request.public_subnets_cidrs == generate_public_subnet_cidrs(3)
    assert request.private_subnets_cidrs == generate_private_subnet_cidrs(3)
    assert request.intra_subnets_cidrs == generate_intra_subnet_cidrs(3)
    assert request.single_nat_gateway is False
    request.validate()


def test_default_network_request_too_few_zones():
    with pytest.raises(ValueError):
        default_network_request(clients_with_zones(["z1", "z2"]), "net")