"""Where and at what price compute is allocated."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from maptaws.azs import get_random_availability_zone
from maptaws.clients import AwsClients


@dataclass(frozen=True)
class AllocationData:
    """Location of an allocation, and the bid price when it runs on spot."""

    region: str
    az: str
    spot_price: float | None = None
    instance_types: list[str] = field(default_factory=list)


def spot_price_bid(base_price: float, increase_rate: int) -> float:
    """Spot bid: ``base_price`` raised by ``increase_rate`` percent when positive."""
    if increase_rate > 0:
        return base_price * (1 + increase_rate / 100)
    return base_price


def allocation_data_on_demand(
    clients: AwsClients, region: str | None = None
) -> AllocationData:
    """On demand allocation in ``region`` (default ``AWS_DEFAULT_REGION``) on a random zone."""
    if region is None:
        region = os.environ.get("AWS_DEFAULT_REGION", "")
    az = get_random_availability_zone(clients, region, None)
    return AllocationData(region=region, az=az)