"""Listing of the regions enabled for the account."""

from __future__ import annotations

from maptaws.clients import AwsClients

_OPT_IN_STATUS_FILTER = "opt-in-status"
_OPT_IN_NOT_REQUIRED = "opt-in-not-required"


def get_regions(clients: AwsClients) -> list[str]:
    """Names of all regions that do not require opting in."""
    response = clients.ec2().describe_regions(
        Filters=[{"Name": _OPT_IN_STATUS_FILTER, "Values": [_OPT_IN_NOT_REQUIRED]}]
    )
    return [region["RegionName"] for region in response.get("Regions", [])]