"""Scheduling of serverless mapt commands: expressions, durations and IAM policies."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from maptaws.timezone import region_timezone

# Prefix for the resources kept by serverless mode (ECS cluster, roles) after destroy.
MAPT_SERVERLESS_DEFAULT_PREFIX = "mapt-serverless-manager"
CLUSTER_NAME = f"{MAPT_SERVERLESS_DEFAULT_PREFIX}-cluster"
TASK_ROLE_NAME = f"{MAPT_SERVERLESS_DEFAULT_PREFIX}-role"
SCHEDULER_ROLE_NAME = f"{MAPT_SERVERLESS_DEFAULT_PREFIX}-sch-role"

# Fargate task size.
LIMIT_CPU = "1024"
LIMIT_MEMORY = "2048"

_ONE_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S"
_POLICY_VERSION = "2012-10-17"

_UNIT_MICROSECONDS: dict[str, Decimal] = {
    "ns": Decimal("0.001"),
    "us": Decimal(1),
    "µs": Decimal(1),
    "μs": Decimal(1),
    "ms": Decimal(1000),
    "s": Decimal(1_000_000),
    "m": Decimal(60_000_000),
    "h": Decimal(3_600_000_000),
}
_COMPONENT = r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|h|m|s)"
_DURATION_RE = re.compile(rf"(?:{_COMPONENT})+")
_COMPONENT_RE = re.compile(_COMPONENT)


class ScheduleType(Enum):
    """How a serverless command is scheduled."""

    REPEAT = "rate"
    ONE_TIME = "at"


class InvalidBackedURLError(ValueError):
    """A timeout cannot be scheduled when the state lives in a local file."""

    def __init__(
        self,
        message: str = (
            "timeout can action can not be set due to backed url pointing to local "
            "file. Please use external storage or remote timeout option"
        ),
    ) -> None:
        super().__init__(message)


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``"1h30m"``, ``"1.5h"`` or ``"-90s"``.

    Valid units are ``ns``, ``us`` (or ``µs``), ``ms``, ``s``, ``m`` and ``h``;
    ``"0"`` needs no unit. Precision below a microsecond is dropped.
    """
    body = text
    negative = False
    if body[:1] in ("-", "+"):
        negative = body[0] == "-"
        body = body[1:]
    if body == "0":
        return timedelta(0)
    if not body or not _DURATION_RE.fullmatch(body):
        raise ValueError(f"time: invalid duration {text!r}")
    total = sum(
        (Decimal(number) * _UNIT_MICROSECONDS[unit]
         for number, unit in _COMPONENT_RE.findall(body)),
        Decimal(0),
    )
    micros = int(total)
    return timedelta(microseconds=-micros if negative else micros)


def _region_zone(region: str) -> timezone | ZoneInfo:
    name = region_timezone(region)
    if not name:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError as err:
        raise RuntimeError(f"Failed to load timezone: {err}") from err


def one_time_schedule_expression(
    region: str, delay: str, now: datetime | None = None
) -> str:
    """Local time in ``region`` after ``delay`` from ``now``, as used by ``at(...)``.

    Regions without a known time zone use UTC. A naive ``now`` is taken as UTC.
    """
    zone = _region_zone(region)
    try:
        duration = parse_duration(delay)
    except ValueError as err:
        raise ValueError(f"invalid timeout format: {err}") from err
    current = now if now is not None else datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    return (current.astimezone(zone) + duration).strftime(_ONE_TIME_FORMAT)


def schedule_expression(schedule_type: ScheduleType, expression: str) -> str:
    """Scheduler expression wrapping ``expression`` for the schedule type."""
    return f"{ScheduleType(schedule_type).value}({expression})"


def check_backed_url_for_serverless(backed_url: str) -> None:
    """Raise InvalidBackedURLError when the backed URL points to a local file."""
    if backed_url.startswith("file:///"):
        raise InvalidBackedURLError()


def _trust_policy(service: str) -> dict[str, Any]:
    return {
        "Version": _POLICY_VERSION,
        "Statement": [
            {
                "Effect": "Allow",
                "Principal": {"Service": service},
                "Action": "sts:AssumeRole",
            }
        ],
    }


def _allow_policy(actions: list[str]) -> dict[str, Any]:
    return {
        "Version": _POLICY_VERSION,
        "Statement": [{"Effect": "Allow", "Action": actions, "Resource": ["*"]}],
    }


def task_role_trust_policy() -> dict[str, Any]:
    """Trust policy letting ECS tasks assume the task role."""
    return _trust_policy("ecs-tasks.amazonaws.com")


def task_role_policy() -> dict[str, Any]:
    """Permissions granted to the serverless task role."""
    return _allow_policy(
        ["s3:*", "ec2:*", "logs:*", "cloudformation:*", "scheduler:*", "ssm:*"]
    )


def scheduler_role_trust_policy() -> dict[str, Any]:
    """Trust policy letting EventBridge Scheduler assume the scheduler role."""
    return _trust_policy("scheduler.amazonaws.com")


def scheduler_role_policy() -> dict[str, Any]:
    """Permissions granted to the scheduler role."""
    return _allow_policy(
        [
            "s3:*",
            "ec2:*",
            "ecs:*",
            "iam:PassRole",
            "logs:*",
            "cloudformation:*",
            "scheduler:*",
            "ssm:*",
        ]
    )