import json
from datetime import datetime, timedelta, timezone

import pytest

from maptaws.schedule import (
    InvalidBackedURLError,
    ScheduleType,
    check_backed_url_for_serverless,
    one_time_schedule_expression,
    parse_duration,
    schedule_expression,
    scheduler_role_policy,
    scheduler_role_trust_policy,
    task_role_policy,
    task_role_trust_policy,
)

NOW = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("1h", timedelta(hours=1)),
        ("30m", timedelta(minutes=30)),
        ("1h30m", timedelta(hours=1, minutes=30)),
        ("45s", timedelta(seconds=45)),
        ("250ms", timedelta(milliseconds=250)),
        ("10us", timedelta(microseconds=10)),
        ("0", timedelta(0)),
        ("-2h", -timedelta(hours=2)),
        ("+3m", timedelta(minutes=3)),
    ],
)
def test_parse_duration(text, expected):
    assert parse_duration(text) == expected


def test_parse_duration_fraction_matches_components():
    assert parse_duration("1.5h") == parse_duration("1h30m")
    assert parse_duration(".5m") == parse_duration("30s")


@pytest.mark.parametrize("text", ["", "abc", "1", "1x", "h", "-", "1h 2m"])
def test_parse_duration_invalid(text):
    with pytest.raises(ValueError):
        parse_duration(text)


def test_one_time_expression_unknown_region_uses_utc():
    assert one_time_schedule_expression("nowhere-1", "30m", NOW) == "2024-01-15T12:30:00"


def test_one_time_expression_uses_region_timezone():
    assert one_time_schedule_expression("us-east-1", "1h", NOW) == "2024-01-15T08:00:00"


def test_one_time_expression_naive_now_is_utc():
    naive = NOW.replace(tzinfo=None)
    assert one_time_schedule_expression("eu-west-2", "2h", naive) == (
        one_time_schedule_expression("eu-west-2", "2h", NOW)
    )


def test_one_time_expression_delay_shifts_time():
    base = datetime.strptime(
        one_time_schedule_expression("ap-northeast-1", "0", NOW), "%Y-%m-%dT%H:%M:%S"
    )
    later = datetime.strptime(
        one_time_schedule_expression("ap-northeast-1", "90m", NOW), "%Y-%m-%dT%H:%M:%S"
    )
    assert later - base == timedelta(minutes=90)


def test_one_time_expression_invalid_delay():
    with pytest.raises(ValueError, match="invalid timeout format"):
        one_time_schedule_expression("us-east-1", "soon", NOW)


def test_schedule_expression_repeat():
    assert schedule_expression(ScheduleType.REPEAT, "1 hour") == "rate(1 hour)"


def test_schedule_expression_one_time():
    assert schedule_expression(ScheduleType.ONE_TIME, "2024-01-15T12:30:00") == (
        "at(2024-01-15T12:30:00)"
    )


def test_schedule_type_values():
    assert ScheduleType("rate") is ScheduleType.REPEAT
    assert ScheduleType("at") is ScheduleType.ONE_TIME


def test_check_backed_url_rejects_local_file():
    with pytest.raises(InvalidBackedURLError):
        check_backed_url_for_serverless("file:///tmp/state")


def test_check_backed_url_accepts_remote():
    assert check_backed_url_for_serverless("s3://bucket/path") is None


def test_trust_policies_principals():
    task = task_role_trust_policy()
    scheduler = scheduler_role_trust_policy()
    assert task["Statement"][0]["Principal"]["Service"] == "ecs-tasks.amazonaws.com"
    assert scheduler["Statement"][0]["Principal"]["Service"] == "scheduler.amazonaws.com"
    assert task["Statement"][0]["Action"] == "sts:AssumeRole"


def test_role_policies_actions():
    task_actions = task_role_policy()["Statement"][0]["Action"]
    scheduler_actions = scheduler_role_policy()["Statement"][0]["Action"]
    assert "iam:PassRole" not in task_actions
    assert "iam:PassRole" in scheduler_actions
    assert set(task_actions) < set(scheduler_actions)
    assert scheduler_role_policy()["Statement"][0]["Resource"] == ["*"]


def test_policies_serialise_round_trip():
    for policy in (task_role_policy(), scheduler_role_trust_policy()):
        assert json.loads(json.dumps(policy)) == policy
        assert policy["Version"] == "2012-10-17"