"""Access to AWS service clients and helpers shared by the lookups."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, Mapping
from typing import Any

ClientFactory = Callable[[str, "str | None"], Any]


class AwsClients:
    """Creates service clients on demand and caches them per service and region.

    The factory receives the service name (``"ec2"``, ``"ecs"``, ``"iam"``,
    ``"s3"``) and a region, or ``None`` for the default region, and returns a
    client exposing the AWS API operations with boto-style keyword arguments.
    """

    def __init__(self, factory: ClientFactory) -> None:
        self._factory = factory
        self._cache: dict[tuple[str, str | None], Any] = {}
        self._lock = threading.Lock()

    def _client(self, service: str, region: str | None) -> Any:
        key = (service, region or None)
        with self._lock:
            if key not in self._cache:
                self._cache[key] = self._factory(service, key[1])
            return self._cache[key]

    def ec2(self, region: str | None = None) -> Any:
        """EC2 client for ``region``, or for the default region when empty."""
        return self._client("ec2", region)

    def ecs(self, region: str | None = None) -> Any:
        """ECS client for ``region``, or for the default region when empty."""
        return self._client("ecs", region)

    def iam(self) -> Any:
        """IAM client using the default configuration."""
        return self._client("iam", None)

    def s3(self) -> Any:
        """S3 client using the default configuration."""
        return self._client("s3", None)


def all_tags_matches(
    tags: Mapping[str, str], resource_tags: Iterable[Mapping[str, str]] | None
) -> bool:
    """True when every key/value pair in ``tags`` is among ``resource_tags``."""
    present = {(t.get("Key"), t.get("Value")) for t in resource_tags or ()}
    return all((key, value) in present for key, value in tags.items())