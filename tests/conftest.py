from __future__ import annotations

from typing import Any

import pytest
from dnslib import DNSRecord


def make_pod(
    name: str,
    ip: str = "10.0.0.5",
    port: int | None = 8080,
    user: bool = True,
    labels: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Build a kubelet pod object with the fields the directory reads."""
    pod_labels = dict(labels or {})
    if user:
        pod_labels["userPod"] = "true"
    container: dict[str, Any] = {"name": "main", "image": "model:latest"}
    if port is not None:
        container["ports"] = [{"containerPort": port, "protocol": "TCP"}]
    return {
        "metadata": {"name": name, "namespace": "default", "labels": pod_labels},
        "spec": {"containers": [container]},
        "status": {"phase": "Running", "podIP": ip},
    }


class RecordingWriter:
    """Response writer keeping every reply it is given."""

    def __init__(self) -> None:
        self.replies: list[DNSRecord] = []

    def write(self, reply: DNSRecord) -> None:
        self.replies.append(reply)


class FakePodSource:
    """Pod source returning queued results; exceptions are raised."""

    def __init__(self, *results: Any) -> None:
        self.results = list(results)
        self.calls = 0

    async def get_pods(self) -> list[dict[str, Any]]:
        self.calls += 1
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def pod():
    return make_pod


@pytest.fixture
def writer() -> RecordingWriter:
    return RecordingWriter()


@pytest.fixture
def pod_source():
    return FakePodSource
