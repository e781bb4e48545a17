import asyncio
import logging

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp import test_utils

from pod_dns.kubelet import KubeletClient, KubeletError


def _pod_list(*names: str) -> dict:
    return {
        "kind": "PodList",
        "apiVersion": "v1",
        "items": [{"metadata": {"name": name}, "status": {"podIP": "10.0.0.5"}} for name in names],
    }


@pytest_asyncio.fixture
async def kubelet():
    """In-process kubelet whose /pods and /healthz behaviour tests can set."""
    state = {"pods": web.json_response(_pod_list()), "healthz": web.Response(text="ok"), "delay": 0.0}

    async def pods(request: web.Request) -> web.StreamResponse:
        if state["delay"]:
            await asyncio.sleep(state["delay"])
        return state["pods"]

    async def healthz(request: web.Request) -> web.StreamResponse:
        return state["healthz"]

    app = web.Application()
    app.router.add_get("/pods", pods)
    app.router.add_get("/healthz", healthz)
    server = test_utils.TestServer(app)
    await server.start_server()
    try:
        yield server, state
    finally:
        await server.close()


def _client(server: test_utils.TestServer, **kwargs) -> KubeletClient:
    return KubeletClient(str(server.make_url("")), **kwargs)


async def test_get_pods_returns_items(kubelet) -> None:
    server, state = kubelet
    state["pods"] = web.json_response(_pod_list("resnet50-abc123", "bert-1"))
    client = _client(server, instance_id="node0")
    try:
        pods = await client.get_pods()
    finally:
        await client.close()

    assert [p["metadata"]["name"] for p in pods] == ["resnet50-abc123", "bert-1"]


async def test_get_pods_trims_instance_id(kubelet) -> None:
    server, state = kubelet
    state["pods"] = web.json_response(_pod_list("resnet50-abc123-vm0001", "other-vm0002"))
    client = _client(server, instance_id="VM0001")
    try:
        pods = await client.get_pods()
    finally:
        await client.close()

    assert [p["metadata"]["name"] for p in pods] == ["resnet50-abc123", "other-vm0002"]


async def test_missing_instance_id_warns(kubelet, caplog: pytest.LogCaptureFixture) -> None:
    server, state = kubelet
    state["pods"] = web.json_response(_pod_list("web-1"))
    client = _client(server)
    try:
        with caplog.at_level(logging.WARNING, logger="pod_dns.kubelet"):
            pods = await client.get_pods()
    finally:
        await client.close()

    assert pods[0]["metadata"]["name"] == "web-1"
    assert "INSTANCE_ID" in caplog.text


async def test_empty_pod_list(kubelet) -> None:
    server, state = kubelet
    state["pods"] = web.json_response({"kind": "PodList", "items": None})
    client = _client(server, instance_id="node0")
    try:
        assert await client.get_pods() == []
    finally:
        await client.close()


@pytest.mark.parametrize(
    "response",
    [
        lambda: web.Response(status=500, text="boom"),
        lambda: web.Response(status=401, text="Unauthorized"),
        lambda: web.Response(text="not json"),
        lambda: web.json_response([1, 2, 3]),
        lambda: web.json_response({"items": "nope"}),
    ],
)
async def test_bad_responses_raise(kubelet, response) -> None:
    server, state = kubelet
    state["pods"] = response()
    client = _client(server, instance_id="node0")
    try:
        with pytest.raises(KubeletError):
            await client.get_pods()
    finally:
        await client.close()


async def test_timeout_raises(kubelet) -> None:
    server, state = kubelet
    state["delay"] = 1.0
    client = _client(server, timeout=0.1, instance_id="node0")
    try:
        with pytest.raises(KubeletError):
            await client.get_pods()
    finally:
        await client.close()


async def test_connection_refused_raises() -> None:
    client = KubeletClient("http://127.0.0.1:9", timeout=1.0, instance_id="node0")
    try:
        with pytest.raises(KubeletError):
            await client.get_pods()
    finally:
        await client.close()


async def test_health(kubelet) -> None:
    server, state = kubelet
    client = _client(server)
    try:
        assert await client.is_healthy() is True
        state["healthz"] = web.Response(status=503)
        assert await client.is_healthy() is False
    finally:
        await client.close()


async def test_health_unreachable() -> None:
    client = KubeletClient("http://127.0.0.1:9", timeout=1.0)
    try:
        assert await client.is_healthy() is False
    finally:
        await client.close()
