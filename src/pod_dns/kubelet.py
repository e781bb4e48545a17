"""Asynchronous kubelet API client."""
from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp


class KubeletError(Exception):
    """Raised when the kubelet pod list cannot be fetched or decoded."""


class KubeletClient:
    """Reads pod state from the node-local kubelet.

    Args:
        base_url: Kubelet endpoint, e.g. ``https://localhost:10250``.
        pods_api: Path of the pod list API.
        healthz_api: Path of the health API.
        timeout: Total timeout per request, in seconds.
        verify_tls: Verify the server certificate. The kubelet usually serves
            a self-signed certificate, so this is off by default.
        instance_id: Node instance id; ``-<instance_id>`` is trimmed from
            pod names when set.
        logger: Logger to use instead of the module logger.
    """

    def __init__(
        self,
        base_url: str,
        pods_api: str = "/pods",
        healthz_api: str = "/healthz",
        timeout: float = 10.0,
        verify_tls: bool = False,
        instance_id: str = "",
        logger: logging.Logger | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.pods_api = pods_api
        self.healthz_api = healthz_api
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.verify_tls = verify_tls
        self.instance_id = instance_id.lower()
        self.logger = logger or logging.getLogger(__name__)
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        """Return the shared HTTP session, creating it on first use."""
        if self._session is None or self._session.closed:
            # Single connection to the kubelet; ssl=False skips certificate checks.
            connector = aiohttp.TCPConnector(limit_per_host=1, ssl=self.verify_tls)
            self._session = aiohttp.ClientSession(connector=connector, timeout=self.timeout)
        return self._session

    async def close(self) -> None:
        """Close the HTTP session; the next request opens a new one."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def get_pods(self) -> list[dict[str, Any]]:
        """Fetch the pods running on this node.

        Returns:
            list[dict]: The ``items`` of the kubelet ``PodList``.

        Raises:
            KubeletError: On transport errors, timeouts, non-2xx statuses or
                an undecodable body.
        """
        url = self.base_url + self.pods_api
        try:
            async with self._get_session().get(url) as response:
                if not 200 <= response.status < 300:
                    raise KubeletError(f"GET {url}: HTTP {response.status}")
                data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise KubeletError(f"GET {url}: {exc!r}") from exc
        except ValueError as exc:
            raise KubeletError(f"GET {url}: invalid JSON: {exc}") from exc

        if not isinstance(data, dict):
            raise KubeletError(f"GET {url}: expected a PodList object")
        items = data.get("items") or []
        if not isinstance(items, list):
            raise KubeletError(f"GET {url}: 'items' must be a list")

        self._trim_instance_id(items)
        return items

    async def is_healthy(self) -> bool:
        """Return True when the kubelet health endpoint answers 200."""
        url = self.base_url + self.healthz_api
        try:
            async with self._get_session().get(url) as response:
                return response.status == 200
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            self.logger.warning("kubelet health check failed: %r", exc)
            return False

    def _trim_instance_id(self, pods: list[dict[str, Any]]) -> None:
        """Remove the ``-<instance_id>`` suffix from pod names in place."""
        if not self.instance_id:
            self.logger.warning("INSTANCE_ID not set, pod names kept as reported")
            return
        suffix = f"-{self.instance_id}"
        for pod in pods:
            metadata = pod.get("metadata") if isinstance(pod, dict) else None
            if not isinstance(metadata, dict):
                continue
            name = metadata.get("name")
            if isinstance(name, str) and name.endswith(suffix):
                metadata["name"] = name[: -len(suffix)]
