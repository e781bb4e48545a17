"""Server entry point and lifecycle management."""
from __future__ import annotations

import asyncio
import logging
import socket

from .config import load_settings
from .directory import PodDirectory
from .handler import PodQueryHandler
from .kubelet import KubeletClient
from .protocol import DNSUDPProtocol, servfail
from .synchronizer import DirectorySynchronizer


async def serve(config_path: str | None, host: str, port: int, log_level: str = "INFO") -> None:
    """Run the pod DNS server.

    Loads settings, starts the directory synchronizer, binds a UDP socket and
    runs until cancelled.

    Args:
        config_path (str | None): Optional YAML configuration file.
        host (str): IP address to bind to.
        port (int): UDP port number to listen on.
        log_level (str, optional): Logging verbosity level. Defaults to "INFO".

    Raises:
        OSError: If the socket cannot be bound.
        ValueError: On an invalid configuration file.
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger = logging.getLogger(__name__)

    settings = load_settings(config_path)
    directory = PodDirectory()
    client = KubeletClient(
        settings.kubelet_addr,
        pods_api=settings.pods_api,
        healthz_api=settings.healthz_api,
        timeout=settings.request_timeout,
        verify_tls=settings.verify_tls,
        instance_id=settings.instance_id,
        logger=logging.getLogger("pod_dns.kubelet"),
    )
    synchronizer = DirectorySynchronizer(
        client,
        directory,
        interval=settings.sync_interval,
        tie_break=settings.tie_break,
        logger=logging.getLogger("pod_dns.synchronizer"),
    )
    handler = PodQueryHandler(
        directory,
        ttl=settings.record_ttl,
        nxdomain_on_miss=settings.nxdomain_on_miss,
        a_queries_only=settings.a_queries_only,
        logger=logging.getLogger("pod_dns.handler"),
    )

    loop = asyncio.get_running_loop()
    try:
        if not await client.is_healthy():
            logger.warning("kubelet at %s is not healthy yet", settings.kubelet_addr)

        transport, _ = await loop.create_datagram_endpoint(
            lambda: DNSUDPProtocol(handler.bind(servfail)),
            local_addr=(host, port),
            family=socket.AF_INET,
        )
        synchronizer.start()
        try:
            await asyncio.Future()
        except asyncio.CancelledError:
            logger.info("server task cancelled")
        finally:
            logger.info("shutting down…")
            transport.close()
            await synchronizer.stop()
    finally:
        await client.close()
