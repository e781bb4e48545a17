"""Asyncio UDP protocol dispatching DNS queries through a handler chain."""
from __future__ import annotations

import asyncio
import logging
from typing import Any

from dnslib import QTYPE, RCODE, DNSRecord
from dnslib.dns import DNSError

from .handler import Handler, ResponseWriter

logger = logging.getLogger(__name__)


def servfail(request: DNSRecord, writer: ResponseWriter) -> int:
    """Terminal chain element used when no handler answers the query."""
    reply = request.reply(ra=1, aa=0)
    reply.header.rcode = RCODE.SERVFAIL
    writer.write(reply)
    return RCODE.SERVFAIL


class DatagramWriter:
    """Sends replies for one datagram back to its sender."""

    def __init__(self, transport: asyncio.DatagramTransport | None, addr: Any) -> None:
        """Bind the writer to `transport` and the client address `addr`."""
        self.transport = transport
        self.addr = addr

    def write(self, reply: DNSRecord) -> None:
        """Pack `reply` and send it to the client; send errors are logged.

        Args:
            reply: Response to send.
        """
        if self.transport is None:
            return
        try:
            self.transport.sendto(reply.pack(), self.addr)
        except (OSError, RuntimeError) as exc:
            logger.warning("failed to send response to %s: %s", self.addr, exc)


class DNSUDPProtocol(asyncio.DatagramProtocol):
    """DNS over UDP front end.

    Attributes:
        transport: Active UDP transport or None until connected.
        handler: First element of the handler chain.
    """

    def __init__(self, handler: Handler) -> None:
        """Initialize the protocol.

        Args:
            handler: Chain element invoked for every parsed request.
        """
        self.transport: asyncio.DatagramTransport | None = None
        self.handler = handler

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        """Called by asyncio when the UDP socket is ready.

        Args:
            transport: Created datagram transport.
        """
        self.transport = transport  # type: ignore[assignment]
        sock = self.transport.get_extra_info("socket")
        logger.info("UDP listening on %s", sock.getsockname() if sock else "?")

    def datagram_received(self, data: bytes, addr: Any) -> None:
        """Parse a datagram and run it through the handler chain."""
        logger.debug("received %d bytes from %s", len(data), addr)

        try:
            request = DNSRecord.parse(data)
        except DNSError:
            logger.debug("failed to parse request from %s", addr)
            return

        logger.debug("%s query: %s %s", addr, request.q.qname, QTYPE.get(request.q.qtype))
        rcode = self.handler(request, DatagramWriter(self.transport, addr))
        logger.debug("%s answered with %s", addr, RCODE.get(rcode))
