"""Resolve-or-defer DNS handler backed by the pod directory."""
from __future__ import annotations

import logging
from typing import Callable, Protocol

from dnslib import QTYPE, RCODE, RR, A, DNSRecord

from .directory import PodDirectory
from .resolver import ROOT_DOMAIN, find_record, normalize_query_name


class ResponseWriter(Protocol):
    def write(self, reply: DNSRecord) -> None: ...


# A chain element: handles the request (writing through the writer) and
# returns the response code.
Handler = Callable[[DNSRecord, ResponseWriter], int]


class PodQueryHandler:
    """Answers A queries under ``cluster.local.`` from the pod directory.

    Args:
        directory: Directory holding the current pod records.
        ttl: TTL of synthesized answers, in seconds.
        nxdomain_on_miss: Reply NXDOMAIN when no pod matches instead of an
            empty NOERROR answer.
        a_queries_only: Answer only A and ANY questions; other types get an
            empty answer. Off by default, so any question type for a known
            pod receives its A record.
        domain: Root domain suffix of in-scope queries.
        logger: Logger to use instead of the module logger.
    """

    def __init__(
        self,
        directory: PodDirectory,
        ttl: int = 30,
        nxdomain_on_miss: bool = False,
        a_queries_only: bool = False,
        domain: str = ROOT_DOMAIN,
        logger: logging.Logger | None = None,
    ) -> None:
        self.directory = directory
        self.ttl = ttl
        self.nxdomain_on_miss = nxdomain_on_miss
        self.a_queries_only = a_queries_only
        self.domain = domain
        self.logger = logger or logging.getLogger(__name__)

    def serve(self, request: DNSRecord, writer: ResponseWriter, next_handler: Handler) -> int:
        """Handle one request.

        Out-of-scope names are passed to `next_handler` and its result is
        returned unchanged. In-scope names are always answered here. Names
        are compared in lower case.

        Returns:
            int: DNS response code.
        """
        qname = str(request.q.qname).lower()
        name = normalize_query_name(qname, self.domain)
        if name is None:
            return next_handler(request, writer)
        return self.query_pod(name, qname, request, writer)

    def query_pod(self, name: str, qname: str, request: DNSRecord, writer: ResponseWriter) -> int:
        """Answer an in-scope query for pod `name`, owned by `qname`."""
        self.logger.debug("query for pod name %r", name)
        # ra=1 keeps tools such as nslookup from complaining.
        reply = request.reply(ra=1, aa=1)

        rec = find_record(name, self.directory.snapshot())
        if rec is None:
            self.logger.info("no matching pod record for %r", name)
            if self.nxdomain_on_miss:
                reply.header.rcode = RCODE.NXDOMAIN
        elif not self.a_queries_only or request.q.qtype in (QTYPE.A, QTYPE.ANY):
            reply.add_answer(
                RR(qname, QTYPE.A, rclass=request.q.qclass, ttl=self.ttl, rdata=A(rec.address))
            )

        writer.write(reply)
        return reply.header.rcode

    def bind(self, next_handler: Handler) -> Handler:
        """Return a chain element that defers to `next_handler`."""

        def handle(request: DNSRecord, writer: ResponseWriter) -> int:
            return self.serve(request, writer, next_handler)

        return handle
