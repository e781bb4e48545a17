"""Query name normalization and pod record matching."""
from __future__ import annotations

from typing import Iterable

from .records import PodRecord

# Queries under this suffix are answered from the pod directory.
ROOT_DOMAIN = "cluster.local."


def normalize_query_name(qname: str, domain: str = ROOT_DOMAIN) -> str | None:
    """Turn a query name into a directory lookup key.

    Args:
        qname: Query name as received, e.g. ``resnet50.cluster.local.``.
        domain: Root domain suffix.

    Returns:
        The name with the suffix and a trailing ``.`` removed, or None if the
        query is not under `domain`.
    """
    if not qname.endswith(domain):
        return None
    name = qname[: len(qname) - len(domain)]
    if name.endswith("."):
        name = name[:-1]
    return name


def find_record(name: str, records: Iterable[PodRecord]) -> PodRecord | None:
    """Return the first record whose name equals `name` exactly."""
    for rec in records:
        if rec.name == name:
            return rec
    return None
