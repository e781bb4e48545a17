"""Pod records and their derivation from kubelet pod descriptors."""
from __future__ import annotations

import ipaddress
import logging
from dataclasses import dataclass
from typing import Any, Iterable

logger = logging.getLogger(__name__)

USER_POD_LABEL = "userPod"
USER_POD_VALUE = "true"


@dataclass(frozen=True, slots=True)
class PodRecord:
    """Single resolvable pod.

    Attributes:
        name (str): Matching name used as the DNS lookup key.
        address (str): IPv4 address of the pod.
        port (int | None): First declared container port, if any.
        pod_name (str): Pod name as reported by the kubelet.
    """

    name: str
    address: str
    port: int | None = None
    pod_name: str = ""


def matching_name(pod_name: str) -> str:
    """Strip the runtime-assigned trailing segment from a pod name.

    ``resnet50-abc123`` becomes ``resnet50``; names without ``-`` (or whose
    only ``-`` is the first character) are returned unchanged.
    """
    index = pod_name.rfind("-")
    if index > 0:
        return pod_name[:index]
    return pod_name


def _mapping(value: Any) -> dict[str, Any]:
    """Return `value` if it is a JSON object, otherwise an empty dict."""
    return value if isinstance(value, dict) else {}


def is_user_pod(pod: dict[str, Any]) -> bool:
    """Return True when the pod carries the ``userPod: "true"`` label."""
    labels = _mapping(_mapping(pod.get("metadata")).get("labels"))
    return labels.get(USER_POD_LABEL) == USER_POD_VALUE


def _first_port(pod: dict[str, Any]) -> int | None:
    """Return the first container's first declared port, if any."""
    containers = _mapping(pod.get("spec")).get("containers")
    if not isinstance(containers, list) or not containers:
        return None
    ports = _mapping(containers[0]).get("ports")
    if not isinstance(ports, list) or not ports:
        return None
    try:
        return int(_mapping(ports[0])["containerPort"])
    except (KeyError, TypeError, ValueError):
        return None


def pod_record(pod: dict[str, Any]) -> PodRecord | None:
    """Build a `PodRecord` for one pod descriptor.

    Args:
        pod: Decoded kubelet pod object.

    Returns:
        The record, or None when the pod has no name or no valid IPv4 address.
    """
    pod_name = str(_mapping(pod.get("metadata")).get("name") or "")
    name = matching_name(pod_name)
    if not name:
        logger.debug("pod without name skipped")
        return None

    ip = str(_mapping(pod.get("status")).get("podIP") or "")
    try:
        ipaddress.IPv4Address(ip)
    except ipaddress.AddressValueError:
        logger.debug("pod %s skipped: invalid IPv4 address %r", pod_name, ip)
        return None

    return PodRecord(name=name, address=ip, port=_first_port(pod), pod_name=pod_name)


def user_pod_records(pods: Iterable[dict[str, Any]]) -> list[PodRecord]:
    """Transform kubelet pods into directory records.

    Only pods labelled ``userPod: "true"`` are kept; descriptor order is
    preserved.
    """
    records: list[PodRecord] = []
    for pod in pods:
        if not isinstance(pod, dict):
            logger.debug("non-object pod entry skipped: %r", pod)
            continue
        try:
            if not is_user_pod(pod):
                continue
            rec = pod_record(pod)
        except (AttributeError, TypeError, KeyError, IndexError) as exc:
            logger.debug("malformed pod skipped: %r", exc)
            continue
        if rec is None:
            continue
        logger.debug("pod %s -> %s %s port=%s", rec.pod_name, rec.name, rec.address, rec.port)
        records.append(rec)
    return records
