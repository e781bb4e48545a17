"""Settings loading from YAML and the process environment."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Mapping

import yaml

logger = logging.getLogger(__name__)

SYNC_INTERVAL_ENV = "KUBELET_STATUS_SYNC_INTERVAL"
RECORD_TTL_ENV = "LOCAL_CLUSTER_DNS_RECORD_TTL"
INSTANCE_ID_ENV = "INSTANCE_ID"

DEFAULT_SYNC_INTERVAL = 10
DEFAULT_RECORD_TTL = 30
MAX_RECORD_TTL = 2**32 - 1

TIE_BREAKS: tuple[str, ...] = ("snapshot", "pod_name")


@dataclass(slots=True)
class Settings:
    """Runtime settings, resolved once at startup.

    Attributes:
        kubelet_addr: Base URL of the kubelet API.
        pods_api: Path of the pod list endpoint.
        healthz_api: Path of the health endpoint.
        request_timeout: Total timeout for one kubelet request, in seconds.
        verify_tls: Verify the kubelet certificate.
        instance_id: Node instance id trimmed from pod names.
        sync_interval: Seconds between directory refreshes.
        record_ttl: TTL of synthesized A records, in seconds.
        nxdomain_on_miss: Answer NXDOMAIN instead of an empty NOERROR.
        a_queries_only: Leave non-A questions for known pods unanswered.
        tie_break: Ordering of records sharing a name ("snapshot" or "pod_name").
    """

    kubelet_addr: str = "https://localhost:10250"
    pods_api: str = "/pods"
    healthz_api: str = "/healthz"
    request_timeout: float = 10.0
    verify_tls: bool = False
    instance_id: str = ""
    sync_interval: int = DEFAULT_SYNC_INTERVAL
    record_ttl: int = DEFAULT_RECORD_TTL
    nxdomain_on_miss: bool = False
    a_queries_only: bool = False
    tie_break: str = "snapshot"


def env_int(
    environ: Mapping[str, str],
    name: str,
    default: int,
    minimum: int | None = None,
    maximum: int | None = None,
) -> int:
    """Read an integer from the environment.

    Missing variables yield `default`. Malformed values and values outside
    `minimum`..`maximum` yield `default` and log a warning.
    """
    raw = environ.get(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("%s=%r is not an integer, using default %d", name, raw, default)
        return default
    if (minimum is not None and value < minimum) or (maximum is not None and value > maximum):
        logger.warning("%s=%d is out of range, using default %d", name, value, default)
        return default
    return value


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    """Return the mapping under `key`, or {} when the section is absent."""
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ValueError(f"'{key}' must be a mapping")
    return value


def _read_yaml(path: str) -> dict[str, Any]:
    """Parse the YAML file at `path` into a mapping."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"YAML parsing error: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError("configuration root must be a mapping")
    return data


def load_settings(path: str | None = None, environ: Mapping[str, str] | None = None) -> Settings:
    """Build `Settings` from an optional YAML file and the environment.

    Args:
        path: YAML configuration path, or None for built-in defaults.
        environ: Environment mapping; defaults to `os.environ`.

    Returns:
        Settings: Resolved settings.

    Raises:
        FileNotFoundError: If `path` is given but does not exist.
        ValueError: On invalid YAML structure or values.
    """
    if environ is None:
        environ = os.environ
    settings = Settings()

    if path is not None:
        data = _read_yaml(path)
        kubelet = _section(data, "kubelet")
        dns = _section(data, "dns")
        try:
            settings.kubelet_addr = str(kubelet.get("service_addr", settings.kubelet_addr)).rstrip("/")
            settings.pods_api = str(kubelet.get("pods_api", settings.pods_api))
            settings.healthz_api = str(kubelet.get("healthz_api", settings.healthz_api))
            settings.request_timeout = float(kubelet.get("timeout", settings.request_timeout))
            settings.verify_tls = bool(kubelet.get("verify_tls", settings.verify_tls))
            settings.nxdomain_on_miss = bool(dns.get("nxdomain_on_miss", settings.nxdomain_on_miss))
            settings.a_queries_only = bool(dns.get("a_queries_only", settings.a_queries_only))
            settings.tie_break = str(dns.get("tie_break", settings.tie_break))
        except (TypeError, ValueError) as exc:
            raise ValueError(f"invalid configuration value: {exc}") from exc

        if settings.tie_break not in TIE_BREAKS:
            raise ValueError(f"unsupported tie_break '{settings.tie_break}'")
        logger.info("configuration loaded from %s", path)

    settings.sync_interval = env_int(environ, SYNC_INTERVAL_ENV, DEFAULT_SYNC_INTERVAL, minimum=1)
    settings.record_ttl = env_int(environ, RECORD_TTL_ENV, DEFAULT_RECORD_TTL, minimum=0, maximum=MAX_RECORD_TTL)
    settings.instance_id = environ.get(INSTANCE_ID_ENV, "").lower()
    return settings
