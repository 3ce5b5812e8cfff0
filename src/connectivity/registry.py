"""Probe registry — loads probes.yaml into ProbeDescriptors.

Accepted entry shapes::

    probes:
      - host: 1.1.1.1        # TCP connect
        port: 443
      - url: https://status.example.com/ping   # HTTP HEAD
        timeout: 5
      - target: gateway.internal:22            # run by the default prober
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from .models import DEFAULT_PROBE_TIMEOUT, ProbeDescriptor

logger = logging.getLogger(__name__)

REGISTRY_PATH = Path(__file__).parent.parent.parent / "probes.yaml"


def _parse_probe(
    entry: dict[str, Any], default_timeout: float = DEFAULT_PROBE_TIMEOUT,
) -> ProbeDescriptor:
    timeout = float(entry.get("timeout", default_timeout))

    if "host" in entry:
        if "port" not in entry:
            raise ValueError(f"host {entry['host']!r} given without a port")
        return ProbeDescriptor.from_host_port(str(entry["host"]), int(entry["port"]), timeout)
    if "url" in entry:
        return ProbeDescriptor.from_url(str(entry["url"]), timeout)
    if "target" in entry:
        return ProbeDescriptor(target=str(entry["target"]), timeout=timeout)
    raise ValueError(f"probe entry needs host/port, url or target: {entry!r}")


class ProbeRegistry:
    """Loads and caches the probe list from a YAML file."""

    def __init__(
        self, path: Path | None = None, default_timeout: float = DEFAULT_PROBE_TIMEOUT,
    ) -> None:
        self._path = path or REGISTRY_PATH
        self.default_timeout = default_timeout
        self._probes: list[ProbeDescriptor] = []
        self._loaded = False

    @property
    def path(self) -> Path:
        return self._path

    @property
    def exists(self) -> bool:
        return self._path.exists()

    def load(self, force: bool = False) -> list[ProbeDescriptor]:
        """Parse the file; a missing or unreadable file yields an empty list."""
        if self._loaded and not force:
            return self._probes

        self._probes = []
        if not self._path.exists():
            logger.info("Probe file not found: %s, using defaults", self._path)
            self._loaded = True
            return self._probes

        try:
            raw = yaml.safe_load(self._path.read_text(encoding="utf-8")) or {}
        except Exception as e:
            logger.error("Failed to parse %s: %s", self._path, e)
            self._loaded = True
            return self._probes

        entries = (raw.get("probes") or []) if isinstance(raw, dict) else None
        if not isinstance(entries, list):
            logger.error("Expected a mapping with a 'probes' list in %s", self._path)
            self._loaded = True
            return self._probes

        for entry in entries:
            try:
                self._probes.append(_parse_probe(entry, self.default_timeout))
            except Exception as e:
                logger.warning("Skipping malformed probe entry: %s", e)

        self._loaded = True
        logger.info("Loaded %d probes from %s", len(self._probes), self._path)
        return self._probes

    def reload(self) -> list[ProbeDescriptor]:
        return self.load(force=True)

    @property
    def probes(self) -> list[ProbeDescriptor]:
        return self.load()
