"""Remote clients — look up real-world objects by type and external id."""

from __future__ import annotations

import ssl
import urllib.request
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any


def _ssl_context() -> ssl.SSLContext:
    """Create an SSL context using the certifi CA bundle."""
    import certifi

    return ssl.create_default_context(cafile=certifi.where())


def urlopen_safe(req: urllib.request.Request, timeout: float = 30) -> bytes:
    """urlopen with certifi SSL — use this instead of raw urllib.request.urlopen."""
    ctx = _ssl_context()
    with urllib.request.urlopen(req, timeout=timeout, context=ctx) as resp:
        return resp.read()


class RemoteClient(ABC):
    """Abstract base for remote-system clients.

    Implementations return *every* object matching the id; deciding whether
    zero or several matches is an error is the fetcher's job. Retryable
    failures (timeouts, rate limits, 5xx) must raise TransientError.
    """

    name: str = "remote"

    @abstractmethod
    async def get_by_id(self, resource_type: str, external_id: str) -> list[dict[str, Any]]:
        """Return the raw attribute mappings of all objects matching the id."""


def load_client(source: str) -> RemoteClient:
    """Resolve a client from a state file, fixture file, URL or plugin name."""
    if source.startswith(("http://", "https://")):
        from importwright.adapters.http import HttpJsonClient

        return HttpJsonClient(source)

    p = Path(source)
    if p.suffix == ".tfstate" or (p.suffix == ".json" and "tfstate" in p.name):
        from importwright.adapters.tfstate import TerraformStateClient

        return TerraformStateClient(p)

    if p.suffix in (".yaml", ".yml", ".json"):
        from importwright.adapters.fixture import FixtureClient

        return FixtureClient.from_file(p)

    from importwright.plugins import discover_clients

    plugins = discover_clients()
    if source in plugins:
        factory = plugins[source]
        return factory() if callable(factory) else factory

    raise ValueError(
        f"Cannot resolve remote client {source!r}. Pass a .tfstate file, a YAML/JSON fixture, "
        f"an http(s) URL, or an installed client plugin name ({', '.join(sorted(plugins)) or 'none installed'})."
    )


__all__ = ["RemoteClient", "load_client", "urlopen_safe"]
