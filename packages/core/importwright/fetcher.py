"""Retrieve one real-world object's attributes."""

from __future__ import annotations

import asyncio
import copy
import logging
from typing import TYPE_CHECKING, Any

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from importwright.config import ImportSettings
from importwright.errors import AmbiguousID, NotFound, RemoteError, TransientError

if TYPE_CHECKING:
    from importwright.adapters import RemoteClient

logger = logging.getLogger(__name__)


class RemoteStateFetcher:
    """Wraps a RemoteClient with timeout, retry and match-count checks.

    Only TransientError is retried. NotFound, AmbiguousID and anything else
    the client raises propagate on the first occurrence. Cancellation is
    never retried.
    """

    def __init__(self, client: RemoteClient, settings: ImportSettings | None = None):
        self._client = client
        self._settings = settings or ImportSettings()

    @property
    def client(self) -> RemoteClient:
        return self._client

    def _retrying(self) -> AsyncRetrying:
        s = self._settings
        return AsyncRetrying(
            stop=stop_after_attempt(s.max_attempts),
            wait=wait_exponential(multiplier=s.backoff_multiplier, max=s.backoff_max),
            retry=retry_if_exception_type(TransientError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    async def fetch(self, resource_type: str, external_id: str) -> dict[str, Any]:
        """Return the attributes of the single object matching ``external_id``."""
        attempts = 0
        try:
            async for attempt in self._retrying():
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    matches = await self._call(resource_type, external_id)
        except TransientError as exc:
            exc.attempts = attempts
            raise

        if not matches:
            raise NotFound(resource_type, external_id)
        if len(matches) > 1:
            raise AmbiguousID(resource_type, external_id, len(matches))
        if not isinstance(matches[0], dict):
            kind = type(matches[0]).__name__
            raise RemoteError(f"{resource_type} {external_id!r}: expected an attribute mapping, got {kind}")

        logger.debug("Fetched %s %r after %d attempt(s)", resource_type, external_id, attempts)
        return copy.deepcopy(matches[0])

    async def _call(self, resource_type: str, external_id: str) -> list[dict[str, Any]]:
        timeout = self._settings.timeout_seconds
        try:
            return await asyncio.wait_for(self._client.get_by_id(resource_type, external_id), timeout)
        except asyncio.TimeoutError as exc:
            raise TransientError(f"Timed out after {timeout:g}s fetching {resource_type} {external_id!r}") from exc
