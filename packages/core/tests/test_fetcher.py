"""Tests for the remote state fetcher.

All remote calls go through in-memory clients; no network access required.
"""

from __future__ import annotations

import asyncio

import pytest
from importwright.adapters import RemoteClient
from importwright.adapters.fixture import FixtureClient
from importwright.config import ImportSettings
from importwright.errors import AmbiguousID, NotFound, RemoteError, TransientError
from importwright.fetcher import RemoteStateFetcher


class _FlakyClient(RemoteClient):
    """Fails with TransientError a fixed number of times, then answers."""

    def __init__(self, failures: int, result: list[dict] | None = None, error: Exception | None = None):
        self.failures = failures
        self.result = result if result is not None else [{"id": "x", "name": "x"}]
        self.error = error
        self.calls = 0

    async def get_by_id(self, resource_type, external_id):
        self.calls += 1
        if self.error is not None:
            raise self.error
        if self.calls <= self.failures:
            raise TransientError("rate limited")
        return self.result


class _SlowClient(RemoteClient):
    def __init__(self, delay: float):
        self.delay = delay
        self.calls = 0

    async def get_by_id(self, resource_type, external_id):
        self.calls += 1
        await asyncio.sleep(self.delay)
        return [{"id": external_id}]


class TestMatches:
    def test_single_match(self, client, fast_settings):
        attrs = asyncio.run(RemoteStateFetcher(client, fast_settings).fetch("aws_s3_bucket", "logs"))
        assert attrs["bucket"] == "logs"

    def test_result_is_a_copy(self, fast_settings):
        shared = {"id": "a", "tags": {"k": "v"}}
        client = _FlakyClient(0, result=[shared])
        attrs = asyncio.run(RemoteStateFetcher(client, fast_settings).fetch("x_thing", "a"))
        attrs["tags"]["k"] = "changed"
        assert shared["tags"]["k"] == "v"

    def test_not_found(self, client, fast_settings):
        with pytest.raises(NotFound) as exc_info:
            asyncio.run(RemoteStateFetcher(client, fast_settings).fetch("aws_s3_bucket", "missing"))
        assert exc_info.value.external_id == "missing"

    def test_ambiguous(self, fast_settings):
        client = FixtureClient({"aws_s3_bucket": [{"id": "dup"}, {"id": "dup"}]})
        with pytest.raises(AmbiguousID) as exc_info:
            asyncio.run(RemoteStateFetcher(client, fast_settings).fetch("aws_s3_bucket", "dup"))
        assert exc_info.value.matches == 2

    def test_not_found_is_not_retried(self, fast_settings):
        client = _FlakyClient(0, result=[])
        with pytest.raises(NotFound):
            asyncio.run(RemoteStateFetcher(client, fast_settings).fetch("x_thing", "a"))
        assert client.calls == 1

    @pytest.mark.parametrize("match", ["not-a-mapping", ["id", "a"], None])
    def test_non_mapping_match_rejected(self, fast_settings, match):
        client = _FlakyClient(0, result=[match])
        with pytest.raises(RemoteError, match="expected an attribute mapping"):
            asyncio.run(RemoteStateFetcher(client, fast_settings).fetch("x_thing", "a"))
        assert client.calls == 1


class TestRetries:
    def test_transient_errors_retried(self, fast_settings):
        client = _FlakyClient(failures=2)
        attrs = asyncio.run(RemoteStateFetcher(client, fast_settings).fetch("x_thing", "x"))
        assert attrs["name"] == "x"
        assert client.calls == 3

    def test_gives_up_after_max_attempts(self, fast_settings):
        client = _FlakyClient(failures=10)
        with pytest.raises(TransientError) as exc_info:
            asyncio.run(RemoteStateFetcher(client, fast_settings).fetch("x_thing", "x"))
        assert client.calls == fast_settings.max_attempts
        assert exc_info.value.attempts == fast_settings.max_attempts
        assert "gave up after 3 attempts" in str(exc_info.value)

    def test_non_transient_propagates_immediately(self, fast_settings):
        client = _FlakyClient(0, error=RemoteError("HTTP 403"))
        with pytest.raises(RemoteError):
            asyncio.run(RemoteStateFetcher(client, fast_settings).fetch("x_thing", "x"))
        assert client.calls == 1

    def test_single_attempt_setting(self):
        settings = ImportSettings(max_attempts=1, backoff_multiplier=0)
        client = _FlakyClient(failures=1)
        with pytest.raises(TransientError):
            asyncio.run(RemoteStateFetcher(client, settings).fetch("x_thing", "x"))
        assert client.calls == 1


class TestTimeoutAndCancellation:
    def test_timeout_surfaces_as_transient(self):
        settings = ImportSettings(max_attempts=2, backoff_multiplier=0, timeout_seconds=0.01)
        client = _SlowClient(delay=1.0)
        with pytest.raises(TransientError, match="Timed out"):
            asyncio.run(RemoteStateFetcher(client, settings).fetch("x_thing", "x"))
        assert client.calls == 2

    def test_cancellation_propagates_without_retry(self, fast_settings):
        client = _SlowClient(delay=5.0)
        settings = fast_settings.model_copy(update={"timeout_seconds": 10.0})
        fetcher = RemoteStateFetcher(client, settings)

        async def _run():
            task = asyncio.create_task(fetcher.fetch("x_thing", "x"))
            await asyncio.sleep(0.01)
            task.cancel()
            await task

        with pytest.raises(asyncio.CancelledError):
            asyncio.run(_run())
        assert client.calls == 1
