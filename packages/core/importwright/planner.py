"""Import planner — fetch, reconcile, render and bind, one request at a time per address.

Pipeline for a single request::

    schema lookup -> conflict pre-check -> fetch -> reconcile -> render -> ledger.record

``ledger.record`` is the only write and happens last, so a request that is
cancelled or fails earlier never leaves a Binding behind. Requests for
different addresses run concurrently; requests for the same address are
serialized.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from importwright.config import ImportSettings
from importwright.errors import DuplicateAddress, ImportwrightError
from importwright.exporter.emitter import ConfigEmitter
from importwright.exporter.hcl import render_hcl
from importwright.fetcher import RemoteStateFetcher
from importwright.ledger import BindingLedger
from importwright.locks import ShardedLock
from importwright.parser import parse_import_requests
from importwright.reconciler import reconcile
from importwright.registry import SchemaRegistry
from importwright.spec import AttributeSet, Binding, ImportRequest, RenderedBlock

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    request: ImportRequest
    block: RenderedBlock
    import_block: RenderedBlock
    attributes: AttributeSet
    binding: Binding | None = None


@dataclass
class ImportFailure:
    address: str
    external_id: str
    error: str  # ImportwrightError.kind
    message: str


@dataclass
class ImportReport:
    results: list[ImportResult] = field(default_factory=list)
    failures: list[ImportFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def blocks(self, include_import_blocks: bool = True) -> list[RenderedBlock]:
        blocks: list[RenderedBlock] = []
        for result in self.results:
            if include_import_blocks:
                blocks.append(result.import_block)
            blocks.append(result.block)
        return blocks

    def to_hcl(self, include_import_blocks: bool = True) -> str:
        return render_hcl(self.blocks(include_import_blocks))

    def to_dict(self) -> dict[str, Any]:
        return {
            "imported": [
                {
                    "address": r.request.address,
                    "external_id": r.request.external_id,
                    "bound": r.binding is not None,
                    "notes": list(r.block.notes),
                    "hcl": r.block.to_hcl(),
                }
                for r in self.results
            ],
            "failed": [
                {"address": f.address, "external_id": f.external_id, "error": f.error, "message": f.message}
                for f in self.failures
            ],
        }


class ImportPlanner:
    def __init__(
        self,
        registry: SchemaRegistry,
        fetcher: RemoteStateFetcher,
        ledger: BindingLedger,
        emitter: ConfigEmitter | None = None,
        settings: ImportSettings | None = None,
    ):
        self._settings = settings or ImportSettings()
        self._registry = registry
        self._fetcher = fetcher
        self._ledger = ledger
        self._emitter = emitter or ConfigEmitter(registry, reveal_sensitive=self._settings.reveal_sensitive)
        self._inflight = ShardedLock(self._settings.lock_shards)

    @property
    def ledger(self) -> BindingLedger:
        return self._ledger

    async def plan(self, request: ImportRequest, record: bool = True) -> ImportResult:
        """Run the full pipeline for one request. Raises ImportwrightError on failure."""
        schema = self._registry.lookup(request.resource_type)

        async with self._inflight.for_key(request.address):
            existing = self._ledger.current(request.address)
            if existing is not None and existing.external_id != request.external_id:
                raise DuplicateAddress(request.address, existing.external_id, request.external_id)

            fetched = await self._fetcher.fetch(request.resource_type, request.external_id)
            fetched_at = datetime.now(timezone.utc)
            attrs = reconcile(schema, fetched)
            block = self._emitter.render(request.resource_type, request.local_name, attrs)

            binding = None
            if record:
                binding = await self._ledger.record(request.address, request.external_id, fetched_at=fetched_at)

        logger.debug("Planned %s (%s)", request.address, request.external_id)
        return ImportResult(
            request=request,
            block=block,
            import_block=self._emitter.render_import(request),
            attributes=attrs,
            binding=binding,
        )

    async def plan_many(self, requests: Iterable[ImportRequest], record: bool = True) -> ImportReport:
        """Plan every request concurrently; one failing request never aborts the others."""
        requests = list(requests)
        semaphore = asyncio.Semaphore(self._settings.max_concurrency)

        async def _run(request: ImportRequest) -> ImportResult | ImportFailure:
            async with semaphore:
                try:
                    return await self.plan(request, record=record)
                except ImportwrightError as exc:
                    logger.warning("Import of %s (%s) failed: %s", request.address, request.external_id, exc)
                    return ImportFailure(request.address, request.external_id, exc.kind, str(exc))
                except Exception as exc:
                    logger.exception("Import of %s (%s) failed unexpectedly", request.address, request.external_id)
                    return ImportFailure(request.address, request.external_id, type(exc).__name__, str(exc))

        outcomes = await asyncio.gather(*(_run(r) for r in requests))

        report = ImportReport()
        for outcome in outcomes:
            if isinstance(outcome, ImportFailure):
                report.failures.append(outcome)
            else:
                report.results.append(outcome)
        return report

    async def plan_text(self, text: str, record: bool = True) -> ImportReport:
        return await self.plan_many(parse_import_requests(text), record=record)

    async def plan_file(self, path: str | Path, record: bool = True) -> ImportReport:
        return await self.plan_text(Path(path).read_text(), record=record)
