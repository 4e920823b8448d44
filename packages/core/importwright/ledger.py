"""Binding ledger — records which external object each address represents.

The ledger keeps an append-only history of bind/unbind entries and derives
the current binding per address from it. When a path is given, each entry is
also appended to a JSON-lines file and replayed on load.

Per address the state machine is Unbound -> Bound -> Unbound. Moving a bound
address to a different external id requires an explicit unbind first.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from importwright.errors import DuplicateAddress, LedgerCorrupt, NotBound
from importwright.locks import ShardedLock
from importwright.spec import Binding, LedgerEntry, parse_address

logger = logging.getLogger(__name__)


class BindingLedger:
    def __init__(self, path: str | Path | None = None, shards: int = 16):
        self._path = Path(path) if path else None
        self._locks = ShardedLock(shards)
        self._current: dict[str, Binding] = {}
        self._history: list[LedgerEntry] = []
        if self._path and self._path.exists():
            self._replay(self._path)

    @property
    def path(self) -> Path | None:
        return self._path

    def _replay(self, path: Path) -> None:
        for lineno, line in enumerate(path.read_text().splitlines(), 1):
            if not line.strip():
                continue
            try:
                entry = LedgerEntry.model_validate_json(line)
            except ValidationError as exc:
                raise LedgerCorrupt(f"{path}:{lineno}: {exc}") from exc
            self._apply(entry)
        logger.debug("Replayed %d ledger entries from %s", len(self._history), path)

    def _apply(self, entry: LedgerEntry) -> None:
        self._history.append(entry)
        if entry.action == "bind":
            self._current[entry.binding.address] = entry.binding
        else:
            self._current.pop(entry.binding.address, None)

    def _commit(self, entry: LedgerEntry) -> None:
        # Disk first: memory never holds an entry the file lacks
        if self._path is not None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a") as fh:
                fh.write(entry.model_dump_json() + "\n")
        self._apply(entry)

    # Mutations

    async def record(self, address: str, external_id: str, fetched_at: datetime | None = None) -> Binding:
        """Bind ``address`` to ``external_id``.

        Idempotent for the same id: the existing Binding is returned unchanged
        and no history entry is written.
        """
        parse_address(address)
        async with self._locks.for_key(address):
            existing = self._current.get(address)
            if existing is not None:
                if existing.external_id == external_id:
                    return existing
                raise DuplicateAddress(address, existing.external_id, external_id)

            kwargs = {"fetched_at": fetched_at} if fetched_at else {}
            binding = Binding(address=address, external_id=external_id, **kwargs)
            self._commit(LedgerEntry(action="bind", binding=binding))
            logger.info("Bound %s -> %s", address, external_id)
            return binding

    async def unbind(self, address: str) -> Binding:
        """Remove the current binding for ``address``; history is kept."""
        async with self._locks.for_key(address):
            existing = self._current.get(address)
            if existing is None:
                raise NotBound(address)
            self._commit(LedgerEntry(action="unbind", binding=existing))
            logger.info("Unbound %s (was %s)", address, existing.external_id)
            return existing

    # Queries

    def current(self, address: str) -> Binding | None:
        return self._current.get(address)

    def bindings(self) -> list[Binding]:
        return [self._current[a] for a in sorted(self._current)]

    def history(self, address: str | None = None) -> list[LedgerEntry]:
        if address is None:
            return list(self._history)
        return [e for e in self._history if e.binding.address == address]

    def __len__(self) -> int:
        return len(self._current)
