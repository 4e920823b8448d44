"""Per-key mutual exclusion, sharded by a stable hash of the key."""

from __future__ import annotations

import asyncio
import zlib


class ShardedLock:
    """A fixed pool of asyncio locks; each key always maps to the same shard.

    Keys on different shards never contend. Two keys can share a shard, which
    only costs throughput, never correctness.
    """

    def __init__(self, shards: int = 16):
        if shards < 1:
            raise ValueError("shards must be >= 1")
        self._locks = [asyncio.Lock() for _ in range(shards)]

    def __len__(self) -> int:
        return len(self._locks)

    def shard_of(self, key: str) -> int:
        # crc32 rather than hash(): str hashing is salted per process
        return zlib.crc32(key.encode()) % len(self._locks)

    def for_key(self, key: str) -> asyncio.Lock:
        return self._locks[self.shard_of(key)]
