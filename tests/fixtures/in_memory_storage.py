"""In-memory implementation of KeyValueStore for testing."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Callable, List, Optional

from axonpay.infrastructure.storage import KeyValueStore


class InMemoryKeyValueStore(KeyValueStore):
    """In-memory implementation of KeyValueStore for fast testing.

    Registered scripts are emulated in Python with the same return codes as
    the Lua versions. A script body never awaits, so it is atomic with respect
    to other tasks, like a script running inside Redis.

    With ``yield_on_read=True`` every read yields to the event loop, which
    makes concurrent callers interleave between their read and their write.
    """

    def __init__(self, yield_on_read: bool = False) -> None:
        self._data: dict[str, str] = {}
        self._sorted_sets: dict[str, list[tuple[str, float]]] = {}
        self._script_cache: dict[str, str] = {}
        self._yield_on_read = yield_on_read
        self.script_calls: dict[str, int] = {}
        self._scripts: dict[str, Callable[[List[str], List[str]], list]] = {
            "create_snap": self._create_snap,
            "reserve_claim": self._reserve_claim,
            "release_claim": self._release_claim,
            "transition_claim": self._transition_claim,
            "compare_and_set_snap": self._compare_and_set_snap,
            "create_merchant": self._create_merchant,
        }

    async def _maybe_yield(self) -> None:
        if self._yield_on_read:
            await asyncio.sleep(0)

    async def get(self, key: str) -> Optional[str]:
        await self._maybe_yield()
        return self._data.get(key)

    def _zadd(self, key: str, score: float, member: str) -> int:
        entries = self._sorted_sets.setdefault(key, [])
        existed = any(m == member for m, _ in entries)
        entries[:] = [(m, s) for m, s in entries if m != member]
        entries.append((member, score))
        entries.sort(key=lambda x: x[1])
        return 0 if existed else 1

    def _zrem(self, key: str, member: str) -> None:
        if key in self._sorted_sets:
            self._sorted_sets[key] = [
                (m, s) for m, s in self._sorted_sets[key] if m != member
            ]

    @staticmethod
    def _slice(members: list[str], start: int, end: int) -> list[str]:
        # Redis ranges are inclusive on both ends; -1 means the last member
        slice_end = None if end == -1 else end + 1
        return members[start:slice_end]

    async def zrevrange(self, key: str, start: int, end: int) -> list[str]:
        await self._maybe_yield()
        members = [m for m, _ in reversed(self._sorted_sets.get(key, []))]
        return self._slice(members, start, end)

    async def zrange(self, key: str, start: int, end: int) -> list[str]:
        await self._maybe_yield()
        members = [m for m, _ in self._sorted_sets.get(key, [])]
        return self._slice(members, start, end)

    async def zcard(self, key: str) -> int:
        return len(self._sorted_sets.get(key, []))

    async def register_script(self, name: str, script: str) -> str:
        """Register a script (return mock SHA1)."""
        self._script_cache[name] = f"sha1_{name}"
        return self._script_cache[name]

    async def run_script(self, name: str, keys: List[str], args: List[str]) -> Any:
        if name not in self._script_cache:
            raise ValueError(f"Script '{name}' not registered")
        self.script_calls[name] = self.script_calls.get(name, 0) + 1
        return self._scripts[name](keys, args)

    # -- script emulations -------------------------------------------------

    def _create_snap(self, keys: List[str], args: List[str]) -> list:
        snap_key, sender_index, all_index = keys
        snap_json, created_ts, snap_id = args
        if snap_key in self._data:
            return [5, ""]
        self._data[snap_key] = snap_json
        self._zadd(sender_index, float(created_ts), snap_id)
        self._zadd(all_index, float(created_ts), snap_id)
        return [1, snap_json]

    def _reserve_claim(self, keys: List[str], args: List[str]) -> list:
        snap_key, claim_key, claims_index = keys
        expected_version, new_snap_json, claim_json, claimed_ts, claimer = args
        snap_raw = self._data.get(snap_key)
        if snap_raw is None:
            return [2, ""]
        snap = json.loads(snap_raw)
        if snap["status"] != "active":
            return [3, snap_raw]
        existing = self._data.get(claim_key)
        if existing is not None:
            return [5, existing]
        if int(snap["version"]) != int(expected_version):
            return [0, snap_raw]
        self._data[snap_key] = new_snap_json
        self._data[claim_key] = claim_json
        self._zadd(claims_index, float(claimed_ts), claimer)
        return [1, new_snap_json]

    def _release_claim(self, keys: List[str], args: List[str]) -> list:
        snap_key, claim_key, claims_index = keys
        expected_version, restored_json, reservation_id, claimer = args
        snap_raw = self._data.get(snap_key)
        if snap_raw is None:
            return [2, ""]
        claim_raw = self._data.get(claim_key)
        if claim_raw is None:
            return [6, ""]
        claim = json.loads(claim_raw)
        if claim["id"] != reservation_id or claim["status"] != "reserved":
            return [6, claim_raw]
        if int(json.loads(snap_raw)["version"]) != int(expected_version):
            return [0, snap_raw]
        self._data[snap_key] = restored_json
        del self._data[claim_key]
        self._zrem(claims_index, claimer)
        return [1, restored_json]

    def _transition_claim(self, keys: List[str], args: List[str]) -> list:
        (claim_key,) = keys
        reservation_id, expected_status, new_json = args
        claim_raw = self._data.get(claim_key)
        if claim_raw is None:
            return [2, ""]
        claim = json.loads(claim_raw)
        if claim["id"] != reservation_id or claim["status"] != expected_status:
            return [6, claim_raw]
        self._data[claim_key] = new_json
        return [1, new_json]

    def _compare_and_set_snap(self, keys: List[str], args: List[str]) -> list:
        (snap_key,) = keys
        expected_version, new_json = args
        snap_raw = self._data.get(snap_key)
        if snap_raw is None:
            return [2, ""]
        if int(json.loads(snap_raw)["version"]) != int(expected_version):
            return [0, snap_raw]
        self._data[snap_key] = new_json
        return [1, new_json]

    def _create_merchant(self, keys: List[str], args: List[str]) -> list:
        prefix_key, all_index = keys
        merchant_json, created_ts, prefix = args
        if prefix_key in self._data:
            return [5, ""]
        self._data[prefix_key] = merchant_json
        self._zadd(all_index, float(created_ts), prefix)
        return [1, merchant_json]

    def clear(self) -> None:
        self._data.clear()
        self._sorted_sets.clear()
        self.script_calls.clear()
