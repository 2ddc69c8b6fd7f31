"""Durable store backed by a single JSON file."""
from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from ..models import (
    BorrowingPosition,
    PlatformState,
    StakingPosition,
    YieldPool,
    to_record,
)
from .memory import BORROWS_KEY, STAKES_KEY, STATE_KEY, YIELD_KEY, MemoryStore, Transaction

logger = logging.getLogger(__name__)


class JsonFileStore(MemoryStore):
    """Memory store that rewrites its JSON file on every commit.

    The file is replaced atomically, so a crash mid-write leaves the last
    committed snapshot in place.
    """

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self.path = Path(path)
        if self.path.exists():
            self._load()

    def _load(self) -> None:
        with open(self.path) as f:
            raw: dict[str, Any] = json.load(f)

        state = raw.get(STATE_KEY)
        pool = raw.get(YIELD_KEY)
        self._state = PlatformState(**state) if state else None
        self._yield_pool = YieldPool(**pool) if pool else None
        self._stakes = {
            user: StakingPosition(**rec)
            for user, rec in raw.get(STAKES_KEY, {}).items()
        }
        self._borrows = {
            user: BorrowingPosition(**rec)
            for user, rec in raw.get(BORROWS_KEY, {}).items()
        }
        logger.info(
            "Loaded platform state from %s (%d stakes, %d loans)",
            self.path,
            len(self._stakes),
            len(self._borrows),
        )

    def _snapshot(self, txn: Transaction) -> dict[str, Any]:
        state = txn.state if txn.state is not None else self._state
        pool = txn.yield_pool if txn.yield_pool is not None else self._yield_pool
        stakes = {**self._stakes, **txn.stakes}
        borrows = {**self._borrows, **txn.borrows}
        return {
            STATE_KEY: to_record(state) if state else None,
            STAKES_KEY: {user: to_record(p) for user, p in stakes.items()},
            BORROWS_KEY: {user: to_record(p) for user, p in borrows.items()},
            YIELD_KEY: to_record(pool) if pool else None,
        }

    def _write(self, snapshot: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=self.path.name, suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(snapshot, f, indent=2, sort_keys=True)
            os.replace(tmp_name, self.path)
        except BaseException:
            os.unlink(tmp_name)
            raise

    def _commit(self, txn: Transaction) -> None:
        # Disk first: if the write fails the in-memory view stays unchanged.
        self._write(self._snapshot(txn))
        super()._commit(txn)
