"""In-memory transactional store."""
from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from ..models import BorrowingPosition, PlatformState, StakingPosition, YieldPool

logger = logging.getLogger(__name__)

# Names of the four persisted records.
STATE_KEY = "STATE"
STAKES_KEY = "STAKES"
BORROWS_KEY = "BORROWS"
YIELD_KEY = "YIELD"


class Transaction:
    """Write buffer over a store; reads see pending writes first."""

    def __init__(self, base: MemoryStore) -> None:
        self._base = base
        self.state: PlatformState | None = None
        self.yield_pool: YieldPool | None = None
        self.stakes: dict[str, StakingPosition] = {}
        self.borrows: dict[str, BorrowingPosition] = {}

    @property
    def is_empty(self) -> bool:
        return (
            self.state is None
            and self.yield_pool is None
            and not self.stakes
            and not self.borrows
        )

    def get_state(self) -> PlatformState | None:
        return self.state if self.state is not None else self._base.get_state()

    def set_state(self, state: PlatformState) -> None:
        self.state = state

    def get_yield_pool(self) -> YieldPool | None:
        if self.yield_pool is not None:
            return self.yield_pool
        return self._base.get_yield_pool()

    def set_yield_pool(self, pool: YieldPool) -> None:
        self.yield_pool = pool

    def get_staking_position(self, user: str) -> StakingPosition | None:
        if user in self.stakes:
            return self.stakes[user]
        return self._base.get_staking_position(user)

    def set_staking_position(self, position: StakingPosition) -> None:
        self.stakes[position.user] = position

    def get_borrowing_position(self, user: str) -> BorrowingPosition | None:
        if user in self.borrows:
            return self.borrows[user]
        return self._base.get_borrowing_position(user)

    def set_borrowing_position(self, position: BorrowingPosition) -> None:
        self.borrows[position.user] = position


class MemoryStore:
    """Holds platform records in process memory.

    Writes go through :meth:`transaction`; a transaction that exits with an
    exception leaves the store untouched.
    """

    def __init__(self) -> None:
        self._state: PlatformState | None = None
        self._yield_pool: YieldPool | None = None
        self._stakes: dict[str, StakingPosition] = {}
        self._borrows: dict[str, BorrowingPosition] = {}

    # ------------------------------------------------------------------
    # Committed reads
    # ------------------------------------------------------------------

    def get_state(self) -> PlatformState | None:
        return self._state

    def get_yield_pool(self) -> YieldPool | None:
        return self._yield_pool

    def get_staking_position(self, user: str) -> StakingPosition | None:
        return self._stakes.get(user)

    def get_borrowing_position(self, user: str) -> BorrowingPosition | None:
        return self._borrows.get(user)

    def staking_positions(self) -> list[StakingPosition]:
        return list(self._stakes.values())

    def borrowing_positions(self) -> list[BorrowingPosition]:
        return list(self._borrows.values())

    # ------------------------------------------------------------------
    # Single-record writes (each is its own transaction)
    # ------------------------------------------------------------------

    def set_state(self, state: PlatformState) -> None:
        with self.transaction() as txn:
            txn.set_state(state)

    def set_yield_pool(self, pool: YieldPool) -> None:
        with self.transaction() as txn:
            txn.set_yield_pool(pool)

    def set_staking_position(self, position: StakingPosition) -> None:
        with self.transaction() as txn:
            txn.set_staking_position(position)

    def set_borrowing_position(self, position: BorrowingPosition) -> None:
        with self.transaction() as txn:
            txn.set_borrowing_position(position)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[Transaction]:
        """Buffer writes and commit them together on clean exit."""
        txn = Transaction(self)
        yield txn
        if not txn.is_empty:
            self._commit(txn)

    def _commit(self, txn: Transaction) -> None:
        if txn.state is not None:
            self._state = txn.state
        if txn.yield_pool is not None:
            self._yield_pool = txn.yield_pool
        self._stakes.update(txn.stakes)
        self._borrows.update(txn.borrows)
        logger.debug(
            "Committed %d stake(s), %d loan(s)%s%s",
            len(txn.stakes),
            len(txn.borrows),
            ", state" if txn.state is not None else "",
            ", yield pool" if txn.yield_pool is not None else "",
        )
