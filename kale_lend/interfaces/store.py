"""Store protocol — persisted platform records."""
from contextlib import AbstractContextManager
from typing import Protocol

from ..models import BorrowingPosition, PlatformState, StakingPosition, YieldPool


class StoreView(Protocol):
    """Read/write access to the four platform records."""

    def get_state(self) -> PlatformState | None: ...

    def set_state(self, state: PlatformState) -> None: ...

    def get_yield_pool(self) -> YieldPool | None: ...

    def set_yield_pool(self, pool: YieldPool) -> None: ...

    def get_staking_position(self, user: str) -> StakingPosition | None: ...

    def set_staking_position(self, position: StakingPosition) -> None: ...

    def get_borrowing_position(self, user: str) -> BorrowingPosition | None: ...

    def set_borrowing_position(self, position: BorrowingPosition) -> None: ...


class PlatformStore(StoreView, Protocol):
    """A store whose writes become visible only through committed transactions."""

    def transaction(self) -> AbstractContextManager[StoreView]: ...
