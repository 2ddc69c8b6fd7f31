"""Lending platform operations — staking, borrowing, accrual and admin config.

Each public mutator is one atomic unit of work: it reads the clock once,
runs inside a single store transaction and commits only if it returns
normally. Operations are serialised per platform instance.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import replace
from typing import Any

from .. import accrual
from ..clock import SystemClock
from ..config import AppConfig
from ..errors import (
    AlreadyInitialized,
    InsufficientCollateral,
    InvalidAmount,
    NotInitialized,
    PlatformError,
    PlatformInactive,
    PositionInactive,
    PositionNotFound,
    Unauthorized,
)
from ..interfaces.clock import Clock
from ..interfaces.price_oracle import PriceOracle
from ..interfaces.store import PlatformStore, StoreView
from ..models import BorrowingPosition, PlatformState, StakingPosition, YieldPool
from ..oracles import PythOracle, StaticOracle
from ..storage import JsonFileStore
from .price_service import PriceService

logger = logging.getLogger(__name__)

# Registry of price oracle factories keyed by provider name.
_ORACLE_FACTORIES: dict[str, Any] = {
    "pyth": lambda cfg: PythOracle(cfg.pyth),
    "static": lambda cfg: StaticOracle(cfg.static.prices),
}


class LendingPlatform:
    """Single KALE/XLM market: staking rewards, collateralised loans, rebalancing."""

    def __init__(
        self,
        store: PlatformStore,
        oracle: PriceOracle,
        clock: Clock | None = None,
        kale_symbol: str = "KALE",
        xlm_symbol: str = "XLM",
    ) -> None:
        self._store = store
        self._prices = PriceService(oracle, kale_symbol, xlm_symbol)
        self._clock = clock or SystemClock()
        self._lock = asyncio.Lock()

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        store: PlatformStore | None = None,
        clock: Clock | None = None,
    ) -> LendingPlatform:
        """Wire a platform from application config."""
        oracle_cfg = config.price_oracle
        factory = _ORACLE_FACTORIES.get(oracle_cfg.provider)
        if factory is None:
            raise ValueError(f"Unknown price oracle provider '{oracle_cfg.provider}'")

        return cls(
            store=store or JsonFileStore(config.storage.path),
            oracle=factory(oracle_cfg),
            clock=clock,
            kale_symbol=config.assets.kale_symbol,
            xlm_symbol=config.assets.xlm_symbol,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _operation(self, name: str) -> AsyncIterator[tuple[StoreView, int]]:
        """Serialise, stamp and transact one operation."""
        async with self._lock:
            now = self._clock.now()
            try:
                with self._store.transaction() as txn:
                    yield txn, now
            except PlatformError as e:
                logger.warning("%s rejected (%s): %s", name, e.kind, e)
                raise

    @staticmethod
    def _require_state(view: StoreView) -> PlatformState:
        state = view.get_state()
        if state is None:
            raise NotInitialized()
        return state

    @staticmethod
    def _require_yield_pool(view: StoreView) -> YieldPool:
        pool = view.get_yield_pool()
        if pool is None:
            raise NotInitialized()
        return pool

    @staticmethod
    def _require_stake(view: StoreView, user: str) -> StakingPosition:
        position = view.get_staking_position(user)
        if position is None:
            raise PositionNotFound(user, "staking")
        return position

    @staticmethod
    def _require_loan(view: StoreView, user: str) -> BorrowingPosition:
        position = view.get_borrowing_position(user)
        if position is None:
            raise PositionNotFound(user, "borrowing")
        return position

    @staticmethod
    def _require_positive(name: str, value: int) -> None:
        if value <= 0:
            raise InvalidAmount(name, value)

    @staticmethod
    def _require_non_negative(name: str, value: int | None) -> None:
        if value is not None and value < 0:
            raise InvalidAmount(name, value, required=">= 0")

    @staticmethod
    def _distribute_reward(pool: YieldPool, reward: int, now: int) -> YieldPool:
        return replace(
            pool,
            staking_rewards=pool.staking_rewards + reward,
            total_rewards_distributed=pool.total_rewards_distributed + reward,
            last_distribution_time=now,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(
        self,
        admin: str,
        kale_token: str,
        xlm_token: str,
        oracle: str,
        staking_apy: int,
        borrowing_apy: int,
        platform_fee_rate: int,
        liquidation_threshold: int,
    ) -> None:
        """Create the platform record and an empty yield pool."""
        async with self._operation("initialize") as (txn, now):
            if txn.get_state() is not None:
                raise AlreadyInitialized()

            self._require_non_negative("staking_apy", staking_apy)
            self._require_non_negative("borrowing_apy", borrowing_apy)
            self._require_non_negative("platform_fee_rate", platform_fee_rate)
            self._require_non_negative("liquidation_threshold", liquidation_threshold)

            txn.set_state(
                PlatformState(
                    admin=admin,
                    kale_token=kale_token,
                    xlm_token=xlm_token,
                    oracle=oracle,
                    staking_apy=staking_apy,
                    borrowing_apy=borrowing_apy,
                    platform_fee_rate=platform_fee_rate,
                    liquidation_threshold=liquidation_threshold,
                    last_price_update=now,
                    is_active=True,
                )
            )
            txn.set_yield_pool(YieldPool(last_distribution_time=now))

        logger.info(
            "Platform initialized (admin=%s, staking APY=%d bps, borrowing APY=%d bps)",
            admin,
            staking_apy,
            borrowing_apy,
        )

    # ------------------------------------------------------------------
    # Staking
    # ------------------------------------------------------------------

    async def stake(
        self, user: str, amount: int, auto_adjust: bool, threshold_percent: int
    ) -> None:
        """Open or replace a user's stake.

        A repeat stake keeps ``start_time`` and ``total_earned`` and settles
        the reward pending on the old amount before the amount is replaced.
        """
        async with self._operation("stake") as (txn, now):
            self._require_positive("amount", amount)
            self._require_non_negative("threshold_percent", threshold_percent)

            state = self._require_state(txn)
            if not state.is_active:
                raise PlatformInactive()

            price = await self._prices.kale_price()

            start_time = now
            total_earned = 0
            existing = txn.get_staking_position(user)
            if existing is not None:
                reward = accrual.staking_reward(
                    existing.kale_amount, state.staking_apy, existing.last_claim_time, now
                )
                start_time = existing.start_time
                total_earned = existing.total_earned + reward
                if reward:
                    pool = self._require_yield_pool(txn)
                    txn.set_yield_pool(self._distribute_reward(pool, reward, now))
                logger.debug(
                    "Restake by %s settled %d pending reward on %d",
                    user,
                    reward,
                    existing.kale_amount,
                )

            txn.set_staking_position(
                StakingPosition(
                    user=user,
                    kale_amount=amount,
                    start_time=start_time,
                    last_claim_time=now,
                    auto_adjust_enabled=auto_adjust,
                    price_threshold=threshold_percent * 100,
                    last_adjustment_price=price,
                    total_earned=total_earned,
                )
            )
            state = replace(
                state,
                total_staked=state.total_staked + amount,
                current_kale_price=price,
                last_price_update=now,
            )
            txn.set_state(state)

        logger.info(
            "%s staked %d KALE (total staked %d)", user, amount, state.total_staked
        )

    async def claim(self, user: str) -> int:
        """Credit the reward accrued since the last claim and return it."""
        async with self._operation("claim") as (txn, now):
            state = self._require_state(txn)
            position = self._require_stake(txn, user)

            reward = accrual.staking_reward(
                position.kale_amount, state.staking_apy, position.last_claim_time, now
            )

            txn.set_staking_position(
                replace(
                    position,
                    last_claim_time=now,
                    total_earned=position.total_earned + reward,
                )
            )
            pool = self._require_yield_pool(txn)
            txn.set_yield_pool(self._distribute_reward(pool, reward, now))

        logger.info("%s claimed %d KALE in rewards", user, reward)
        return reward

    async def check_adjustment(self, user: str) -> bool:
        """Rebalance a stake when the KALE price moved past its threshold."""
        async with self._operation("check_adjustment") as (txn, now):
            state = self._require_state(txn)
            position = self._require_stake(txn, user)

            if not position.auto_adjust_enabled:
                return False

            price = await self._prices.kale_price()
            outcome = accrual.evaluate_adjustment(
                position.kale_amount,
                position.price_threshold,
                position.last_adjustment_price,
                price,
            )
            logger.debug(
                "%s price change %d bps vs threshold %d bps",
                user,
                outcome.change_bps,
                position.price_threshold,
            )
            if not outcome.triggered:
                return False

            delta = outcome.new_amount - position.kale_amount
            txn.set_staking_position(
                replace(
                    position,
                    kale_amount=outcome.new_amount,
                    last_adjustment_price=price,
                )
            )
            txn.set_state(
                replace(
                    state,
                    total_staked=state.total_staked + delta,
                    current_kale_price=price,
                    last_price_update=now,
                )
            )

        logger.info(
            "Rebalanced %s stake by %+d KALE (price move %+d bps)",
            user,
            delta,
            outcome.change_bps,
        )
        return True

    # ------------------------------------------------------------------
    # Borrowing
    # ------------------------------------------------------------------

    async def borrow(self, user: str, collateral_amount: int, borrow_amount: int) -> None:
        """Open a KALE loan against XLM collateral."""
        async with self._operation("borrow") as (txn, now):
            self._require_positive("collateral_amount", collateral_amount)
            self._require_positive("borrow_amount", borrow_amount)

            state = self._require_state(txn)
            if not state.is_active:
                raise PlatformInactive()

            kale_price = await self._prices.kale_price()
            xlm_price = await self._prices.xlm_price()

            collateral_value = accrual.usd_value(collateral_amount, xlm_price)
            borrow_value = accrual.usd_value(borrow_amount, kale_price)
            if borrow_value <= 0:
                raise InvalidAmount("borrow_value", borrow_value)

            ratio = accrual.collateral_ratio(collateral_value, borrow_value)
            if ratio < state.liquidation_threshold:
                raise InsufficientCollateral(state.liquidation_threshold, ratio)

            total_borrowed = state.total_borrowed
            total_collateral = state.total_collateral
            previous = txn.get_borrowing_position(user)
            if previous is not None and previous.is_active:
                total_borrowed -= previous.borrowed_amount
                total_collateral -= previous.collateral_amount

            txn.set_borrowing_position(
                BorrowingPosition(
                    user=user,
                    borrowed_amount=borrow_amount,
                    collateral_amount=collateral_amount,
                    borrow_time=now,
                    interest_rate=state.borrowing_apy,
                    last_payment_time=now,
                )
            )
            state = replace(
                state,
                total_borrowed=total_borrowed + borrow_amount,
                total_collateral=total_collateral + collateral_amount,
                current_kale_price=kale_price,
                current_xlm_price=xlm_price,
                last_price_update=now,
            )
            txn.set_state(state)

        logger.info(
            "%s borrowed %d KALE against %d XLM (ratio %d bps)",
            user,
            borrow_amount,
            collateral_amount,
            ratio,
        )

    async def repay(self, user: str, amount: int) -> int:
        """Pay down a loan and return the amount applied.

        The payment is capped at principal plus accrued interest and comes off
        the balance in full; a full repayment leaves the balance at zero.
        Interest is counted as paid first.
        """
        async with self._operation("repay") as (txn, now):
            self._require_positive("amount", amount)

            state = self._require_state(txn)
            position = self._require_loan(txn, user)
            if not position.is_active:
                raise PositionInactive(user)

            interest = accrual.interest_owed(
                position.borrowed_amount,
                position.interest_rate,
                position.last_payment_time,
                now,
            )
            applied = min(amount, position.borrowed_amount + interest)
            interest_paid = min(applied, interest)
            remaining = max(position.borrowed_amount - applied, 0)

            is_active = remaining > 0
            total_collateral = state.total_collateral
            if not is_active:
                total_collateral -= position.collateral_amount

            txn.set_borrowing_position(
                replace(
                    position,
                    borrowed_amount=remaining,
                    total_interest_paid=position.total_interest_paid + interest_paid,
                    last_payment_time=now,
                    is_active=is_active,
                )
            )
            txn.set_state(
                replace(
                    state,
                    total_borrowed=state.total_borrowed - applied,
                    total_collateral=total_collateral,
                )
            )

            if interest_paid:
                borrowing_fee, platform_fee = accrual.split_platform_fee(
                    interest_paid, state.platform_fee_rate
                )
                pool = self._require_yield_pool(txn)
                txn.set_yield_pool(
                    replace(
                        pool,
                        borrowing_fees=pool.borrowing_fees + borrowing_fee,
                        platform_fees=pool.platform_fees + platform_fee,
                    )
                )

        logger.info(
            "%s repaid %d KALE (%d interest); %s",
            user,
            applied,
            interest_paid,
            "loan closed" if not is_active else f"{remaining} outstanding",
        )
        return applied

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    async def update_config(
        self,
        caller: str,
        staking_apy: int | None = None,
        borrowing_apy: int | None = None,
        platform_fee_rate: int | None = None,
        liquidation_threshold: int | None = None,
        is_active: bool | None = None,
    ) -> None:
        """Apply any subset of platform settings. Admin only."""
        async with self._operation("update_config") as (txn, _now):
            state = self._require_state(txn)
            if caller != state.admin:
                raise Unauthorized(caller)

            updates: dict[str, Any] = {}
            for name, value in (
                ("staking_apy", staking_apy),
                ("borrowing_apy", borrowing_apy),
                ("platform_fee_rate", platform_fee_rate),
                ("liquidation_threshold", liquidation_threshold),
            ):
                if value is not None:
                    self._require_non_negative(name, value)
                    updates[name] = value
            if is_active is not None:
                updates["is_active"] = is_active

            txn.set_state(replace(state, **updates))

        logger.info("Platform config updated by %s: %s", caller, updates)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_current_price(self) -> int:
        """Live KALE price from the oracle."""
        self._require_state(self._store)
        return await self._prices.kale_price()

    def get_staking_position(self, user: str) -> StakingPosition:
        return self._require_stake(self._store, user)

    def get_borrowing_position(self, user: str) -> BorrowingPosition:
        return self._require_loan(self._store, user)

    def get_platform_state(self) -> PlatformState:
        return self._require_state(self._store)

    def get_yield_pool(self) -> YieldPool:
        return self._require_yield_pool(self._store)

    def pending_rewards(self, user: str) -> int:
        """Reward a claim would pay right now."""
        state = self._require_state(self._store)
        position = self._require_stake(self._store, user)
        return accrual.staking_reward(
            position.kale_amount,
            state.staking_apy,
            position.last_claim_time,
            self._clock.now(),
        )

    def interest_owed(self, user: str) -> int:
        """Interest accrued on an active loan since its last payment."""
        position = self._require_loan(self._store, user)
        if not position.is_active:
            return 0
        return accrual.interest_owed(
            position.borrowed_amount,
            position.interest_rate,
            position.last_payment_time,
            self._clock.now(),
        )

    async def collateral_ratio(self, user: str) -> int:
        """Current collateral ratio of an active loan at live prices, in bps."""
        self._require_state(self._store)
        position = self._require_loan(self._store, user)
        if not position.is_active:
            raise PositionInactive(user)

        kale_price = await self._prices.kale_price()
        xlm_price = await self._prices.xlm_price()
        borrow_value = accrual.usd_value(position.borrowed_amount, kale_price)
        if borrow_value <= 0:
            raise InvalidAmount("borrow_value", borrow_value)
        return accrual.collateral_ratio(
            accrual.usd_value(position.collateral_amount, xlm_price), borrow_value
        )
