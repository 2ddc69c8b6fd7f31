"""Platform error taxonomy.

Every failure aborts the running operation; nothing it wrote is committed.
"""
from __future__ import annotations

from typing import Any


class PlatformError(Exception):
    """Base class for all operation failures."""

    kind = "PlatformError"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.context = context
        for key, value in context.items():
            setattr(self, key, value)


class AlreadyInitialized(PlatformError):
    kind = "AlreadyInitialized"

    def __init__(self) -> None:
        super().__init__("Platform is already initialized")


class NotInitialized(PlatformError):
    kind = "NotInitialized"

    def __init__(self) -> None:
        super().__init__("Platform has not been initialized")


class PlatformInactive(PlatformError):
    kind = "PlatformInactive"

    def __init__(self) -> None:
        super().__init__("Platform is not active")


class InvalidAmount(PlatformError):
    kind = "InvalidAmount"

    def __init__(self, field: str, actual: Any, required: str = "> 0") -> None:
        super().__init__(
            f"Invalid {field}: {actual!r} (must be {required})",
            field=field,
            actual=actual,
            required=required,
        )


class PositionNotFound(PlatformError):
    kind = "PositionNotFound"

    def __init__(self, user: str, position: str) -> None:
        super().__init__(
            f"No {position} position for {user}", user=user, position=position
        )


class PositionInactive(PlatformError):
    kind = "PositionInactive"

    def __init__(self, user: str) -> None:
        super().__init__(f"Borrowing position for {user} is closed", user=user)


class InsufficientCollateral(PlatformError):
    kind = "InsufficientCollateral"

    def __init__(self, required: int, actual: int) -> None:
        super().__init__(
            f"Collateral ratio {actual} bps is below the {required} bps threshold",
            field="collateral_ratio",
            required=required,
            actual=actual,
        )


class PriceUnavailable(PlatformError):
    kind = "PriceUnavailable"

    def __init__(self, asset: str) -> None:
        super().__init__(f"No oracle price for {asset}", asset=asset)


class Unauthorized(PlatformError):
    kind = "Unauthorized"

    def __init__(self, caller: str) -> None:
        super().__init__(f"{caller} is not the platform admin", caller=caller)


class ClockSkew(PlatformError):
    kind = "ClockSkew"

    def __init__(self, now: int, since: int) -> None:
        super().__init__(
            f"Clock moved backwards: now={now} < since={since}", now=now, since=since
        )


__all__ = [
    "PlatformError",
    "AlreadyInitialized",
    "NotInitialized",
    "PlatformInactive",
    "InvalidAmount",
    "PositionNotFound",
    "PositionInactive",
    "InsufficientCollateral",
    "PriceUnavailable",
    "Unauthorized",
    "ClockSkew",
]
