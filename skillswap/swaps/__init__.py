"""Swap Request State Machine — request records, storage, and lifecycle."""

from skillswap.swaps.models import CancelReason, SwapRating, SwapRequest, SwapStatus
from skillswap.swaps.state_machine import SwapAction, SwapStateMachine
from skillswap.swaps.store import SwapStore

__all__ = [
    "CancelReason",
    "SwapAction",
    "SwapRating",
    "SwapRequest",
    "SwapStateMachine",
    "SwapStatus",
    "SwapStore",
]
