from __future__ import annotations

from contextlib import nullcontext
from typing import ContextManager, Optional, Protocol


class TransactionManager(Protocol):
    def atomic(self) -> ContextManager[None]:
        raise NotImplementedError


class NoTransaction:
    """Used where the store has no transactions (in-memory repositories)."""

    def atomic(self) -> ContextManager[None]:
        return nullcontext()


def or_no_transaction(tx: Optional[TransactionManager]) -> TransactionManager:
    return tx if tx is not None else NoTransaction()
