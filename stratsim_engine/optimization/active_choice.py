"""
Active-choice store.

Process-wide, symbol-keyed record of the selector's most recent choice.
It is a read model for out-of-band inspection only: selector runs write to
it but never read from it. Concurrent writers for the same symbol resolve
last-write-wins.
"""

import threading
from datetime import datetime
from typing import Any

from stratsim_engine.logging import get_logger
from stratsim_engine.optimization.models import ActiveChoice

logger = get_logger(__name__)


class ActiveChoiceStore:
    """Thread-safe symbol -> ActiveChoice map."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._choices: dict[str, ActiveChoice] = {}

    def set_active_choice(
        self,
        symbol: str,
        strategy_id: str,
        strategy_name: str,
        parameters: dict[str, Any],
        decided_at: datetime | None = None,
    ) -> ActiveChoice:
        """Record a choice, replacing any previous one for the symbol."""
        choice = ActiveChoice(
            symbol=symbol,
            chosen_strategy_id=strategy_id,
            chosen_strategy_name=strategy_name,
            chosen_parameters=dict(parameters),
            decided_at=decided_at,
        )
        with self._lock:
            previous = self._choices.get(symbol)
            self._choices[symbol] = choice
        if previous is None or previous.chosen_strategy_id != strategy_id:
            logger.debug("Active choice for %s is now %s", symbol, strategy_id)
        return choice

    def get_active_choice(self, symbol: str) -> ActiveChoice | None:
        """Latest choice for symbol, or None if no selector has chosen yet."""
        with self._lock:
            return self._choices.get(symbol)

    def symbols(self) -> list[str]:
        """Symbols with a recorded choice."""
        with self._lock:
            return sorted(self._choices)

    def clear(self, symbol: str | None = None) -> None:
        """Forget one symbol, or everything when symbol is None."""
        with self._lock:
            if symbol is None:
                self._choices.clear()
            else:
                self._choices.pop(symbol, None)
