"""Volume-recovery state machine: strict, relaxed expansion, supplemental fetch, done."""

from __future__ import annotations

import logging
from typing import List

from core import RecoveryTier


logger = logging.getLogger(__name__)


class RecoveryStateMachine:
    """
    One-way tier progression bounded by ``max_tiers``.

    ``advance(count)`` is called after a tier ran with the accumulated
    result count and returns the next tier to run, or DONE.
    """

    def __init__(self, target_floor: int, max_tiers: int = 3, supplemental_available: bool = True) -> None:
        self.target_floor = max(0, int(target_floor))
        self.max_tiers = max(1, min(3, int(max_tiers)))
        self.supplemental_available = bool(supplemental_available)
        self._state = RecoveryTier.STRICT
        self._history: List[RecoveryTier] = [RecoveryTier.STRICT]

    @property
    def state(self) -> RecoveryTier:
        return self._state

    @property
    def history(self) -> List[RecoveryTier]:
        """Tiers that have been entered, excluding DONE."""
        return list(self._history)

    @property
    def done(self) -> bool:
        return self._state == RecoveryTier.DONE

    def _next_tier(self, count: int) -> RecoveryTier:
        if count >= self.target_floor:
            return RecoveryTier.DONE
        if self._state == RecoveryTier.STRICT:
            return RecoveryTier.RELAXED_EXPANSION
        if self._state == RecoveryTier.RELAXED_EXPANSION and self.supplemental_available:
            return RecoveryTier.SUPPLEMENTAL_FETCH
        return RecoveryTier.DONE

    def advance(self, count: int) -> RecoveryTier:
        if self.done:
            return self._state
        target = self._next_tier(int(count))
        if target != RecoveryTier.DONE and len(self._history) >= self.max_tiers:
            target = RecoveryTier.DONE
        if target != RecoveryTier.DONE:
            self._history.append(target)
            logger.info(f"Recovery: {count} < floor {self.target_floor}, escalating to {target.value}")
        self._state = target
        return target
