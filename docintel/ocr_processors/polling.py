"""
Bounded polling for asynchronous provider operations.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Tuple

from ..config import Settings

logger = logging.getLogger(__name__)


class PollState(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        return self is not PollState.PENDING


@dataclass(frozen=True)
class PollPolicy:
    """Fixed-interval retry policy: at most ``max_attempts`` status checks."""
    max_attempts: int = 30
    interval_seconds: float = 1.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.interval_seconds < 0:
            raise ValueError("interval_seconds must not be negative")

    @classmethod
    def from_settings(cls, settings: Settings) -> "PollPolicy":
        return cls(max_attempts=settings.poll_max_attempts, interval_seconds=settings.poll_interval_seconds)


@dataclass
class PollOutcome:
    state: PollState
    payload: Any = None
    attempts: int = 0


# A status check returns the provider's state and the raw response body.
StatusCheck = Callable[[], Awaitable[Tuple[PollState, Any]]]


class OperationPoller:
    """
    Drives a provider operation from ``pending`` to a terminal state.

    Waits one interval before every status check. After ``max_attempts``
    checks that all report ``pending`` the outcome is ``timed_out``.
    """

    def __init__(self,
                 policy: Optional[PollPolicy] = None,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        self.policy = policy or PollPolicy()
        self._sleep = sleep

    async def run(self, check: StatusCheck) -> PollOutcome:
        outcome = PollOutcome(state=PollState.PENDING)

        while not outcome.state.is_terminal:
            if outcome.attempts >= self.policy.max_attempts:
                outcome.state = PollState.TIMED_OUT
                break

            await self._sleep(self.policy.interval_seconds)
            outcome.state, outcome.payload = await check()
            outcome.attempts += 1
            logger.debug(f"Poll attempt {outcome.attempts}: {outcome.state.value}")

        return outcome
