# This project was developed with assistance from AI tools.
"""Fire-and-forget dispatcher for best-effort side effects.

Emails and change-event handlers run as tracked ``asyncio`` tasks, decoupled
from the status update that produced them. Each job gets its own retry
budget with exponential backoff; a job that exhausts it is logged and kept in
a bounded dead-letter list instead of failing the caller.

The module exposes a singleton initialised at app startup via
``init_dispatcher()``.
"""

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from ..core.config import Settings

logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[object]]


@dataclass(frozen=True)
class DeadLetter:
    """A side effect that failed on every attempt."""

    name: str
    attempts: int
    error: str
    failed_at: datetime


class SideEffectDispatcher:
    """Runs best-effort jobs in the background with retry and dead-lettering."""

    def __init__(
        self,
        *,
        max_attempts: int = 3,
        retry_base_seconds: float = 0.5,
        dead_letter_limit: int = 200,
    ):
        self._max_attempts = max(1, max_attempts)
        self._retry_base = retry_base_seconds
        self._tasks: set[asyncio.Task] = set()
        self.dead_letters: deque[DeadLetter] = deque(maxlen=dead_letter_limit)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def dispatch(self, name: str, job: Job) -> asyncio.Task:
        """Schedule ``job`` on the running loop. Never raises job errors."""
        task = asyncio.create_task(self._run(name, job), name=f"side-effect-{name}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, name: str, job: Job) -> bool:
        for attempt in range(1, self._max_attempts + 1):
            try:
                await job()
                return True
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                if attempt >= self._max_attempts:
                    logger.error(
                        "Side effect %s dead-lettered after %d attempt(s)",
                        name,
                        attempt,
                        exc_info=True,
                    )
                    self.dead_letters.append(
                        DeadLetter(
                            name=name,
                            attempts=attempt,
                            error=repr(exc),
                            failed_at=datetime.now(UTC),
                        )
                    )
                    return False
                delay = self._retry_base * (2 ** (attempt - 1))
                logger.warning(
                    "Side effect %s failed (attempt %d/%d), retrying in %.2fs: %s",
                    name,
                    attempt,
                    self._max_attempts,
                    delay,
                    exc,
                )
                await asyncio.sleep(delay)
        return False

    async def drain(self) -> None:
        """Wait for every in-flight job, including jobs scheduled while draining."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

_dispatcher: SideEffectDispatcher | None = None


def init_dispatcher(cfg: Settings) -> SideEffectDispatcher:
    """Initialise the singleton (called once from app lifespan)."""
    global _dispatcher  # noqa: PLW0603
    _dispatcher = SideEffectDispatcher(
        max_attempts=cfg.SIDE_EFFECT_MAX_ATTEMPTS,
        retry_base_seconds=cfg.SIDE_EFFECT_RETRY_BASE_SECONDS,
        dead_letter_limit=cfg.DEAD_LETTER_LIMIT,
    )
    return _dispatcher


def get_dispatcher() -> SideEffectDispatcher:
    """Return the initialised SideEffectDispatcher singleton."""
    if _dispatcher is None:
        raise RuntimeError("SideEffectDispatcher not initialised -- call init_dispatcher() first")
    return _dispatcher
