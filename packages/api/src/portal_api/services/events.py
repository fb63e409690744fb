# This project was developed with assistance from AI tools.
"""In-process document change feed.

Publishers announce that a loan's documents changed; subscribers (the
completion monitor) re-evaluate the loan. Handlers run through the
side-effect dispatcher so their failures never reach the publisher.
"""

import logging
from collections.abc import Awaitable, Callable

from .side_effects import SideEffectDispatcher

logger = logging.getLogger(__name__)

ChangeHandler = Callable[[str], Awaitable[object]]


class DocumentChangeFeed:
    """Fan-out of document-change events keyed by loan id."""

    def __init__(self, dispatcher: SideEffectDispatcher):
        self._dispatcher = dispatcher
        self._handlers: list[ChangeHandler] = []

    def subscribe(self, handler: ChangeHandler) -> None:
        self._handlers.append(handler)

    def unsubscribe(self, handler: ChangeHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def publish(self, loan_id: str | None) -> int:
        """Schedule every handler for ``loan_id``. Returns the number scheduled."""
        if not loan_id:
            return 0
        for index, handler in enumerate(self._handlers):
            self._dispatcher.dispatch(
                f"document-change-{loan_id}-{index}",
                lambda handler=handler: handler(loan_id),
            )
        logger.debug("Document change for loan %s sent to %d handler(s)", loan_id, len(self._handlers))
        return len(self._handlers)


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

_feed: DocumentChangeFeed | None = None


def init_change_feed(dispatcher: SideEffectDispatcher) -> DocumentChangeFeed:
    """Initialise the singleton (called once from app lifespan)."""
    global _feed  # noqa: PLW0603
    _feed = DocumentChangeFeed(dispatcher)
    return _feed


def get_change_feed() -> DocumentChangeFeed:
    """Return the initialised DocumentChangeFeed singleton."""
    if _feed is None:
        raise RuntimeError("DocumentChangeFeed not initialised -- call init_change_feed() first")
    return _feed
