"""In-process broadcast of server state changes to interested listeners."""

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Final

from ..logging_config import get_logger

logger = get_logger(__name__)

SERVER_REMOVE_SCHEDULE_DELETE: Final = "server:remove_schedule_delete"


@dataclass(frozen=True)
class ServerEvent:
    """A broadcast about a server, scoped to listeners of that server."""

    name: str
    server_id: str
    payload: dict[str, Any] = field(default_factory=dict)


Listener = Callable[[ServerEvent], None]


class ChangeNotifier:
    """Fire-and-forget publisher of server events.

    A failing listener is logged and skipped; it never affects the publisher
    or the other listeners.
    """

    def __init__(self):
        self._listeners: list[Listener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener.

        Returns:
            A callable that removes the listener again
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def announce_schedule_removed(self, server_id: str) -> None:
        """Tell listeners the server is no longer pending deletion."""
        self._emit(
            ServerEvent(
                name=SERVER_REMOVE_SCHEDULE_DELETE,
                server_id=server_id,
                payload={"server_id": server_id},
            )
        )

    def _emit(self, event: ServerEvent) -> None:
        with self._lock:
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                logger.error(
                    "Server event listener failed",
                    event_name=event.name,
                    server_id=event.server_id,
                    error=str(e),
                )

        logger.debug(
            "Server event emitted",
            event_name=event.name,
            server_id=event.server_id,
            listeners=len(listeners),
        )


# Global notifier instance
change_notifier: Final = ChangeNotifier()
