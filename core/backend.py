"""
Contract between the client core and the networking backend.

The backend owns discovery, transport and storage. The client only listens
to named events and invokes named commands.
"""
from typing import Any, Protocol, runtime_checkable
from collections.abc import Callable

EventCallback = Callable[[Any], None]
Unlisten = Callable[[], None]


@runtime_checkable
class Backend(Protocol):
    """Protocol for a networking backend"""

    def listen(self, event_name: str, callback: EventCallback) -> Unlisten:
        """
        Subscribe to a named event channel.

        The callback receives the raw payload. Calling the returned function
        releases the subscription.
        """
        ...

    async def invoke(self, command: str, args: dict[str, Any]) -> Any:
        """
        Run a named command and return its result.

        Raises any exception to signal failure; the message text is
        surfaced to the caller.
        """
        ...
