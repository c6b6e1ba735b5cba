"""
Error kinds raised by the chat client core.
"""


class ChatError(Exception):
    """Base class for chat client errors."""


class BackendCallFailed(ChatError):
    """A backend command rejected or could not be delivered."""

    def __init__(self, command: str, message: str):
        self.command = command
        self.message = message
        super().__init__(f"{command} failed: {message}")


class MalformedEvent(ChatError):
    """A backend event could not be decoded into a known event kind."""

    def __init__(self, event_name: str, reason: str):
        self.event_name = event_name
        self.reason = reason
        super().__init__(f"Malformed event {event_name!r}: {reason}")


class ChannelAlreadyJoined(ChatError):
    """Join was requested for a channel uuid already in the directory."""

    def __init__(self, uuid: str):
        self.uuid = uuid
        super().__init__(f"You're already in this topic: {uuid}")
