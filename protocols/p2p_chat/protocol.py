"""
Wiring the session loads for the p2p chat protocol.
"""
from pathlib import Path

from core.config import ChatConfig
from core.handler import HandlerRegistry
from core.status import StatusNotifier
from protocols.p2p_chat.client import COMMANDS
from protocols.p2p_chat.events import decode_event, event_names
from protocols.p2p_chat.handlers.dedupe import DedupeHandler
from protocols.p2p_chat.handlers.project import ProjectHandler
from protocols.p2p_chat.handlers.status import StatusHandler
from protocols.p2p_chat.handlers.validate import ValidateHandler

PROTOCOL_DIR = str(Path(__file__).resolve().parent)

__all__ = ['PROTOCOL_DIR', 'COMMANDS', 'decode_event', 'event_names', 'build_handlers']


def build_handlers(notifier: StatusNotifier, config: ChatConfig) -> HandlerRegistry:
    """Handlers in the order every event visits them."""
    registry = HandlerRegistry(verbose=config.verbose)
    registry.register(ValidateHandler())
    registry.register(DedupeHandler(verbose=config.verbose))
    registry.register(ProjectHandler(verbose=config.verbose))
    registry.register(StatusHandler(notifier, config))
    return registry
