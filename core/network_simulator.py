"""In-process backend simulator for testing the chat client."""

import asyncio
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

from nacl.encoding import HexEncoder
from nacl.signing import SigningKey

from .backend import EventCallback, Unlisten


@dataclass
class SimulatorConfig:
    """Configuration for backend simulation."""
    latency_ms: int = 0  # delay before every command completes
    addresses: List[str] = field(default_factory=lambda: ["/ip4/127.0.0.1/tcp/4001"])


class BackendSimulator:
    """
    Simulates the networking backend behind the command/event contract.

    This is a dumb backend - it doesn't route anything between peers. It
    records what the client asks for, answers with canned results, and lets
    tests push events at the client exactly as a real backend would.
    """

    def __init__(self, config: Optional[SimulatorConfig] = None,
                 channels_path: Optional[str] = None,
                 signing_key: Optional[SigningKey] = None):
        self.config = config or SimulatorConfig()
        self.signing_key = signing_key or SigningKey.generate()
        self.peer_id = self.signing_key.verify_key.encode(encoder=HexEncoder).decode()

        self.listeners: Dict[str, List[EventCallback]] = {}
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.fail_commands: Dict[str, str] = {}
        self.hang_commands: Set[str] = set()

        self.connected: Dict[str, str] = {}
        self.topics: List[str] = []
        self.sent: List[Dict[str, Any]] = []

        self.channels_path = Path(channels_path) if channels_path else None
        self._channels: List[Dict[str, Any]] = []

    # Event side

    def listen(self, event_name: str, callback: EventCallback) -> Unlisten:
        self.listeners.setdefault(event_name, []).append(callback)

        def unlisten() -> None:
            callbacks = self.listeners.get(event_name, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return unlisten

    def listener_count(self, event_name: Optional[str] = None) -> int:
        if event_name is not None:
            return len(self.listeners.get(event_name, []))
        return sum(len(callbacks) for callbacks in self.listeners.values())

    def emit(self, event_name: str, payload: Any, times: int = 1) -> None:
        """
        Deliver an event to every listener, in order.

        Args:
            event_name: Wire name of the event
            payload: Raw payload, passed through untouched
            times: Deliver this many times (at-least-once replay)
        """
        for _ in range(times):
            for callback in list(self.listeners.get(event_name, [])):
                callback(payload)

    # Failure injection

    def fail(self, command: str, message: str = "simulated failure") -> None:
        self.fail_commands[command] = message

    def hang(self, command: str) -> None:
        """Make a command never complete (for timeout tests)."""
        self.hang_commands.add(command)

    def recover(self, command: Optional[str] = None) -> None:
        if command is None:
            self.fail_commands.clear()
            self.hang_commands.clear()
        else:
            self.fail_commands.pop(command, None)
            self.hang_commands.discard(command)

    def calls_to(self, command: str) -> List[Dict[str, Any]]:
        return [args for name, args in self.calls if name == command]

    # Command side

    async def invoke(self, command: str, args: Dict[str, Any]) -> Any:
        self.calls.append((command, dict(args)))

        if self.config.latency_ms > 0:
            await asyncio.sleep(self.config.latency_ms / 1000)

        if command in self.hang_commands:
            await asyncio.Event().wait()

        if command in self.fail_commands:
            raise RuntimeError(self.fail_commands[command])

        handler = getattr(self, f"_cmd_{command}", None)
        if handler is None:
            raise RuntimeError(f"Unknown command: {command}")
        return handler(args)

    def _cmd_send_message(self, args: Dict[str, Any]) -> None:
        if not args.get('msg') or not args.get('topic'):
            raise RuntimeError("msg and topic are required")
        self.sent.append(dict(args))

    def _cmd_connect_to_peer(self, args: Dict[str, Any]) -> None:
        address = args.get('address', '')
        if not address:
            raise RuntimeError("Invalid multiaddr")
        self.emit('connection-status', f"Dialing {address}")

    def _cmd_get_connected_peers(self, args: Dict[str, Any]) -> None:
        self.emit('peers-list', list(self.connected.keys()))

    def _cmd_get_my_info(self, args: Dict[str, Any]) -> None:
        self.emit('my-info', {'peer_id': self.peer_id, 'addresses': list(self.config.addresses)})

    def _cmd_add_topic(self, args: Dict[str, Any]) -> None:
        topic = args.get('topic', '')
        if not topic:
            raise RuntimeError("topic is required")
        if topic not in self.topics:
            self.topics.append(topic)

    def _cmd_add_channel(self, args: Dict[str, Any]) -> None:
        if not args.get('topic') or not args.get('uuid'):
            raise RuntimeError("topic and uuid are required")
        self.save_channel({
            'topic': args['topic'],
            'uuid': args['uuid'],
            'last_message_uuid': args.get('last_message_uuid'),
        })

    def _cmd_get_channels(self, args: Dict[str, Any]) -> List[Dict[str, Any]]:
        return self.load_channels()

    # Channel file

    def load_channels(self) -> List[Dict[str, Any]]:
        """Read persisted channel records (a missing file means none)."""
        if self.channels_path is None:
            return [dict(c) for c in self._channels]
        if not self.channels_path.exists():
            return []
        with open(self.channels_path, 'r') as f:
            return json.load(f)

    def save_channel(self, channel: Dict[str, Any]) -> None:
        """Add or replace a channel record by uuid."""
        channels = self.load_channels()
        for i, existing in enumerate(channels):
            if existing['uuid'] == channel['uuid']:
                channels[i] = channel
                break
        else:
            channels.append(channel)

        if self.channels_path is None:
            self._channels = channels
        else:
            with open(self.channels_path, 'w') as f:
                json.dump(channels, f, indent=2)

    # Peer helpers mirroring what the transport would report

    def peer_connected(self, peer_id: str, address: str) -> None:
        self.connected[peer_id] = address
        self.emit('peer-connected', {'peer_id': peer_id, 'address': address})

    def peer_disconnected(self, peer_id: str) -> None:
        self.connected.pop(peer_id, None)
        self.emit('peer-disconnected', peer_id)

    def deliver_message(self, sender: str, topic: str, content: str, uuid: str,
                        timestamp: str = "2024-01-01T00:00:00.000Z", times: int = 1) -> None:
        self.emit('p2p-message', {
            'from': sender,
            'content': content,
            'timestamp': timestamp,
            'topic': topic,
            'uuid': uuid,
        }, times=times)

    def reset(self) -> None:
        """Reset the simulator state (listeners are kept)."""
        self.calls.clear()
        self.fail_commands.clear()
        self.hang_commands.clear()
        self.connected.clear()
        self.topics.clear()
        self.sent.clear()
        self._channels = []
