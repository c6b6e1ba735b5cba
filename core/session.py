"""
Chat session: owns the client state for one backend connection.
"""
import asyncio
import importlib
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .backend import Backend
from .config import ChatConfig
from .db import get_connection, init_database
from .errors import BackendCallFailed
from .flows import flows_registry
from .gateway import CommandGateway
from .pipeline import EventPipeline
from .queries import query_registry
from .status import StatusNotifier

DEFAULT_PROTOCOL_DIR = str(Path(__file__).resolve().parent.parent / "protocols" / "p2p_chat")


class ChatSession:
    """
    Single entry point for consumers.

    init() starts listening to the backend, requests the local identity and
    (optionally) loads the channel directory. teardown() releases every
    subscription and cancels the status timer; events delivered afterwards
    are ignored.
    """

    def __init__(self, backend: Backend, config: Optional[ChatConfig] = None,
                 protocol_dir: str = DEFAULT_PROTOCOL_DIR,
                 loop: Optional[asyncio.AbstractEventLoop] = None,
                 on_status: Optional[Callable[[str], None]] = None,
                 on_alert: Optional[Callable[[str], None]] = None):
        self.backend = backend
        self.config = config or ChatConfig()
        self.protocol_dir = protocol_dir

        protocol = importlib.import_module(f"protocols.{Path(protocol_dir).name}.protocol")

        self.db = get_connection(self.config.db_path)
        init_database(self.db, protocol_dir)

        query_registry.discover(protocol_dir)
        flows_registry.discover(protocol_dir)

        self.notifier = StatusNotifier(
            default_clear_ms=self.config.status_clear_ms,
            loop=loop,
            on_change=on_status,
            on_alert=on_alert,
            verbose=self.config.verbose,
        )
        self.gateway = CommandGateway(backend, protocol.COMMANDS, verbose=self.config.verbose)
        self.handlers = protocol.build_handlers(self.notifier, self.config)
        self.pipeline = EventPipeline(
            self.db,
            self.handlers,
            protocol.decode_event,
            protocol.event_names(),
            verbose=self.config.verbose,
        )
        self._initialized = False
        self._closed = False

    async def __aenter__(self) -> "ChatSession":
        await self.init()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.teardown()
        self.close()

    @property
    def status(self) -> str:
        return self.notifier.text

    async def init(self) -> Dict[str, Any]:
        """
        Attach to the backend and run startup requests.

        Both startup requests are best effort: a failure is logged and the
        session stays usable.
        """
        if self._initialized:
            raise RuntimeError("Session already initialized")
        if self._closed:
            raise RuntimeError("Session has been closed")

        self.notifier.reopen()
        self.pipeline.attach(self.backend)
        self._initialized = True

        result: Dict[str, Any] = {'channels': None, 'errors': []}

        try:
            await self.execute('identity.refresh')
        except BackendCallFailed as e:
            print(f"[session] Failed to get my info: {e.message}")
            result['errors'].append(str(e))

        if self.config.load_channels_on_init:
            try:
                result['channels'] = (await self.execute('channel.load'))['data']
            except BackendCallFailed as e:
                print(f"[session] Failed to load channels: {e.message}")
                result['errors'].append(str(e))

        return result

    def teardown(self) -> None:
        """Stop listening and cancel timers. Safe to call more than once."""
        self.pipeline.detach()
        self.notifier.teardown()
        self._initialized = False

    def close(self) -> None:
        """Tear down and release the database."""
        if self._closed:
            return
        self.teardown()
        self.db.close()
        self._closed = True

    # Operations

    async def execute(self, op_id: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Run a flow with this session's context injected."""
        flow_params = dict(params or {})
        flow_params.update({
            '_db': self.db,
            '_gateway': self.gateway,
            '_notifier': self.notifier,
            '_config': self.config,
        })
        return await flows_registry.execute(op_id, flow_params)

    def query(self, query_id: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return query_registry.execute(query_id, params or {}, self.db)

    async def send_message(self, msg: str, topic: str, peer_id: str = "",
                           uuid: Optional[str] = None) -> Dict[str, Any]:
        params: Dict[str, Any] = {'msg': msg, 'topic': topic, 'peer_id': peer_id}
        if uuid:
            params['uuid'] = uuid
        return await self.execute('message.send', params)

    async def connect_to_peer(self, address: str) -> Dict[str, Any]:
        return await self.execute('peer.connect', {'address': address})

    async def refresh_peers(self) -> Dict[str, Any]:
        return await self.execute('peer.refresh')

    async def refresh_my_info(self) -> Dict[str, Any]:
        return await self.execute('identity.refresh')

    async def subscribe(self, uuid: str) -> Dict[str, Any]:
        return await self.execute('channel.subscribe', {'uuid': uuid})

    async def save_channel(self, topic: str, uuid: str) -> Dict[str, Any]:
        return await self.execute('channel.save', {'topic': topic, 'uuid': uuid})

    async def load_channels(self) -> Dict[str, Any]:
        return await self.execute('channel.load')

    async def create_channel(self, name: str) -> Dict[str, Any]:
        return await self.execute('channel.create', {'name': name})

    async def join_channel(self, name: str, uuid: str) -> Dict[str, Any]:
        return await self.execute('channel.join', {'name': name, 'uuid': uuid})

    async def mark_read(self, uuid: str) -> Dict[str, Any]:
        return await self.execute('channel.mark_read', {'uuid': uuid})

    def set_status(self, text: str, duration_ms: Optional[int] = None) -> None:
        self.notifier.set(text, duration_ms)

    # Read side

    def messages(self, topic: Optional[str] = None) -> List[Dict[str, Any]]:
        return self.query('message.get', {'topic': topic} if topic is not None else {})

    def peers(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        return self.query('peer.get', {'status': status} if status else {})

    def channels(self) -> List[Dict[str, Any]]:
        return self.query('channel.get')

    def my_info(self) -> Optional[Dict[str, Any]]:
        return self.query('identity.get')
