#!/usr/bin/env python3
"""
P2P Chat Demo - CLI driven session against the in-process backend simulator.

This demo shows:
- Channel create/join/load with the simulated channel file
- Optimistic sends and their recorded outcome
- Peer lifecycle and status handling from simulated backend events
- Database state visualization
"""

import argparse
import asyncio
import json
import shlex
import sys
import uuid as uuid_lib
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add project root to path
project_root = Path(__file__).parent.parent.parent.parent
sys.path.insert(0, str(project_root))

from core.config import load_config
from core.errors import ChatError
from core.network_simulator import BackendSimulator, SimulatorConfig
from core.session import ChatSession

HELP = """Commands:
  connect <multiaddr>            dial a peer
  peers                          list known peers
  create <name>                  create a channel
  join <name> <uuid>             join a channel by uuid
  channels                       list channels
  load                           reload channels from the backend
  send <uuid> <text...>          send a message to a channel
  read <uuid>                    mark a channel read
  messages [uuid]                list messages
  me                             show local identity
  mutations                      show optimistic mutation outcomes
  sim-peer <peer_id> <addr>      simulate peer-connected
  sim-drop <peer_id>             simulate peer-disconnected
  sim-recv <uuid> <from> <text>  simulate an incoming message
  sim-status <text...>           simulate connection-status
  sim-error <text...>            simulate connection-error
  fail <command> | recover       inject or clear backend failures
  dump                           dump all tables
  help | exit"""


class ChatDemoCore:
    """Business logic shared by the scripted and interactive modes."""

    def __init__(self, session: ChatSession, backend: BackendSimulator):
        self.session = session
        self.backend = backend

    async def execute_cli_command(self, line: str) -> str:
        parts = shlex.split(line)
        if not parts:
            return ""
        cmd, args = parts[0].lower(), parts[1:]

        try:
            return await self._dispatch(cmd, args)
        except (ChatError, ValueError) as e:
            return f"Error: {e}"

    async def _dispatch(self, cmd: str, args: List[str]) -> str:
        s = self.session

        if cmd == "help":
            return HELP
        if cmd == "connect" and len(args) == 1:
            await s.connect_to_peer(args[0])
            return f"Dialing {args[0]}"
        if cmd == "peers":
            await s.refresh_peers()
            return self._rows(s.peers(), "No peers")
        if cmd == "create" and args:
            result = await s.create_channel(" ".join(args))
            return f"Created #{result['data']['topic']} ({result['data']['uuid']})"
        if cmd == "join" and len(args) == 2:
            result = await s.join_channel(args[0], args[1])
            return f"Joined #{result['data']['topic']}"
        if cmd == "channels":
            return self._rows(s.channels(), "No channels")
        if cmd == "load":
            data = (await s.load_channels())['data']
            lines = [f"Loaded {len(data['channels'])} channels"]
            for failure in data['failed']:
                lines.append(f"  failed to subscribe {failure['topic']}: {failure['error']}")
            return "\n".join(lines)
        if cmd == "send" and len(args) >= 2:
            me = s.my_info() or {}
            result = await s.send_message(" ".join(args[1:]), args[0], peer_id=me.get('peer_id', ''))
            return f"Sent {result['data']['uuid']}"
        if cmd == "read" and len(args) == 1:
            await s.mark_read(args[0])
            return "Marked read"
        if cmd == "messages":
            msgs = s.messages(args[0] if args else None)
            return "\n".join(f"[{m['topic'][:8]}] {m['from']}: {m['content']}" for m in msgs) or "No messages"
        if cmd == "me":
            return json.dumps(s.my_info(), indent=2)
        if cmd == "mutations":
            return self._rows(s.query('system.mutations'), "No mutations")
        if cmd == "sim-peer" and len(args) == 2:
            self.backend.peer_connected(args[0], args[1])
            return f"Status: {s.status!r}"
        if cmd == "sim-drop" and len(args) == 1:
            self.backend.peer_disconnected(args[0])
            return "Peer dropped"
        if cmd == "sim-recv" and len(args) >= 3:
            self.backend.deliver_message(args[1], args[0], " ".join(args[2:]), str(uuid_lib.uuid4()))
            return "Delivered"
        if cmd == "sim-status" and args:
            self.backend.emit('connection-status', " ".join(args))
            return f"Status: {s.status!r}"
        if cmd == "sim-error" and args:
            self.backend.emit('connection-error', " ".join(args))
            return f"Status: {s.status!r}"
        if cmd == "fail" and len(args) >= 1:
            self.backend.fail(args[0], " ".join(args[1:]) or "simulated failure")
            return f"{args[0]} will fail"
        if cmd == "recover":
            self.backend.recover()
            return "Backend recovered"
        if cmd == "dump":
            return json.dumps(s.query('system.dump_database'), indent=2, default=str)

        return f"Unknown command: {cmd} (try 'help')"

    @staticmethod
    def _rows(rows: List[Dict[str, Any]], empty: str) -> str:
        if not rows:
            return empty
        return "\n".join(json.dumps(row, default=str) for row in rows)


async def run_cli_mode(core: ChatDemoCore, commands: Optional[List[str]] = None) -> None:
    """Run scripted commands, or an interactive prompt when none are given."""
    if commands:
        for cmd in commands:
            print(f"> {cmd}")
            output = await core.execute_cli_command(cmd)
            if output:
                print(output)
            print()

        print("=== Snapshot: DB Tables (counts) ===")
        dump = core.session.query('system.dump_database')
        for table, rows in dump.items():
            print(f"{table}: {len(rows)} rows")
        return

    print("P2P Chat Demo - CLI Mode")
    print("Type 'help' for available commands")
    print()

    while True:
        try:
            cmd = (await asyncio.to_thread(input, "> ")).strip()
        except (EOFError, KeyboardInterrupt):
            print("\nExiting...")
            break
        if cmd.lower() in ['exit', 'quit']:
            break
        if cmd:
            output = await core.execute_cli_command(cmd)
            if output:
                print(output)
            print()


async def run(args: argparse.Namespace) -> None:
    config = load_config(args.config)
    if args.verbose:
        config.verbose = True

    backend = BackendSimulator(
        SimulatorConfig(latency_ms=args.latency_ms),
        channels_path=args.channels_file,
    )

    def show_alert(text: str) -> None:
        print(f"!! {text}")

    async with ChatSession(backend, config, on_alert=show_alert) as session:
        await run_cli_mode(ChatDemoCore(session, backend), args.commands)


def main() -> None:
    parser = argparse.ArgumentParser(description="P2P Chat Demo")
    parser.add_argument("--commands", nargs="+",
                        help="Commands to run instead of the interactive prompt")
    parser.add_argument("--config",
                        help="Path to a chat.yaml (default: $P2P_CHAT_CONFIG or the bundled file)")
    parser.add_argument("--channels-file",
                        help="Persist simulated channels to this JSON file")
    parser.add_argument("--latency-ms", type=int, default=0,
                        help="Simulated backend latency per command")
    parser.add_argument("--verbose", action="store_true",
                        help="Trace every event and command")

    asyncio.run(run(parser.parse_args()))


if __name__ == "__main__":
    main()
