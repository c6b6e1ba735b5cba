"""
Command gateway: the single path for outbound backend calls.
"""
import asyncio
from typing import Any, Dict, Iterable, Optional

from .backend import Backend
from .errors import BackendCallFailed


class CommandGateway:
    """Uniform request/response wrapper around backend commands.

    Every call either returns the backend's result or raises
    BackendCallFailed with a human-readable message. The gateway performs no
    state mutation and no retries; callers own both.
    """

    def __init__(self, backend: Backend, commands: Iterable[str], verbose: bool = False):
        self.backend = backend
        self.commands = frozenset(commands)
        self.verbose = verbose
        self.in_flight = 0

    async def call(self, command: str, args: Optional[Dict[str, Any]] = None,
                   timeout_ms: int = 0) -> Any:
        """Invoke a backend command.

        Args:
            command: Wire name of the command
            args: Command arguments (defaults to empty)
            timeout_ms: Fail the call after this many milliseconds (0 waits forever)

        Raises:
            ValueError: If the command name is not part of the contract
            BackendCallFailed: If the backend rejects the call or times out
        """
        if command not in self.commands:
            raise ValueError(f"Unknown command: {command}")

        payload = dict(args or {})
        if self.verbose:
            print(f"[gateway] -> {command} {payload}")

        self.in_flight += 1
        try:
            if timeout_ms > 0:
                result = await asyncio.wait_for(
                    self.backend.invoke(command, payload), timeout_ms / 1000
                )
            else:
                result = await self.backend.invoke(command, payload)
        except asyncio.TimeoutError as e:
            reason = f"timed out after {timeout_ms}ms" if timeout_ms > 0 else (str(e) or "timed out")
            print(f"[gateway] {command} failed: {reason}")
            raise BackendCallFailed(command, reason) from e
        except asyncio.CancelledError:
            raise
        except Exception as e:
            print(f"[gateway] {command} failed: {e}")
            raise BackendCallFailed(command, str(e) or type(e).__name__) from e
        finally:
            self.in_flight -= 1

        if self.verbose:
            print(f"[gateway] <- {command} ok")
        return result
