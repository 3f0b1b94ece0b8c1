"""asyncssh glue: server object, host key provisioning and the process stream."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional, Sequence

import asyncssh

from accessh.constants import NO_PTY_MESSAGE, STREAM_READ_SIZE
from accessh.session.host import StreamClosed
from accessh.session.keys import decode_keys
from accessh.session.state import Event, window_resize

logger = logging.getLogger(__name__)


class AccesshSSHServer(asyncssh.SSHServer):
    """Accepts any client and logs each connection's lifetime."""

    def __init__(self, connections: Optional[set[asyncssh.SSHServerConnection]] = None) -> None:
        self._peer = "unknown"
        self._started = time.monotonic()
        self._connections = connections if connections is not None else set()
        self._conn: Optional[asyncssh.SSHServerConnection] = None

    def connection_made(self, conn: asyncssh.SSHServerConnection) -> None:
        self._conn = conn
        self._connections.add(conn)
        peer = conn.get_extra_info("peername")
        if peer:
            self._peer = f"{peer[0]}:{peer[1]}"
        self._started = time.monotonic()
        logger.info("Connection opened from %s", self._peer)

    def connection_lost(self, exc: Optional[Exception]) -> None:
        if self._conn is not None:
            self._connections.discard(self._conn)
        duration = time.monotonic() - self._started
        if exc:
            logger.warning("Connection from %s lost after %.1fs: %s", self._peer, duration, exc)
        else:
            logger.info("Connection from %s closed after %.1fs", self._peer, duration)

    def begin_auth(self, username: str) -> bool:
        # No authentication: every user lands in a session.
        logger.debug("User %s connecting from %s", username, self._peer)
        return False


def load_host_key(path: Path) -> asyncssh.SSHKey:
    """Read the server host key, generating an Ed25519 key on first use."""
    if path.exists():
        return asyncssh.read_private_key(str(path))

    logger.info("Generating SSH host key at %s", path)
    key = asyncssh.generate_private_key("ssh-ed25519")
    path.parent.mkdir(parents=True, exist_ok=True)
    key.write_private_key(str(path))
    path.chmod(0o600)
    return key


def has_pty(process: asyncssh.SSHServerProcess) -> bool:  # type: ignore[type-arg]
    return process.get_terminal_type() is not None


def reject_without_pty(process: asyncssh.SSHServerProcess) -> None:  # type: ignore[type-arg]
    """Sessions need an interactive terminal; refuse the rest."""
    process.stdout.write(NO_PTY_MESSAGE)
    process.exit(1)


class SSHProcessStream:
    """SessionStream over an asyncssh server process."""

    def __init__(self, process: asyncssh.SSHServerProcess) -> None:  # type: ignore[type-arg]
        self.process = process
        self._closed = False

    def terminal_size(self) -> tuple[int, int]:
        width, height, _, _ = self.process.get_terminal_size()
        return width, height

    async def read_events(self) -> Sequence[Event]:
        try:
            data = await self.process.stdin.read(STREAM_READ_SIZE)
        except asyncssh.TerminalSizeChanged as e:
            return [window_resize(e.width, e.height)]
        except (asyncssh.BreakReceived, asyncssh.SignalReceived):
            return []
        except asyncssh.Error as e:
            raise StreamClosed(str(e)) from e
        if not data:
            raise StreamClosed("end of input")
        return decode_keys(data)

    async def write(self, text: str) -> None:
        if self._closed or self.process.channel.is_closing():
            raise StreamClosed("channel closing")
        try:
            self.process.stdout.write(text)
            await self.process.stdout.drain()
        except (asyncssh.Error, BrokenPipeError, ConnectionError) as e:
            raise StreamClosed(str(e)) from e

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if not self.process.channel.is_closing():
            self.process.exit(0)

    def abort(self) -> None:
        """Drop the channel without waiting for the client."""
        self._closed = True
        self.process.channel.abort()
