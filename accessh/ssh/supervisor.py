"""SSH server supervisor.

Accepts connections, runs one SessionHost per PTY session and shuts them all
down on SIGINT/SIGTERM: stop accepting, ask every session to end, wait up to
the grace period, then abort whatever is still open.
"""

from __future__ import annotations

import asyncio
import functools
import itertools
import logging
import signal
from pathlib import Path
from typing import Optional

import asyncssh

from accessh.config import ConfigError, ConfigSource, SSHSettings
from accessh.constants import REVEAL_DELAY_MS, SHUTDOWN_GRACE_S
from accessh.locations import build_location_table
from accessh.paths import DEFAULT_HOST_KEY_PATH
from accessh.session.host import SessionHost
from accessh.ssh.server import AccesshSSHServer, SSHProcessStream, has_pty, load_host_key, reject_without_pty
from accessh.tasks import TaskRegistry

logger = logging.getLogger(__name__)


class ServerSupervisor:
    """Owns the listening socket and every active session."""

    def __init__(
        self,
        source: ConfigSource,
        hostname: str,
        port: int,
        host_key_path: Path = DEFAULT_HOST_KEY_PATH,
        *,
        grace_s: float = SHUTDOWN_GRACE_S,
        reveal_delay_ms: int = REVEAL_DELAY_MS,
    ) -> None:
        self.source = source
        self.hostname = hostname
        self.port = port
        self.host_key_path = host_key_path
        self.grace_s = grace_s
        self.reveal_delay_ms = reveal_delay_ms
        self._acceptor: Optional[asyncssh.SSHAcceptor] = None
        self._tasks = TaskRegistry(owner="ssh")
        self._hosts: dict[str, SessionHost] = {}
        self._connections: set[asyncssh.SSHServerConnection] = set()
        self._session_ids = itertools.count(1)
        self._stopping = False

    @classmethod
    def from_settings(cls, source: ConfigSource, settings: SSHSettings, **kwargs: object) -> "ServerSupervisor":
        key_path = Path(settings.host_key_path).expanduser() if settings.host_key_path else DEFAULT_HOST_KEY_PATH
        return cls(source, settings.hostname, int(settings.port), key_path, **kwargs)  # type: ignore[arg-type]

    @property
    def bound_port(self) -> int:
        """Port actually listened on (differs from `port` when it was 0)."""
        if self._acceptor is None:
            return self.port
        return self._acceptor.sockets[0].getsockname()[1]

    def active_sessions(self) -> int:
        return len(self._hosts)

    async def start(self) -> None:
        key = load_host_key(self.host_key_path)
        self._acceptor = await asyncssh.create_server(
            functools.partial(AccesshSSHServer, self._connections),
            self.hostname,
            self.port,
            server_host_keys=[key],
            process_factory=self._accept,
            encoding="utf-8",
            line_editor=False,
        )
        logger.info("Starting SSH server on %s:%d", self.hostname, self.bound_port)

    def _accept(self, process: asyncssh.SSHServerProcess) -> None:  # type: ignore[type-arg]
        if self._stopping:
            process.exit(1)
            return
        if not has_pty(process):
            logger.info("Rejecting session without a PTY")
            reject_without_pty(process)
            return
        name = f"session-{next(self._session_ids)}"
        self._tasks.spawn(self._run_session(process, name), name=name)

    def _open_session(self, process: asyncssh.SSHServerProcess, name: str) -> SessionHost:  # type: ignore[type-arg]
        stream = SSHProcessStream(process)
        load_error: Optional[ConfigError] = None
        try:
            config = self.source.load()
        except ConfigError as e:
            logger.error("Could not load config for %s: %s", name, e)
            config = None
            load_error = e
        return SessionHost(
            stream,
            build_location_table(config),
            load_error=load_error,
            quit_on_escape=False,
            reveal_delay_ms=self.reveal_delay_ms,
            name=name,
        )

    async def _run_session(self, process: asyncssh.SSHServerProcess, name: str) -> None:  # type: ignore[type-arg]
        host = self._open_session(process, name)
        self._hosts[name] = host
        logger.debug("%s opened for user %r", name, process.get_extra_info("username"))
        try:
            await host.run()
        finally:
            self._hosts.pop(name, None)

    async def shutdown(self) -> None:
        """Stop accepting, then end every session within the grace period."""
        logger.info("Stopping SSH server")
        self._stopping = True
        # Closing the listener leaves accepted connections open.
        if self._acceptor is not None:
            self._acceptor.close()

        for host in list(self._hosts.values()):
            host.request_stop()

        pending = await self._tasks.wait(self.grace_s)
        if pending:
            logger.warning("Forcing %d session(s) closed after %.1fs", len(pending), self.grace_s)
            for host in list(self._hosts.values()):
                host.stream.abort()
            await self._tasks.shutdown(timeout=1.0)

        for conn in list(self._connections):
            conn.close()
        if self._acceptor is not None:
            await self._acceptor.wait_closed()
            self._acceptor = None


async def run_ssh_server(source: ConfigSource, settings: SSHSettings) -> None:
    """Serve until SIGINT or SIGTERM, then shut down gracefully."""
    supervisor = ServerSupervisor.from_settings(source, settings)
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()

    def _on_signal(signum: int) -> None:
        logger.info("Received %s signal...", signal.Signals(signum).name)
        stop.set()

    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, _on_signal, signum)

    try:
        await supervisor.start()
        await stop.wait()
        await supervisor.shutdown()
    finally:
        for signum in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(signum)
