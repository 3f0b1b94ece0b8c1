"""Integration tests: real asyncssh server on localhost with real clients."""

import asyncio
from pathlib import Path

import asyncssh
import pytest

from accessh.config import ConfigSource
from accessh.constants import NO_PTY_MESSAGE
from accessh.session.host import SessionHost
from accessh.ssh.supervisor import ServerSupervisor


async def _start(config_path: Path, tmp_path: Path, **kwargs) -> ServerSupervisor:
    supervisor = ServerSupervisor(
        ConfigSource(config_path),
        "127.0.0.1",
        0,
        tmp_path / "keys" / "host_ed25519",
        **kwargs,
    )
    await supervisor.start()
    return supervisor


async def _connect(port: int) -> asyncssh.SSHClientConnection:
    return await asyncssh.connect(
        "127.0.0.1",
        port,
        username="visitor",
        known_hosts=None,
        client_keys=None,
        agent_path=None,
    )


async def _open_terminal(conn: asyncssh.SSHClientConnection) -> asyncssh.SSHClientProcess:
    return await conn.create_process(term_type="xterm", term_size=(80, 24))


async def _read_until(process: asyncssh.SSHClientProcess, needle: str, timeout: float = 2.0) -> str:
    output = ""

    async def _collect() -> None:
        nonlocal output
        while needle not in output:
            chunk = await process.stdout.read(4096)
            if not chunk:
                raise AssertionError(f"stream ended before {needle!r}; got {output!r}")
            output += chunk

    await asyncio.wait_for(_collect(), timeout=timeout)
    return output


@pytest.mark.asyncio
async def test_concurrent_sessions_are_isolated(config_file: Path, tmp_path: Path):
    supervisor = await _start(config_file, tmp_path)
    conn_a = await _connect(supervisor.bound_port)
    conn_b = await _connect(supervisor.bound_port)
    try:
        proc_a = await _open_terminal(conn_a)
        proc_b = await _open_terminal(conn_b)
        await _read_until(proc_a, "zachl.tech directory")
        await _read_until(proc_b, "zachl.tech directory")
        assert supervisor.active_sessions() == 2

        proc_a.stdin.write("exit.zachl.tech\r")
        proc_b.stdin.write("zachl.tech\r")

        out_a = await _read_until(proc_a, "ssh -p 2222 exit.zachl.tech")
        out_b = await _read_until(proc_b, "ssh -p 22 zachl.tech")
        assert "Homepage" not in out_a
        assert "Exit Node" not in out_b

        # Escape at top level keeps an SSH session open; Ctrl+C ends it.
        proc_a.stdin.write("\x1b")
        await asyncio.sleep(0.05)
        assert supervisor.active_sessions() == 2

        proc_a.stdin.write("\x03")
        await asyncio.wait_for(proc_a.wait_closed(), timeout=2.0)
        assert proc_a.exit_status == 0

        await asyncio.sleep(0.05)
        assert supervisor.active_sessions() == 1
    finally:
        conn_a.close()
        conn_b.close()
        await supervisor.shutdown()


@pytest.mark.asyncio
async def test_help_view_over_ssh(config_file: Path, tmp_path: Path):
    supervisor = await _start(config_file, tmp_path)
    conn = await _connect(supervisor.bound_port)
    try:
        proc = await conn.create_process(term_type="xterm", term_size=(100, 60))
        await _read_until(proc, "zachl.tech directory")

        proc.stdin.write("help\r")
        out = await _read_until(proc, "Esc: Go back")
        for service in ("Exit Node", "Homepage", "Chat"):
            assert service in out

        proc.stdin.write("\x1b")
        await _read_until(proc, "Where would you like to go")
    finally:
        conn.close()
        await supervisor.shutdown()


@pytest.mark.asyncio
async def test_reveal_resets_over_ssh(config_file: Path, tmp_path: Path):
    supervisor = await _start(config_file, tmp_path, reveal_delay_ms=200)
    conn = await _connect(supervisor.bound_port)
    try:
        proc = await _open_terminal(conn)
        await _read_until(proc, "zachl.tech directory")

        proc.stdin.write("nowhere\r")
        await _read_until(proc, "no destination found at location: nowhere")
        await _read_until(proc, "Enter where you're trying to go")
    finally:
        conn.close()
        await supervisor.shutdown()


@pytest.mark.asyncio
async def test_session_without_pty_is_rejected(config_file: Path, tmp_path: Path):
    supervisor = await _start(config_file, tmp_path)
    conn = await _connect(supervisor.bound_port)
    try:
        result = await asyncio.wait_for(conn.run(), timeout=2.0)

        assert result.stdout == NO_PTY_MESSAGE
        assert result.exit_status == 1
        assert supervisor.active_sessions() == 0
    finally:
        conn.close()
        await supervisor.shutdown()


@pytest.mark.asyncio
async def test_config_error_is_shown_per_session(tmp_path: Path):
    supervisor = await _start(tmp_path / "missing.json", tmp_path)
    conn = await _connect(supervisor.bound_port)
    try:
        proc = await conn.create_process(term_type="xterm", term_size=(300, 24))
        await _read_until(proc, "file not found")

        proc.stdin.write("exit.zachl.tech\r\x03")
        await asyncio.wait_for(proc.wait_closed(), timeout=2.0)
    finally:
        conn.close()
        await supervisor.shutdown()


@pytest.mark.asyncio
async def test_shutdown_closes_active_sessions(config_file: Path, tmp_path: Path):
    supervisor = await _start(config_file, tmp_path, grace_s=2.0)
    port = supervisor.bound_port
    conn = await _connect(port)
    try:
        proc = await _open_terminal(conn)
        await _read_until(proc, "zachl.tech directory")

        await asyncio.wait_for(supervisor.shutdown(), timeout=3.0)

        await asyncio.wait_for(proc.wait_closed(), timeout=2.0)
        assert supervisor.active_sessions() == 0
    finally:
        conn.close()

    with pytest.raises(OSError):
        await _connect(port)


@pytest.mark.asyncio
async def test_listener_closes_before_grace_period_ends(
    config_file: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
):
    # Sessions ignore the stop request, so shutdown waits out the grace period.
    monkeypatch.setattr(SessionHost, "request_stop", lambda self: None)
    supervisor = await _start(config_file, tmp_path, grace_s=1.5)
    port = supervisor.bound_port
    conn = await _connect(port)
    try:
        proc = await _open_terminal(conn)
        await _read_until(proc, "zachl.tech directory")

        stopping = asyncio.create_task(supervisor.shutdown())
        await asyncio.sleep(0.3)
        assert not stopping.done()

        with pytest.raises(OSError):
            await _connect(port)

        # The accepted session is still served during the grace period.
        proc.stdin.write("exit.zachl.tech\r")
        await _read_until(proc, "ssh -p 2222 exit.zachl.tech")

        await asyncio.wait_for(stopping, timeout=4.0)
        assert supervisor.active_sessions() == 0
        await asyncio.wait_for(conn.wait_closed(), timeout=1.0)
    finally:
        conn.close()


@pytest.mark.asyncio
async def test_host_key_is_generated_once(config_file: Path, tmp_path: Path):
    first = await _start(config_file, tmp_path)
    await first.shutdown()
    key_path = tmp_path / "keys" / "host_ed25519"
    assert key_path.exists()
    fingerprint = asyncssh.read_private_key(str(key_path)).get_fingerprint()

    second = await _start(config_file, tmp_path)
    await second.shutdown()

    assert asyncssh.read_private_key(str(key_path)).get_fingerprint() == fingerprint
