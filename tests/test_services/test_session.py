"""Tests for RemoteSession state machine and serialization."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from ssh_explorer.models import (
    CommandRequest,
    CommandResult,
    ConnectionTarget,
    SessionState,
)
from ssh_explorer.services.errors import (
    AuthenticationError,
    CommandFailedError,
    RemoteFileError,
    TransportError,
)
from ssh_explorer.services.session import RemoteSession
from ssh_explorer.utils.validation import EmptyContentError

OK = CommandResult.from_output(0, "ok\n")


@pytest.fixture
def target() -> ConnectionTarget:
    """Create a test target."""
    return ConnectionTarget(host="192.168.1.100", username="testuser", password="secret")


def make_channel(result: CommandResult = OK) -> MagicMock:
    """Create a mock channel returning ``result`` for every command."""
    channel = MagicMock()
    channel.is_closed = False
    channel.execute = AsyncMock(return_value=result)
    channel.transfer = AsyncMock()
    return channel


def make_connector(*channels: MagicMock) -> MagicMock:
    """Create a mock connector handing out ``channels`` in order."""
    connector = MagicMock()
    connector.open = AsyncMock(side_effect=list(channels))
    return connector


async def hang(request: CommandRequest) -> CommandResult:
    await asyncio.sleep(10)
    return OK


class TestConnect:
    """Connection lifecycle."""

    @pytest.mark.asyncio
    async def test_new_session_is_disconnected(self, target: ConnectionTarget) -> None:
        """No connection is made until first use."""
        connector = make_connector(make_channel())
        session = RemoteSession(target, connector)

        assert session.state is SessionState.DISCONNECTED
        connector.open.assert_not_called()

    @pytest.mark.asyncio
    async def test_connect_reaches_ready(self, target: ConnectionTarget) -> None:
        """Successful connect moves to READY."""
        connector = make_connector(make_channel())
        session = RemoteSession(target, connector)

        await session.connect()

        assert session.state is SessionState.READY
        connector.open.assert_called_once_with(target)

    @pytest.mark.asyncio
    async def test_connect_is_idempotent(self, target: ConnectionTarget) -> None:
        """Connecting a ready session does nothing."""
        connector = make_connector(make_channel(), make_channel())
        session = RemoteSession(target, connector)

        await session.connect()
        await session.connect()

        assert connector.open.call_count == 1

    @pytest.mark.asyncio
    async def test_auth_failure_is_not_retried(self, target: ConnectionTarget) -> None:
        """Rejected credentials fail once and exhaust the session."""
        connector = MagicMock()
        connector.open = AsyncMock(
            side_effect=AuthenticationError(target.key, "connect", "Permission denied")
        )
        session = RemoteSession(target, connector)

        with pytest.raises(AuthenticationError, match="testuser@192.168.1.100:22"):
            await session.execute(CommandRequest("ls"))

        assert connector.open.call_count == 1
        assert session.state is SessionState.FAILED
        assert session.exhausted

    @pytest.mark.asyncio
    async def test_transport_failures_exhaust_budget(self, target: ConnectionTarget) -> None:
        """Consecutive connect failures exhaust the reconnect budget."""
        connector = MagicMock()
        connector.open = AsyncMock(
            side_effect=TransportError(target.key, "connect", "Connection refused")
        )
        session = RemoteSession(target, connector, reconnect_budget=2)

        with pytest.raises(TransportError):
            await session.connect()
        assert not session.exhausted

        with pytest.raises(TransportError):
            await session.connect()
        assert session.exhausted
        assert connector.open.call_count == 2

    @pytest.mark.asyncio
    async def test_success_resets_failure_count(self, target: ConnectionTarget) -> None:
        """A good connect clears earlier failures."""
        connector = MagicMock()
        connector.open = AsyncMock(
            side_effect=[TransportError(target.key, "connect", "refused"), make_channel()]
        )
        session = RemoteSession(target, connector, reconnect_budget=2)

        with pytest.raises(TransportError):
            await session.connect()
        await session.connect()

        assert session.state is SessionState.READY
        assert not session.exhausted


class TestExecute:
    """Command execution and lazy reconnection."""

    @pytest.mark.asyncio
    async def test_execute_connects_implicitly(self, target: ConnectionTarget) -> None:
        """First execute opens the connection."""
        channel = make_channel()
        session = RemoteSession(target, make_connector(channel))

        result = await session.execute(CommandRequest("ls"))

        assert result == OK
        assert session.state is SessionState.READY
        channel.execute.assert_called_once_with(CommandRequest("ls"))

    @pytest.mark.asyncio
    async def test_timeout_fails_then_reconnects_once(self, target: ConnectionTarget) -> None:
        """Timed-out command fails the session; next call reconnects exactly once."""
        stuck = make_channel()
        stuck.execute = AsyncMock(side_effect=hang)
        fresh = make_channel()
        connector = make_connector(stuck, fresh)
        session = RemoteSession(target, connector)

        with pytest.raises(TransportError, match="timed out"):
            await session.execute(CommandRequest("sleep 100", timeout=0.05))

        assert session.state is SessionState.FAILED
        stuck.close.assert_called_once()
        assert connector.open.call_count == 1

        result = await session.execute(CommandRequest("ls"))

        assert result == OK
        assert connector.open.call_count == 2
        assert session.state is SessionState.READY

    @pytest.mark.asyncio
    async def test_transport_error_fails_session(self, target: ConnectionTarget) -> None:
        """Connection drop mid-command fails the session without retrying it."""
        broken = make_channel()
        broken.execute = AsyncMock(side_effect=TransportError(target.key, "execute", "lost"))
        connector = make_connector(broken, make_channel())
        session = RemoteSession(target, connector)

        with pytest.raises(TransportError):
            await session.execute(CommandRequest("ls"))

        assert session.state is SessionState.FAILED
        assert broken.execute.call_count == 1
        assert connector.open.call_count == 1

    @pytest.mark.asyncio
    async def test_stale_channel_is_replaced(self, target: ConnectionTarget) -> None:
        """A channel closed by the remote side is reopened on next use."""
        first = make_channel()
        connector = make_connector(first, make_channel())
        session = RemoteSession(target, connector)

        await session.execute(CommandRequest("ls"))
        first.is_closed = True
        await session.execute(CommandRequest("ls"))

        assert connector.open.call_count == 2

    @pytest.mark.asyncio
    async def test_commands_run_in_fifo_order(self, target: ConnectionTarget) -> None:
        """Concurrent callers are served one at a time in submission order."""
        order: list[str] = []
        in_flight = 0
        max_in_flight = 0

        async def run(request: CommandRequest) -> CommandResult:
            nonlocal in_flight, max_in_flight
            in_flight += 1
            max_in_flight = max(max_in_flight, in_flight)
            await asyncio.sleep(0.01)
            order.append(request.command)
            in_flight -= 1
            return CommandResult.from_output(0, request.command)

        channel = make_channel()
        channel.execute = AsyncMock(side_effect=run)
        session = RemoteSession(target, make_connector(channel))

        results = await asyncio.gather(
            *(session.execute(CommandRequest(f"echo {i}")) for i in range(5))
        )

        assert order == [f"echo {i}" for i in range(5)]
        assert [r.output for r in results] == order
        assert max_in_flight == 1

    @pytest.mark.asyncio
    async def test_queued_command_fails_fast_after_failure(
        self, target: ConnectionTarget
    ) -> None:
        """Commands waiting behind a failed one do not reconnect."""
        stuck = make_channel()
        stuck.execute = AsyncMock(side_effect=hang)
        connector = make_connector(stuck, make_channel())
        session = RemoteSession(target, connector)

        first = asyncio.create_task(session.execute(CommandRequest("hang", timeout=0.05)))
        second = asyncio.create_task(session.execute(CommandRequest("ls")))

        with pytest.raises(TransportError, match="timed out"):
            await first
        with pytest.raises(TransportError, match="queued"):
            await second

        assert connector.open.call_count == 1

        await session.execute(CommandRequest("ls"))
        assert connector.open.call_count == 2


class TestUpload:
    """Atomic file replacement."""

    @pytest.mark.asyncio
    async def test_upload_writes_temp_then_renames(self, target: ConnectionTarget) -> None:
        """Content lands in a temp sibling which is moved over the destination."""
        channel = make_channel()
        session = RemoteSession(target, make_connector(channel))

        await session.upload_content("/etc/app.conf", "key = value\n")

        temp_path, data = channel.transfer.call_args[0]
        assert temp_path != "/etc/app.conf"
        assert temp_path.startswith("/etc/.app.conf.")
        assert data == b"key = value\n"

        rename = channel.execute.call_args[0][0]
        assert rename.command == f"mv -f -- {temp_path} /etc/app.conf"

    @pytest.mark.asyncio
    async def test_empty_content_rejected_before_network(
        self, target: ConnectionTarget
    ) -> None:
        """Empty writes never reach the connector."""
        connector = make_connector(make_channel())
        session = RemoteSession(target, connector)

        with pytest.raises(EmptyContentError):
            await session.upload_content("/tmp/x", "")

        connector.open.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_rename_cleans_up(self, target: ConnectionTarget) -> None:
        """A failed rename removes the temp file and reports the error."""
        channel = make_channel()
        channel.execute = AsyncMock(
            side_effect=[
                CommandResult.from_output(1, "", "mv: cannot move: Permission denied\n"),
                OK,
            ]
        )
        session = RemoteSession(target, make_connector(channel))

        with pytest.raises(CommandFailedError, match="Permission denied"):
            await session.upload_content("/etc/app.conf", b"data")

        cleanup = channel.execute.call_args_list[1][0][0]
        assert cleanup.command.startswith("rm -f -- /etc/.app.conf.")
        assert session.state is SessionState.READY

    @pytest.mark.asyncio
    async def test_remote_file_error_keeps_session(self, target: ConnectionTarget) -> None:
        """SFTP refusal leaves the connection usable."""
        channel = make_channel()
        channel.transfer = AsyncMock(
            side_effect=RemoteFileError(target.key, "upload", "Permission denied")
        )
        session = RemoteSession(target, make_connector(channel))

        with pytest.raises(RemoteFileError):
            await session.upload_content("/root/x", b"data")

        assert session.state is SessionState.READY
        channel.close.assert_not_called()

    @pytest.mark.asyncio
    async def test_transfer_timeout_fails_session(self, target: ConnectionTarget) -> None:
        """A stuck transfer fails the session."""
        channel = make_channel()

        async def slow_transfer(path: str, content: bytes) -> None:
            await asyncio.sleep(10)

        channel.transfer = AsyncMock(side_effect=slow_transfer)
        session = RemoteSession(target, make_connector(channel), transfer_timeout=0.05)

        with pytest.raises(TransportError, match="upload timed out"):
            await session.upload_content("/tmp/big", b"data")

        assert session.state is SessionState.FAILED

    @pytest.mark.asyncio
    async def test_failed_cleanup_keeps_original_error(
        self, target: ConnectionTarget
    ) -> None:
        """A broken cleanup does not hide the SFTP failure."""
        channel = make_channel()
        channel.transfer = AsyncMock(
            side_effect=RemoteFileError(target.key, "upload", "No space left on device")
        )
        channel.execute = AsyncMock(
            side_effect=TransportError(target.key, "execute", "connection lost")
        )
        session = RemoteSession(target, make_connector(channel))

        with pytest.raises(RemoteFileError, match="No space left on device"):
            await session.upload_content("/var/data.bin", b"data")

        assert session.state is SessionState.FAILED
        channel.close.assert_called_once()


class TestClose:
    """Closing sessions."""

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, target: ConnectionTarget) -> None:
        """close() can be called any number of times."""
        channel = make_channel()
        session = RemoteSession(target, make_connector(channel))
        await session.connect()

        session.close()
        session.close()

        channel.close.assert_called_once()
        assert session.state is SessionState.DISCONNECTED
        assert session.is_closed

    @pytest.mark.asyncio
    async def test_close_unused_session(self, target: ConnectionTarget) -> None:
        """Closing a never-connected session is safe."""
        session = RemoteSession(target, make_connector())

        session.close()

        assert session.state is SessionState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_reuse_after_close_reconnects(self, target: ConnectionTarget) -> None:
        """A closed session reconnects when used again."""
        connector = make_connector(make_channel(), make_channel())
        session = RemoteSession(target, connector)
        await session.connect()
        session.close()

        await session.execute(CommandRequest("ls"))

        assert connector.open.call_count == 2
        assert not session.is_closed

    @pytest.mark.asyncio
    async def test_close_during_connect_discards_channel(
        self, target: ConnectionTarget
    ) -> None:
        """A channel opened after close() is closed, never published."""
        gate = asyncio.Event()
        channel = make_channel()

        async def open_when_released(t: ConnectionTarget) -> MagicMock:
            await gate.wait()
            return channel

        connector = MagicMock()
        connector.open = AsyncMock(side_effect=open_when_released)
        session = RemoteSession(target, connector)

        task = asyncio.create_task(session.connect())
        while session.state is not SessionState.CONNECTING:
            await asyncio.sleep(0)

        session.close()
        gate.set()

        with pytest.raises(TransportError, match="closed while connecting"):
            await task

        channel.close.assert_called_once()
        assert session.state is SessionState.DISCONNECTED
        assert session.is_closed
        assert not session.is_ready

    @pytest.mark.asyncio
    async def test_connector_without_channel_raises(self, target: ConnectionTarget) -> None:
        """A connector that hands back nothing surfaces a transport error."""
        connector = MagicMock()
        connector.open = AsyncMock(return_value=None)
        session = RemoteSession(target, connector)

        with pytest.raises(TransportError, match="no channel after connect"):
            await session.execute(CommandRequest("ls"))
