import asyncio

import pytest

from chat_client.chat_renderer import BELL
from chat_client.chat_session_manager import ChatSessionManager
from chat_client.errors import ConnectError
from chat_client.shutdown import SessionPhase, ShutdownReason
from chat_shared.codec import FRAME_SIZE, decode, encode
from chat_shared.config import ClientConfig
from chat_shared.models import Message, MessageType

from conftest import ScriptedLines


class FakeChatServer:
    """Accepts one client, records its frames and plays a script back."""

    def __init__(self, script: list[Message] | None = None):
        self.script = script or []
        self.received: list[Message] = []
        self.done = asyncio.Event()
        self.server: asyncio.Server | None = None

    async def start(self) -> int:
        self.server = await asyncio.start_server(self.handle_client, "127.0.0.1", 0)
        return self.server.sockets[0].getsockname()[1]

    async def stop(self):
        self.server.close()
        await self.server.wait_closed()

    async def handle_client(self, reader, writer):
        try:
            self.received.append(decode(await reader.readexactly(FRAME_SIZE)))
            for message in self.script:
                writer.write(encode(message))
                await writer.drain()
            while True:
                self.received.append(decode(await reader.readexactly(FRAME_SIZE)))
        except (asyncio.IncompleteReadError, ConnectionResetError):
            pass
        finally:
            writer.close()
            self.done.set()


def session_config(port):
    return ClientConfig(host="127.0.0.1", port=port, username="alice", _env_file=None)


@pytest.mark.asyncio
async def test_broadcast_then_disconnect(renderer, display, term):
    server = FakeChatServer(
        [
            Message(
                type=MessageType.BROADCAST,
                timestamp=1700000000,
                username="bob",
                body="hello @alice",
            ),
            Message(type=MessageType.SYSTEM, body="carol joined"),
            Message(type=MessageType.DISCONNECT, body="server full"),
        ]
    )
    port = await server.start()
    manager = ChatSessionManager(
        session_config(port), renderer, ScriptedLines(), handle_signals=False
    )
    try:
        await asyncio.wait_for(manager.start(), timeout=5)
        await asyncio.wait_for(server.done.wait(), timeout=5)
    finally:
        await server.stop()

    lines = display.getvalue().splitlines()
    assert lines[0] == "connected to server"
    assert lines[1].endswith("bob: hello " + BELL + term.red("@alice"))
    assert lines[2] == term.bright_black("[SYSTEM] carol joined")
    assert lines[3] == term.red("[DISCONNECT] server full")

    assert [m.type for m in server.received] == [
        MessageType.LOGIN,
        MessageType.LOGOUT,
    ]
    assert server.received[0].username == "alice"
    assert manager.shutdown.reason is ShutdownReason.SERVER_DISCONNECT
    assert manager.shutdown.phase is SessionPhase.STOPPED
    assert manager.connection.closed


@pytest.mark.asyncio
async def test_end_of_input_logs_out(renderer, display):
    server = FakeChatServer()
    port = await server.start()
    lines = ScriptedLines("hi everyone\n", "\n", "")
    manager = ChatSessionManager(
        session_config(port), renderer, lines, handle_signals=False
    )
    try:
        await asyncio.wait_for(manager.start(), timeout=5)
        await asyncio.wait_for(server.done.wait(), timeout=5)
    finally:
        await server.stop()

    assert [(m.type, m.body) for m in server.received] == [
        (MessageType.LOGIN, ""),
        (MessageType.CHAT, "hi everyone"),
        (MessageType.LOGOUT, ""),
    ]
    assert display.getvalue().splitlines()[-1] == "[DISCONNECT] User logged out"
    assert manager.shutdown.phase is SessionPhase.STOPPED


@pytest.mark.asyncio
async def test_interrupt_logs_out(renderer, display):
    server = FakeChatServer()
    port = await server.start()
    manager = ChatSessionManager(
        session_config(port), renderer, ScriptedLines(), handle_signals=False
    )
    try:
        await manager.init_session()
        loop = asyncio.get_running_loop()
        loop.call_later(0.05, manager.shutdown.request, ShutdownReason.INTERRUPT)
        await asyncio.wait_for(manager.run_session(), timeout=5)
        await asyncio.wait_for(server.done.wait(), timeout=5)
    finally:
        await server.stop()

    assert [m.type for m in server.received] == [
        MessageType.LOGIN,
        MessageType.LOGOUT,
    ]
    assert manager.shutdown.reason is ShutdownReason.INTERRUPT


@pytest.mark.asyncio
async def test_server_closing_mid_frame(renderer, display, term):
    async def handle_client(reader, writer):
        await reader.readexactly(FRAME_SIZE)
        writer.write(encode(Message(type=MessageType.BROADCAST, body="cut"))[:300])
        await writer.drain()
        writer.close()

    server = await asyncio.start_server(handle_client, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    manager = ChatSessionManager(
        session_config(port), renderer, ScriptedLines(), handle_signals=False
    )
    try:
        await asyncio.wait_for(manager.start(), timeout=5)
    finally:
        server.close()
        await server.wait_closed()

    assert display.getvalue().splitlines()[1:] == [
        term.red("Error: Could not read message")
    ]
    assert manager.shutdown.reason is ShutdownReason.TRANSPORT_ERROR
    assert manager.shutdown.phase is SessionPhase.STOPPED


@pytest.mark.asyncio
async def test_connect_failure(renderer):
    server = await asyncio.start_server(lambda r, w: None, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    server.close()
    await server.wait_closed()

    manager = ChatSessionManager(session_config(port), renderer, ScriptedLines())
    with pytest.raises(ConnectError):
        await manager.init_session()


@pytest.mark.asyncio
async def test_run_session_requires_init(renderer):
    manager = ChatSessionManager(session_config(8080), renderer, ScriptedLines())
    with pytest.raises(RuntimeError):
        await manager.run_session()
