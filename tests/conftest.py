import asyncio
import io
from unittest.mock import AsyncMock, MagicMock

import pytest
from blessed import Terminal

from chat_client.chat_renderer import ChatRenderer
from chat_client.connection import Connection
from chat_client.shutdown import ShutdownCoordinator
from chat_shared.codec import FRAME_SIZE, decode, encode
from chat_shared.config import ClientConfig
from chat_shared.models import Message


class ScriptedLines:
    """Line source fed by the test. Blocks forever once the script runs out."""

    def __init__(self, *lines: str):
        self.queue: asyncio.Queue[str] = asyncio.Queue()
        for line in lines:
            self.queue.put_nowait(line)

    async def readline(self) -> str:
        return await self.queue.get()


def frames_written(writer: MagicMock) -> list[Message]:
    data = b"".join(call.args[0] for call in writer.write.call_args_list)
    assert len(data) % FRAME_SIZE == 0
    return [decode(data[i : i + FRAME_SIZE]) for i in range(0, len(data), FRAME_SIZE)]


def make_writer() -> MagicMock:
    writer = MagicMock()
    writer.drain = AsyncMock()
    writer.wait_closed = AsyncMock()
    writer.is_closing.return_value = False
    return writer


def make_connection(
    shutdown: ShutdownCoordinator, *messages: Message, tail: bytes = b"", eof=True
) -> Connection:
    reader = asyncio.StreamReader()
    for message in messages:
        reader.feed_data(encode(message))
    if tail:
        reader.feed_data(tail)
    if eof:
        reader.feed_eof()
    return Connection(reader, make_writer(), shutdown)


@pytest.fixture
def term():
    return Terminal(kind="xterm-256color", force_styling=True)


@pytest.fixture
def display():
    return io.StringIO()


@pytest.fixture
def renderer(term, display):
    return ChatRenderer(term=term, out=display)


@pytest.fixture
def config():
    return ClientConfig(username="alice", _env_file=None)


@pytest.fixture
def quiet_config():
    return ClientConfig(username="alice", quiet=True, _env_file=None)


@pytest.fixture
def shutdown():
    return ShutdownCoordinator()
