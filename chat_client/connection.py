import asyncio
import logging

from .errors import ConnectError, ShortRead, ShortWrite
from .shutdown import SessionInterrupted, ShutdownCoordinator


class Connection:
    """
    Owns the socket to the chat server.

    The receiver task is the only reader and the sender task the only
    writer, so reads and writes never interleave on the same direction.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        shutdown: ShutdownCoordinator,
        logger_name: str = "chat_client",
    ) -> None:
        self.logger = logging.getLogger(logger_name)
        self.reader = reader
        self.writer = writer
        self.shutdown = shutdown
        self._closed = False

    @classmethod
    async def open(
        cls,
        host: str,
        port: int,
        shutdown: ShutdownCoordinator,
        logger_name: str = "chat_client",
    ) -> "Connection":
        try:
            reader, writer = await asyncio.open_connection(host, port)
        except OSError as e:
            raise ConnectError(f"Could not connect to {host}:{port}: {e}") from e

        logging.getLogger(logger_name).info(f"Connected to {host}:{port}")
        return cls(reader, writer, shutdown, logger_name)

    @property
    def closed(self) -> bool:
        return self._closed

    async def read_exact(self, n: int) -> bytes:
        """
        Reads exactly `n` bytes.

        Returns an empty result, without waiting, once the session is shutting
        down. This includes a shutdown raised while the read is blocked.

        Raises:
            ShortRead: The stream ended or failed before `n` bytes arrived.
        """
        try:
            return await self.shutdown.interruptible(self.reader.readexactly(n))
        except SessionInterrupted:
            return b""
        except asyncio.IncompleteReadError as e:
            raise ShortRead(n, len(e.partial)) from e
        except OSError as e:
            raise ShortRead(n, 0) from e

    async def write_exact(self, data: bytes) -> None:
        """
        Writes the whole buffer and waits until it has been flushed.

        Raises:
            ShortWrite: The connection failed before the data was flushed.
        """
        if self._closed or self.writer.is_closing():
            raise ShortWrite("Connection is closed")

        try:
            self.writer.write(data)
            await self.writer.drain()
        except OSError as e:
            raise ShortWrite(f"Could not write {len(data)} bytes: {e}") from e

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        self.writer.close()
        try:
            await self.writer.wait_closed()
        except OSError as e:
            self.logger.warning(f"Error while closing connection: {e}")
        self.logger.info("Connection closed")
