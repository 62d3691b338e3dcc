import logging
import time

from chat_shared.codec import encode
from chat_shared.config import ClientConfig
from chat_shared.models import Message, MessageType

from .chat_renderer import ChatRenderer
from .connection import Connection
from .errors import LoginError, TransportError
from .line_source import LineSource
from .shutdown import SessionInterrupted, ShutdownCoordinator, ShutdownReason


def strip_terminator(line: str) -> str:
    return line[:-1] if line.endswith("\n") else line


def is_printable(text: str) -> bool:
    """Whether every character is printable ASCII, spaces included."""
    return all(" " <= ch <= "~" for ch in text)


class Sender:
    """Reads lines typed by the user and sends them to the server."""

    def __init__(
        self,
        connection: Connection,
        shutdown: ShutdownCoordinator,
        config: ClientConfig,
        renderer: ChatRenderer,
        lines: LineSource,
    ) -> None:
        self.connection = connection
        self.shutdown = shutdown
        self.config = config
        self.renderer = renderer
        self.lines = lines
        self.logger = logging.getLogger(config.logger_name)
        self._logout_sent = False

    async def login(self):
        message = Message(type=MessageType.LOGIN, username=self.config.username)
        try:
            await self.connection.write_exact(encode(message))
        except TransportError as e:
            self.logger.error(f"Write error sending login: {e}")
            raise LoginError(f"Could not log in as {self.config.username}") from e
        self.logger.info(f"Logged in as {self.config.username}")

    async def run(self):
        self.logger.info("Sender started")
        try:
            while self.shutdown.running:
                try:
                    line = await self.shutdown.interruptible(self.lines.readline())
                except SessionInterrupted:
                    break

                if not line:
                    self.logger.info("End of input")
                    self.shutdown.request(ShutdownReason.END_OF_INPUT)
                    break

                text = strip_terminator(line)
                if not text:
                    self.logger.error("No input")
                    self.renderer.render_error("No input")
                    continue

                if not is_printable(text):
                    self.logger.error("Rejected non-printable input")
                    self.renderer.render_error(
                        "Invalid message, please use only printable characters"
                    )
                    continue

                if not self.shutdown.running:
                    break

                if not await self.send_chat(text):
                    break

            reason = self.shutdown.reason
            if reason is not None and reason.sends_logout:
                await self.logout()
        finally:
            self.logger.info("Sender stopped")

    async def send_chat(self, text: str) -> bool:
        message = Message(
            type=MessageType.CHAT,
            timestamp=int(time.time()),
            username=self.config.username,
            body=text,
        )
        try:
            await self.connection.write_exact(encode(message))
        except TransportError as e:
            self.logger.error(f"Write error sending message: {e}")
            self.renderer.render_error("Could not send message")
            self.shutdown.request(ShutdownReason.TRANSPORT_ERROR)
            return False

        self.logger.debug(f"Sent frame: {message}")
        return True

    async def logout(self):
        if self._logout_sent:
            return
        self._logout_sent = True

        message = Message(type=MessageType.LOGOUT)
        try:
            await self.connection.write_exact(encode(message))
        except TransportError as e:
            self.logger.error(f"Write error sending logout: {e}")
            return
        self.logger.info("Logout sent")
