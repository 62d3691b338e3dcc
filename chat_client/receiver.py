import logging
from datetime import datetime

from chat_shared.codec import FRAME_SIZE, decode
from chat_shared.config import ClientConfig
from chat_shared.models import Message, MessageType

from .chat_renderer import ChatRenderer
from .connection import Connection
from .errors import ShortRead
from .shutdown import ShutdownCoordinator, ShutdownReason


class Receiver:
    """Reads frames from the server and renders them until the session ends."""

    def __init__(
        self,
        connection: Connection,
        shutdown: ShutdownCoordinator,
        config: ClientConfig,
        renderer: ChatRenderer,
    ) -> None:
        self.connection = connection
        self.shutdown = shutdown
        self.config = config
        self.renderer = renderer
        self.logger = logging.getLogger(config.logger_name)

    async def run(self):
        self.logger.info("Receiver started")
        try:
            while self.shutdown.running:
                try:
                    frame = await self.connection.read_exact(FRAME_SIZE)
                except ShortRead as e:
                    self.logger.error(f"Could not read message: {e}")
                    self.renderer.render_error("Could not read message")
                    self.shutdown.request(ShutdownReason.TRANSPORT_ERROR)
                    return

                if not frame:
                    break

                if not self.dispatch(decode(frame)):
                    return

            if self.shutdown.reason is not None and self.shutdown.reason.is_local:
                self.renderer.render_logged_out()
        finally:
            self.logger.info("Receiver stopped")

    def dispatch(self, message: Message) -> bool:
        """
        Renders one message from the server.

        Returns:
            False if the message ended the session.
        """
        self.logger.debug(f"Received frame: {message}")
        kind = message.kind

        if kind in (MessageType.BROADCAST, MessageType.CHAT):
            self.renderer.render_chat(
                message,
                self.config.mention,
                quiet=self.config.quiet,
                received_at=datetime.now(),
            )
        elif kind is MessageType.SYSTEM:
            self.renderer.render_system(message.body)
        elif kind is MessageType.DISCONNECT:
            self.logger.info(f"Disconnected by server: {message.body}")
            self.renderer.render_disconnect(message.body)
            self.shutdown.request(ShutdownReason.SERVER_DISCONNECT)
            return False
        else:
            self.logger.error(f"Unrecognizable message type: {message.type}")

        return True
