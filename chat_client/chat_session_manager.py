import asyncio
import logging
import signal

from chat_shared.config import ClientConfig

from .chat_renderer import ChatRenderer
from .connection import Connection
from .line_source import LineSource, StreamLineSource
from .receiver import Receiver
from .sender import Sender
from .shutdown import ShutdownCoordinator, ShutdownReason

INTERRUPT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ChatSessionManager:
    """
    Runs one chat session: connect, log in, then receive and send until
    either side ends it.
    """

    def __init__(
        self,
        config: ClientConfig,
        renderer: ChatRenderer | None = None,
        lines: LineSource | None = None,
        handle_signals: bool = True,
    ):
        self.config = config
        self.renderer = renderer if renderer is not None else ChatRenderer()
        self.lines = lines if lines is not None else StreamLineSource()
        self.handle_signals = handle_signals
        self.logger = logging.getLogger(config.logger_name)

        self.shutdown: ShutdownCoordinator | None = None
        self.connection: Connection | None = None
        self.sender: Sender | None = None

    async def init_session(self) -> Connection:
        """
        Connects to the server and sends the login frame.

        Raises:
            ConnectError: The server could not be reached.
            LoginError: The login frame could not be sent.
        """
        self.shutdown = ShutdownCoordinator(self.config.logger_name)
        self.connection = await Connection.open(
            self.config.host, self.config.port, self.shutdown, self.config.logger_name
        )
        self.renderer.render_notice("connected to server")

        self.sender = Sender(
            self.connection, self.shutdown, self.config, self.renderer, self.lines
        )
        try:
            await self.sender.login()
        except Exception:
            await self.connection.close()
            raise
        return self.connection

    def _install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> list:
        installed = []
        for signum in INTERRUPT_SIGNALS:
            try:
                loop.add_signal_handler(
                    signum, self.shutdown.request, ShutdownReason.INTERRUPT
                )
            except (NotImplementedError, RuntimeError, ValueError):
                self.logger.warning(f"Cannot handle {signum.name} on this platform")
                continue
            installed.append(signum)
        return installed

    async def run_session(self):
        """Runs the receiver and sender tasks until both have stopped."""
        if self.connection is None:
            raise RuntimeError(
                "Session has not been initialized. Call init_session first."
            )

        loop = asyncio.get_running_loop()
        installed = self._install_signal_handlers(loop) if self.handle_signals else []

        receiver = Receiver(self.connection, self.shutdown, self.config, self.renderer)
        receive_task = asyncio.create_task(receiver.run())
        send_task = asyncio.create_task(self.sender.run())
        try:
            await asyncio.gather(receive_task, send_task)
        except asyncio.CancelledError:
            self.logger.info("Chat session cancelled")
            await self._abort(ShutdownReason.INTERRUPT, receive_task, send_task)
            raise
        except Exception as e:
            self.logger.exception(f"Chat session failed: {e}")
            await self._abort(ShutdownReason.TRANSPORT_ERROR, receive_task, send_task)
            raise
        finally:
            for signum in installed:
                loop.remove_signal_handler(signum)
            await self.connection.close()
            self.shutdown.mark_stopped()

    async def _abort(self, reason: ShutdownReason, *tasks: asyncio.Task):
        self.shutdown.request(reason)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def start(self):
        await self.init_session()
        await self.run_session()
