import sys
from datetime import datetime
from typing import Callable, TextIO

from blessed import Terminal
from pydantic import BaseModel

from chat_shared.models import Message

BELL = "\a"


def highlight_mentions(body: str, mention: str, style: Callable[[str], str]) -> str:
    """
    Styles every occurrence of `mention` in `body`.

    The scan moves forward and resumes after a match, so occurrences never
    overlap. Text between matches is kept as is.
    """
    if not mention:
        return body

    parts = []
    start = 0
    while True:
        found = body.find(mention, start)
        if found == -1:
            break
        parts.append(body[start:found])
        parts.append(style(mention))
        start = found + len(mention)
    parts.append(body[start:])
    return "".join(parts)


class ChatRenderConfig(BaseModel):
    timestamp_format: str = "%Y-%m-%d %H:%M:%S"
    mention_color: str = "red"
    system_color: str = "bright_black"
    disconnect_color: str = "red"
    error_color: str = "red"
    bell_on_mention: bool = True


class ChatRenderer:
    def __init__(
        self,
        term: Terminal | None = None,
        config: ChatRenderConfig | None = None,
        out: TextIO | None = None,
    ):
        self.term = term if term is not None else Terminal()
        self.render_config = config if config is not None else ChatRenderConfig()
        self.out = out

    def _style(self, color: str) -> Callable[[str], str]:
        return getattr(self.term, color)

    def _emit(self, line: str):
        print(line, file=self.out or sys.stdout, flush=True)

    def format_chat(
        self, message: Message, mention: str, quiet: bool, received_at: datetime
    ) -> str:
        stamp = received_at.strftime(self.render_config.timestamp_format)
        prefix = f"[{stamp}] {message.username}: "
        if quiet or mention not in message.body:
            return prefix + message.body

        color = self._style(self.render_config.mention_color)
        bell = BELL if self.render_config.bell_on_mention else ""
        return prefix + highlight_mentions(
            message.body, mention, lambda text: bell + color(text)
        )

    def render_chat(
        self,
        message: Message,
        mention: str,
        quiet: bool = False,
        received_at: datetime | None = None,
    ):
        received_at = received_at or datetime.now()
        self._emit(self.format_chat(message, mention, quiet, received_at))

    def render_system(self, text: str):
        self._emit(self._style(self.render_config.system_color)(f"[SYSTEM] {text}"))

    def render_disconnect(self, text: str):
        self._emit(
            self._style(self.render_config.disconnect_color)(f"[DISCONNECT] {text}")
        )

    def render_logged_out(self):
        self._emit("[DISCONNECT] User logged out")

    def render_error(self, text: str):
        self._emit(self._style(self.render_config.error_color)(f"Error: {text}"))

    def render_notice(self, text: str):
        self._emit(text)
