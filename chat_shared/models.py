from enum import IntEnum

from pydantic import BaseModel, Field, field_validator

USERNAME_SIZE = 32
BODY_SIZE = 1024

UINT32_MAX = 2**32 - 1


class MessageType(IntEnum):
    LOGIN = 0
    LOGOUT = 1
    CHAT = 2
    BROADCAST = 10
    DISCONNECT = 12
    SYSTEM = 13


def clip_text(text: str, size: int) -> str:
    """
    Clips text so that its UTF-8 encoding fits a NUL-terminated field.

    Args:
        text: Text to clip.
        size: Size of the field in bytes, terminator included.

    Returns:
        The longest prefix of `text` that encodes to at most `size - 1` bytes.
    """
    raw = text.encode("utf-8")
    if len(raw) < size:
        return text
    # Drop a multi-byte character cut in half by the slice
    return raw[: size - 1].decode("utf-8", errors="ignore")


class Message(BaseModel):
    type: int = Field(default=MessageType.LOGIN, ge=0, le=UINT32_MAX)
    timestamp: int = Field(default=0, ge=0, le=UINT32_MAX)
    username: str = ""
    body: str = ""

    @field_validator("username")
    @classmethod
    def _clip_username(cls, value: str) -> str:
        return clip_text(value, USERNAME_SIZE)

    @field_validator("body")
    @classmethod
    def _clip_body(cls, value: str) -> str:
        return clip_text(value, BODY_SIZE)

    @property
    def kind(self) -> MessageType | None:
        """The known message type, or None for codes this client doesn't know."""
        try:
            return MessageType(self.type)
        except ValueError:
            return None

    def __str__(self):
        label = self.kind.name if self.kind is not None else str(self.type)
        return f"{label} {self.username}: {self.body}"
