"""
Fixed-size binary frame codec.

Every message travels as one 1064 byte frame:

    offset 0   type       uint32, network order
    offset 4   timestamp  uint32, network order
    offset 8   username   32 bytes, NUL padded
    offset 40  body       1024 bytes, NUL padded
"""

import struct

from .models import BODY_SIZE, USERNAME_SIZE, Message

FRAME_FORMAT = f"!II{USERNAME_SIZE}s{BODY_SIZE}s"
FRAME_SIZE = struct.calcsize(FRAME_FORMAT)


class FrameSizeError(ValueError):
    pass


def _field_text(raw: bytes) -> str:
    # Bounded by the field slice, Message then clips it to leave room for the NUL
    return raw.split(b"\0", 1)[0].decode("utf-8", errors="replace")


def encode(message: Message) -> bytes:
    return struct.pack(
        FRAME_FORMAT,
        message.type,
        message.timestamp,
        message.username.encode("utf-8"),
        message.body.encode("utf-8"),
    )


def decode(frame: bytes) -> Message:
    if len(frame) != FRAME_SIZE:
        raise FrameSizeError(f"Expected {FRAME_SIZE} byte frame, got {len(frame)}")

    msg_type, timestamp, username, body = struct.unpack(FRAME_FORMAT, frame)
    return Message(
        type=msg_type,
        timestamp=timestamp,
        username=_field_text(username),
        body=_field_text(body),
    )
