class ChatClientError(Exception):
    """Base class for errors raised by the chat client."""


class TransportError(ChatClientError):
    """The connection to the server can no longer be used."""


class ShortRead(TransportError):
    def __init__(self, expected: int, received: int):
        super().__init__(f"Connection closed after {received} of {expected} bytes")
        self.expected = expected
        self.received = received


class ShortWrite(TransportError):
    pass


class ConnectError(TransportError):
    pass


class LoginError(ChatClientError):
    pass
