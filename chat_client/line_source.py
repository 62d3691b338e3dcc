import asyncio
import sys
import threading
from typing import Protocol, TextIO


class LineSource(Protocol):
    async def readline(self) -> str:
        """Returns the next line with its terminator, or "" at end of input."""
        ...


class StreamLineSource:
    """
    Reads lines from a blocking text stream without blocking the event loop.

    A daemon thread owns the blocking reads and hands each line to the loop
    through a queue. Awaiting `readline` can therefore be cancelled, and a
    thread still stuck in a read never keeps the process alive.
    """

    def __init__(self, stream: TextIO | None = None):
        self.stream = stream if stream is not None else sys.stdin
        self._queue: asyncio.Queue[str] | None = None
        self._thread: threading.Thread | None = None

    def _start(self):
        loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._thread = threading.Thread(
            target=self._pump,
            args=(loop, self._queue),
            name="stdin-reader",
            daemon=True,
        )
        self._thread.start()

    def _pump(self, loop: asyncio.AbstractEventLoop, queue: asyncio.Queue):
        while True:
            try:
                line = self.stream.readline()
            except (OSError, ValueError):
                line = ""
            try:
                loop.call_soon_threadsafe(queue.put_nowait, line)
            except RuntimeError:
                # The loop is gone, nobody is listening anymore
                return
            if not line:
                return

    async def readline(self) -> str:
        if self._queue is None:
            self._start()
        line = await self._queue.get()
        if not line:
            # Keep reporting end of input to later callers
            self._queue.put_nowait(line)
        return line
