"""Bounded producer/consumer coupling between a byte source and a sink.

A ChunkPump reads chunks from a ByteSource on a background thread into a
bounded queue, and hands them out again as a plain iterable that an HTTP
client can use as a streaming request body. When the queue is full the
producer blocks, so the source is only read as fast as the sink drains it.

Example:
    pump = ChunkPump(ResponseSource(response), max_chunks=16)
    with pump:
        session.put(url, data=pump)
    print(pump.bytes_transferred)
"""

import queue
import threading
from typing import Iterator, Optional, Protocol

import requests

from drive_relay.gdrive.errors import SourceFetchError


class ByteSource(Protocol):
    """Anything that yields the payload as a sequence of byte chunks."""

    def iter_chunks(self) -> Iterator[bytes]:
        """Yield the payload chunk by chunk."""
        ...


class ResponseSource:
    """ByteSource over the body of a streamed ``requests`` response."""

    def __init__(self, response: requests.Response, chunk_size: int = 256 * 1024) -> None:
        self._response = response
        self._chunk_size = chunk_size

    def iter_chunks(self) -> Iterator[bytes]:
        for chunk in self._response.iter_content(chunk_size=self._chunk_size):
            if chunk:
                yield chunk


# Marks the end of the stream in the queue
_END = object()


class ChunkPump:
    """Relays chunks from a ByteSource through a bounded queue.

    Iterating the pump starts the producer thread (once) and yields chunks
    until the source is exhausted. A failure while reading the source is
    re-raised on the consumer side as SourceFetchError.

    Attributes:
        bytes_transferred: Bytes handed to the consumer so far.
        failure: The SourceFetchError raised on the consumer side, if any.
    """

    # How often a blocked producer checks whether the pump was closed
    POLL_SECONDS = 0.1

    def __init__(self, source: ByteSource, max_chunks: int = 16) -> None:
        if max_chunks <= 0:
            raise ValueError("max_chunks must be positive")
        self._source = source
        self._queue: "queue.Queue[object]" = queue.Queue(maxsize=max_chunks)
        self._closed = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.bytes_transferred = 0
        self.failure: Optional[SourceFetchError] = None

    def __enter__(self) -> "ChunkPump":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __iter__(self) -> Iterator[bytes]:
        self._start()
        while True:
            item = self._next_item()
            if item is _END:
                return
            if isinstance(item, BaseException):
                self.failure = SourceFetchError(
                    f"Source stream failed after {self.bytes_transferred} bytes: {item}",
                    bytes_transferred=self.bytes_transferred,
                )
                raise self.failure from item
            chunk: bytes = item  # type: ignore[assignment]
            self.bytes_transferred += len(chunk)
            yield chunk

    def close(self) -> None:
        """Stop the producer and wait for it to exit."""
        self._closed.set()
        if self._thread is not None:
            self._thread.join()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def _start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("ChunkPump can only be consumed once")
        if self._closed.is_set():
            raise RuntimeError("ChunkPump is closed")
        self._thread = threading.Thread(target=self._produce, name="chunk-pump", daemon=True)
        self._thread.start()

    def _produce(self) -> None:
        try:
            for chunk in self._source.iter_chunks():
                if not self._put(chunk):
                    return
        except BaseException as e:
            self._put(e)
            return
        self._put(_END)

    def _next_item(self) -> object:
        while True:
            try:
                return self._queue.get(timeout=self.POLL_SECONDS)
            except queue.Empty:
                pass
            if self._thread is not None and not self._thread.is_alive() and self._queue.empty():
                return RuntimeError("chunk pump producer exited without finishing the stream")

    def _put(self, item: object) -> bool:
        # Blocks while the queue is full, which is what throttles the source
        while not self._closed.is_set():
            try:
                self._queue.put(item, timeout=self.POLL_SECONDS)
                return True
            except queue.Full:
                continue
        return False
