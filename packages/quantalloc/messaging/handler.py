"""
Messaging handlers: the downstream boundary for optimizer results.

A handler is initialized once, receives packets through `send`, and is
disposed when the caller is done. Transports (HTTP, event streams) live
outside this package; `QueueMessageHandler` buffers packets in process for
whatever transport drains it.

Usage:
    with QueueMessageHandler() as handler:
        handler.send(packet)
        for packet in handler.drain():
            ...
"""

import queue
from abc import ABC, abstractmethod
from typing import List, Optional

from loguru import logger

from quantalloc.core.errors import MessagingError
from quantalloc.messaging.packets import JobPacket, Packet


class MessagingHandler(ABC):
    """Base class for messaging handlers."""

    def __init__(self):
        self.has_subscribers: bool = False
        self._job: Optional[JobPacket] = None

    @property
    def job(self) -> Optional[JobPacket]:
        return self._job

    @abstractmethod
    def initialize(self) -> None:
        """Prepare the handler to accept packets."""

    @abstractmethod
    def send(self, packet: Packet) -> None:
        """Publish a packet."""

    def set_authentication(self, job: JobPacket) -> None:
        """Attach the consumer identity; it is published first."""
        self._job = job
        self.send(job)

    def dispose(self) -> None:
        """Release resources."""

    def __enter__(self) -> "MessagingHandler":
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.dispose()


class QueueMessageHandler(MessagingHandler):
    """
    Thread-safe in-process packet queue.

    Packets are delivered in send order. Sending before `initialize()` or
    after `dispose()` raises MessagingError.
    """

    def __init__(self, maxsize: int = 0):
        super().__init__()
        self._maxsize = maxsize
        self._queue: Optional[queue.Queue] = None

    @property
    def is_open(self) -> bool:
        return self._queue is not None

    def initialize(self) -> None:
        if self._queue is None:
            self._queue = queue.Queue(maxsize=self._maxsize)
            logger.debug("QueueMessageHandler initialized")

    def send(self, packet: Packet) -> None:
        if self._queue is None:
            raise MessagingError(
                "handler is not initialized", packet_type=packet.type.value
            )
        try:
            self._queue.put_nowait(packet)
        except queue.Full as e:
            raise MessagingError(
                "packet queue is full", maxsize=self._maxsize
            ) from e
        logger.debug(f"Queued {packet.type.value} packet")

    def pending(self) -> int:
        return 0 if self._queue is None else self._queue.qsize()

    def drain(self) -> List[Packet]:
        """Dequeue and return every pending packet."""
        packets: List[Packet] = []
        if self._queue is None:
            return packets
        while True:
            try:
                packets.append(self._queue.get_nowait())
            except queue.Empty:
                break
        return packets

    def dispose(self) -> None:
        if self._queue is not None:
            dropped = self.pending()
            if dropped:
                logger.warning(f"Disposing handler with {dropped} undelivered packets")
            self._queue = None
