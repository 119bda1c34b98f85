"""Messaging boundary for publishing optimizer results."""

from quantalloc.messaging.packets import (
    PacketType,
    Packet,
    JobPacket,
    PortfolioTargetsPacket,
)
from quantalloc.messaging.handler import MessagingHandler, QueueMessageHandler

__all__ = [
    "PacketType",
    "Packet",
    "JobPacket",
    "PortfolioTargetsPacket",
    "MessagingHandler",
    "QueueMessageHandler",
]
