"""
Pydantic packet models handed to messaging handlers.

Packets are the boundary between the optimizer and downstream consumers;
handlers decide how (and whether) to transmit them.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class PacketType(str, Enum):
    """Packet type, used as the event name by transports."""

    JOB = "job"
    PORTFOLIO_TARGETS = "portfolio_targets"


class Packet(BaseModel):
    """Base packet."""

    type: PacketType
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_json(self) -> str:
        return self.model_dump_json()


class JobPacket(Packet):
    """Identifies the consumer a handler publishes for."""

    type: PacketType = PacketType.JOB
    user_id: str = Field(..., description="Owner of the published results")
    channel: str = Field(default="", description="Delivery channel")


class PortfolioTargetsPacket(Packet):
    """Final weight vector produced by an optimizer."""

    type: PacketType = PacketType.PORTFOLIO_TARGETS
    optimizer: str = Field(..., description="Name of the optimizer that ran")
    assets: List[str] = Field(default_factory=list, description="Asset labels")
    weights: List[float] = Field(..., description="Weight per asset")
    used_fallback: bool = Field(
        default=False, description="Equal weights replaced the solver output"
    )
    sharpe_ratio: Optional[float] = Field(
        default=None, description="Ex-ante Sharpe ratio of the weights"
    )

    @model_validator(mode="after")
    def _check_lengths(self) -> "PortfolioTargetsPacket":
        if self.assets and len(self.assets) != len(self.weights):
            raise ValueError(
                f"{len(self.assets)} asset labels for {len(self.weights)} weights"
            )
        return self

    def as_mapping(self) -> dict:
        """Asset label -> weight, positional labels when none were given."""
        labels = self.assets or [str(i) for i in range(len(self.weights))]
        return dict(zip(labels, self.weights))
