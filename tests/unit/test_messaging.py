"""
Tests for the messaging boundary.

Tests verify:
- Packet validation and serialization
- Queue handler lifecycle (initialize, send, drain, dispose)
- Errors when sending on a closed handler
"""

import json
from concurrent.futures import ThreadPoolExecutor

import pytest
from pydantic import ValidationError

from quantalloc.core.errors import MessagingError
from quantalloc.messaging.handler import QueueMessageHandler
from quantalloc.messaging.packets import JobPacket, PacketType, PortfolioTargetsPacket


def _targets(**kwargs):
    fields = {"optimizer": "max_sharpe", "assets": ["A", "B"], "weights": [0.6, 0.4]}
    fields.update(kwargs)
    return PortfolioTargetsPacket(**fields)


class TestPackets:
    def test_targets_defaults(self):
        packet = _targets()

        assert packet.type is PacketType.PORTFOLIO_TARGETS
        assert packet.used_fallback is False
        assert packet.sharpe_ratio is None
        assert packet.created_at.tzinfo is not None

    def test_length_mismatch_rejected(self):
        with pytest.raises(ValidationError):
            _targets(assets=["A", "B", "C"])

    def test_as_mapping(self):
        assert _targets().as_mapping() == {"A": 0.6, "B": 0.4}

    def test_as_mapping_without_labels(self):
        packet = _targets(assets=[], weights=[0.2, 0.3, 0.5])

        assert packet.as_mapping() == {"0": 0.2, "1": 0.3, "2": 0.5}

    def test_to_json(self):
        payload = json.loads(_targets(sharpe_ratio=0.12).to_json())

        assert payload["type"] == "portfolio_targets"
        assert payload["weights"] == [0.6, 0.4]
        assert payload["sharpe_ratio"] == 0.12

    def test_job_packet(self):
        packet = JobPacket(user_id="desk-7")

        assert packet.type is PacketType.JOB
        assert packet.channel == ""


class TestQueueMessageHandler:
    def test_send_before_initialize_raises(self):
        handler = QueueMessageHandler()

        with pytest.raises(MessagingError) as excinfo:
            handler.send(_targets())

        assert excinfo.value.error_code == "QA500"

    def test_packets_drained_in_order(self):
        handler = QueueMessageHandler()
        handler.initialize()
        first, second = _targets(), _targets(weights=[0.1, 0.9])

        handler.send(first)
        handler.send(second)

        assert handler.pending() == 2
        assert handler.drain() == [first, second]
        assert handler.pending() == 0

    def test_initialize_is_idempotent(self):
        handler = QueueMessageHandler()
        handler.initialize()
        handler.send(_targets())
        handler.initialize()

        assert handler.pending() == 1

    def test_full_queue_raises(self):
        handler = QueueMessageHandler(maxsize=1)
        handler.initialize()
        handler.send(_targets())

        with pytest.raises(MessagingError, match="full"):
            handler.send(_targets())

    def test_authentication_is_published_first(self):
        with QueueMessageHandler() as handler:
            job = JobPacket(user_id="desk-7", channel="alloc")
            handler.set_authentication(job)
            handler.send(_targets())

            packets = handler.drain()

        assert handler.job is job
        assert [p.type for p in packets] == [PacketType.JOB, PacketType.PORTFOLIO_TARGETS]

    def test_dispose_closes_handler(self):
        with QueueMessageHandler() as handler:
            handler.send(_targets())

        assert not handler.is_open
        assert handler.drain() == []
        with pytest.raises(MessagingError):
            handler.send(_targets())

    def test_concurrent_senders(self):
        handler = QueueMessageHandler()
        handler.initialize()

        with ThreadPoolExecutor(max_workers=4) as pool:
            list(pool.map(lambda _: handler.send(_targets()), range(40)))

        assert len(handler.drain()) == 40
