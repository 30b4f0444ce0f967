"""Tests for peer status normalization."""

import pytest
from pydantic import ValidationError

from amiconnect.models.packets import Packet
from amiconnect.models.status import PeerStatus, normalize_status


class TestPeerStatus:
    """Tests for PeerStatus model."""

    def test_ok_with_time(self):
        status = PeerStatus.parse("OK (5 ms)")
        assert status.online is True
        assert status.time == 5
        assert status.status == "OK"
        assert status.has_time

    def test_ok_without_time(self):
        status = PeerStatus.parse("OK")
        assert status.online is True
        assert status.time == -1
        assert status.status == "OK"

    def test_ok_case_insensitive(self):
        status = PeerStatus.parse("Reachable ok (12 ms)")
        assert status.online is True
        assert status.time == 12
        assert status.status == "Reachable"

    def test_missing(self):
        status = PeerStatus.parse(None)
        assert status.status == "UNKNOWN"
        assert status.online is False
        assert status.time == -1
        assert not status.has_time

    @pytest.mark.parametrize("raw", ["UNREACHABLE", "Unmonitored", "LAGGED (2500 ms)"])
    def test_offline_kept_verbatim(self, raw):
        status = PeerStatus.parse(raw)
        assert status.status == raw
        assert status.online is False
        assert status.time == -1

    def test_empty_status_kept(self):
        assert PeerStatus.parse("").status == ""

    def test_frozen(self):
        status = PeerStatus.parse("OK (5 ms)")
        with pytest.raises(ValidationError):
            status.online = False


class TestNormalizeStatus:
    """Tests for normalize_status()."""

    def test_adds_fields(self):
        entry = normalize_status(Packet(ObjectName="1001", Status="OK (5 ms)"))
        assert entry["Status"] == "OK"
        assert entry["Online"] is True
        assert entry["Time"] == 5
        assert entry["ObjectName"] == "1001"

    def test_missing_status(self):
        entry = normalize_status(Packet(ObjectName="1002"))
        assert entry["Status"] == "UNKNOWN"
        assert entry["Online"] is False
        assert entry["Time"] == -1

    def test_input_not_modified(self):
        original = Packet(ObjectName="1001", Status="OK (5 ms)")
        entry = normalize_status(original)

        assert original == Packet(ObjectName="1001", Status="OK (5 ms)")
        assert isinstance(entry, Packet)
        assert entry is not original
