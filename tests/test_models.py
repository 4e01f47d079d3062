"""Tests for the configuration data model."""
import pytest

from dt_preset_tool.config_store import (
    BatchResult,
    Configuration,
    WriteError,
    to_signed,
    to_unsigned,
)
from dt_preset_tool.config_store.models import U64_MAX


class TestIdReinterpretation:
    """Tests for signed/unsigned bit-pattern conversion."""

    @pytest.mark.parametrize("value", [0, 1, 5, 2**63 - 1])
    def test_low_range_unchanged(self, value):
        """Ids below 2^63 are stored as-is."""
        assert to_signed(value) == value
        assert to_unsigned(value) == value

    def test_high_bit_becomes_negative(self):
        """Ids with the high bit set map to negative column values."""
        assert to_signed(2**63) == -(2**63)
        assert to_signed(U64_MAX) == -1

    def test_negative_column_values_read_back_unsigned(self):
        """Negative column values read back as large unsigned ids."""
        assert to_unsigned(-1) == U64_MAX
        assert to_unsigned(-(2**63)) == 2**63

    @pytest.mark.parametrize("value", [2**63, 2**63 + 1, 12345678901234567890, U64_MAX])
    def test_round_trip(self, value):
        """Every unsigned id survives a trip through signed storage."""
        assert to_unsigned(to_signed(value)) == value


class TestConfiguration:
    """Tests for the Configuration dataclass."""

    def test_rejects_negative_id(self):
        """Test that negative ids are rejected."""
        with pytest.raises(ValueError):
            Configuration(id=-1, name="Bad")

    def test_rejects_id_above_u64(self):
        """Test that ids above the u64 range are rejected."""
        with pytest.raises(ValueError):
            Configuration(id=2**64, name="Bad")

    def test_equality_includes_payload(self):
        """Test that the payload takes part in equality."""
        a = Configuration(id=1, name="A", payload=b"x")
        b = Configuration(id=1, name="A", payload=b"y")
        assert a != b
        assert a == Configuration(id=1, name="A", payload=b"x")

    def test_repr_hides_payload_bytes(self):
        """Test that repr shows the payload length only."""
        config = Configuration(id=7, name="Big", payload=b"\x00" * 4096)
        assert "4096 bytes" in repr(config)


class TestBatchResult:
    """Tests for BatchResult."""

    def test_ok_without_failures(self):
        """Test a batch with no failures."""
        result = BatchResult(operation="insert", succeeded=[Configuration(id=1, name="A")])
        assert result.ok
        assert "1 ok, 0 failed" in result.summary()

    def test_summary_lists_failures(self):
        """Test the failure list in the summary."""
        config = Configuration(id=2, name="Dup")
        result = BatchResult(
            operation="insert",
            failed=[(config, WriteError("UNIQUE constraint failed", config=config))],
        )
        assert not result.ok
        summary = result.summary()
        assert "Dup (2)" in summary
        assert "UNIQUE constraint failed" in summary
