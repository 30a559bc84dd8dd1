"""Unit tests for identity key generation.

Keys must be deterministic and stable across imports.
"""

from __future__ import annotations

import pytest

from mtocalc.canonical.key_generator import (
    aggregate_identity,
    build_identity,
    generate_identity_key,
)
from mtocalc.models import DiscreteIdentity, InstrumentIdentity


class TestGenerateIdentityKey:
    """Test key string generation."""

    def test_discrete_key(self):
        key = generate_identity_key("P-001", "2", "V-100", 1, 4, "Valve")
        assert key == "P-001-2-V-100-001"

    def test_sequence_is_zero_padded(self):
        assert generate_identity_key("P-001", "2", "V1", 12, 20, "Valve").endswith("-012")
        assert generate_identity_key("P-001", "2", "V1", 999, 999, "Valve").endswith("-999")

    def test_instrument_has_no_suffix(self):
        key = generate_identity_key("P-001", "1/2", "PT-1", 3, 3, "Instrument")
        assert key == "P-001-1X2-PT-1"

    def test_instrument_type_case_insensitive(self):
        assert generate_identity_key("P-001", "2", "I1", 1, 1, "instrument") == "P-001-2-I1"

    def test_missing_size_is_nosize(self):
        assert generate_identity_key("P-001", None, "F1", 1, 1, "Flange") == "P-001-NOSIZE-F1-001"
        assert generate_identity_key("P-001", "", "F1", 1, 1, "Flange") == "P-001-NOSIZE-F1-001"

    def test_size_is_normalized(self):
        assert generate_identity_key("P-001", '2"', "V1", 1, 1, "Valve") == "P-001-2-V1-001"

    def test_quantity_does_not_affect_key(self):
        assert generate_identity_key("P-001", "2", "V1", 1, 1, "Valve") == generate_identity_key(
            "P-001", "2", "V1", 1, 50, "Valve"
        )

    def test_deterministic(self):
        keys = {generate_identity_key("P-001", "4", "FL-9", 2, 2, "Flange") for _ in range(5)}
        assert len(keys) == 1

    @pytest.mark.parametrize("index", [0, -1, 1000])
    def test_index_out_of_range(self, index):
        with pytest.raises(ValueError, match="index"):
            generate_identity_key("P-001", "2", "V1", index, 1, "Valve")


class TestBuildIdentity:
    """Test identity variants."""

    def test_discrete_variant(self):
        identity = build_identity("P-001", "2", "V1", 5, "Valve")
        assert isinstance(identity, DiscreteIdentity)
        assert identity.seq == 5
        assert identity.key == "P-001-2-V1-005"

    def test_instrument_variant(self):
        identity = build_identity("P-001", "2", "I1", 5, "Instrument")
        assert isinstance(identity, InstrumentIdentity)
        assert identity.key == "P-001-2-I1"


class TestAggregateIdentity:
    """Test threaded-pipe aggregate identities."""

    def test_pipe_id(self):
        identity = aggregate_identity("P-001", "1/2", "TP-1", total_length=12.5)
        assert identity.pipe_id == "P-001-1X2-TP-1-AGG"
        assert identity.key == identity.pipe_id
        assert identity.size == "1X2"
        assert identity.total_length == 12.5

    def test_missing_size(self):
        assert aggregate_identity("P-001", None, "TP-1").pipe_id == "P-001-NOSIZE-TP-1-AGG"
