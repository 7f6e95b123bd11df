"""Tests for zipsplit/lib/canary.py."""

import struct

import pytest

from zipsplit.lib.canary import canary_class_name, create_canary


class TestCanary:
    """Tests for canary class generation."""

    def test_name(self):
        assert canary_class_name(1) == "secondary/dex01/Canary"
        assert canary_class_name(12, "com/app") == "com/app/dex12/Canary"

    def test_entry_path(self):
        assert create_canary(3).relative_path == "secondary/dex03/Canary.class"

    def test_class_file_header(self):
        data = create_canary(1).read_bytes()
        magic, minor, major = struct.unpack(">IHH", data[:8])
        assert magic == 0xCAFEBABE
        assert minor == 0
        assert major == 50

    def test_embeds_class_name(self):
        data = create_canary(7).read_bytes()
        assert b"secondary/dex07/Canary" in data
        assert b"java/lang/Object" in data

    def test_size_is_small_and_stable(self):
        """Two-digit indices all produce the same size."""
        assert create_canary(1).size == 74
        assert create_canary(99).size == 74
        assert create_canary(1).size == len(create_canary(1).read_bytes())

    def test_deterministic(self):
        assert create_canary(5).read_bytes() == create_canary(5).read_bytes()
        assert create_canary(5).read_bytes() != create_canary(6).read_bytes()

    @pytest.mark.parametrize("index", [0, -1])
    def test_index_must_be_positive(self, index):
        with pytest.raises(ValueError):
            create_canary(index)
