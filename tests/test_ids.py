"""
Test suite for ids module

Tests sequential id generation, index parsing and counter seeding.
"""

import pytest

from bank_ledger.exceptions import CapacityExceededError, MalformedIdError
from bank_ledger.ids import (
    IdGenerator, account_id_generator, transaction_id_generator, customer_id_generator
)


class TestIdGenerator:
    """Test IdGenerator functionality"""

    def test_generates_zero_padded_ids(self):
        """Test the first ids carry prefix and padding"""
        generator = account_id_generator()

        assert generator.generate_id() == "ACC001"
        assert generator.generate_id() == "ACC002"
        assert generator.counter == 2

    def test_prefixes(self):
        assert transaction_id_generator().generate_id() == "TXN001"
        assert customer_id_generator().generate_id() == "CUS001"

    def test_ids_are_distinct_and_increasing(self):
        """Test N ids give N distinct, strictly increasing indices"""
        generator = transaction_id_generator()
        ids = [generator.generate_id() for _ in range(250)]

        indices = [generator.extract_index(i) for i in ids]
        assert len(set(ids)) == 250
        assert indices == sorted(indices)
        assert all(b == a + 1 for a, b in zip(indices, indices[1:]))

    def test_extract_index_round_trips_counter(self):
        generator = account_id_generator()
        for _ in range(12):
            issued = generator.generate_id()
            assert generator.extract_index(issued) == generator.counter

    @pytest.mark.parametrize("bad_id", ["ACC01", "ACC0001", "TXN001", "ACCabc", "acc001", "", "ACC-01"])
    def test_extract_index_rejects_malformed(self, bad_id):
        """Test wrong prefix, width or suffix raise MalformedIdError"""
        generator = account_id_generator()

        with pytest.raises(MalformedIdError, match="Identifier format is invalid"):
            generator.extract_index(bad_id)

    def test_malformed_id_is_value_error(self):
        with pytest.raises(ValueError):
            account_id_generator().extract_index("nope")

    def test_seed_counter_continues_numbering(self):
        """Test seeding from a persisted maximum avoids collisions"""
        generator = account_id_generator()
        generator.seed_counter(7)

        assert generator.counter == 7
        assert generator.generate_id() == "ACC008"

    def test_seed_from_ids(self):
        generator = transaction_id_generator()
        highest = generator.seed_from_ids(["TXN004", "TXN011", "TXN002"])

        assert highest == 11
        assert generator.generate_id() == "TXN012"

    def test_seed_from_no_ids_starts_at_one(self):
        generator = transaction_id_generator()
        generator.seed_from_ids([])

        assert generator.generate_id() == "TXN001"

    def test_seed_after_generation_rejected(self):
        """Test seeding is only allowed before the first id is issued"""
        generator = account_id_generator()
        generator.generate_id()

        with pytest.raises(ValueError, match="after ids have been issued"):
            generator.seed_counter(10)

    def test_seed_out_of_range(self):
        generator = account_id_generator()

        with pytest.raises(ValueError, match="out of range"):
            generator.seed_counter(-1)
        with pytest.raises(ValueError, match="out of range"):
            generator.seed_counter(1000)

    def test_capacity_exhausted(self):
        """Test the id space of the configured width cannot overflow"""
        generator = IdGenerator("ACC", width=1)
        ids = [generator.generate_id() for _ in range(9)]

        assert ids[-1] == "ACC9"
        with pytest.raises(CapacityExceededError):
            generator.generate_id()

    def test_custom_width(self):
        generator = IdGenerator("TXN", width=5)

        assert generator.generate_id() == "TXN00001"
        assert generator.extract_index("TXN00420") == 420

    def test_invalid_construction(self):
        with pytest.raises(ValueError):
            IdGenerator("", width=3)
        with pytest.raises(ValueError):
            IdGenerator("ACC", width=0)
