"""Tests for points and multilinear hashing."""

import threading

import pytest

from geometric_patterns.exceptions import InvalidArgumentError
from geometric_patterns.models.geometry import Point, round_onset
from geometric_patterns.models.hashing import HashContext, default_hash_context


class TestPoint:
    """Tests for the Point value type."""

    def test_equality_and_hash(self) -> None:
        """Test that equal points hash equally."""
        assert Point(1, 2) == Point(1.0, 2.0)
        assert hash(Point(1, 2)) == hash(Point(1.0, 2.0))
        assert Point(1, 2) != Point(2, 1)

    def test_lexicographic_order(self) -> None:
        """Test ordering by onset, then pitch."""
        points = [Point(2, 0), Point(1, 3), Point(1, 2)]
        assert sorted(points) == [Point(1, 2), Point(1, 3), Point(2, 0)]
        assert Point(1, 2).compare_to(Point(1, 3)) == -1
        assert Point(2, 0).compare_to(Point(1, 3)) == 1
        assert Point(1, 2).compare_to(Point(1, 2)) == 0

    def test_add_and_subtract(self) -> None:
        """Test component-wise arithmetic."""
        assert Point(1, 60) + Point(0.5, 2) == Point(1.5, 62)
        assert Point(1, 60) - Point(0.5, 2) == Point(0.5, 58)
        assert Point(1, 60).subtract(Point(1, 60)) == Point.zero()

    def test_dimensionality_mismatch(self) -> None:
        """Test that mixing dimensionalities is rejected."""
        with pytest.raises(InvalidArgumentError):
            Point(1, 2).add(Point(1, 2, 3))

    def test_no_components(self) -> None:
        """Test that a point needs components."""
        with pytest.raises(InvalidArgumentError):
            Point()

    def test_accessors(self) -> None:
        """Test onset, pitch and dimensionality."""
        point = Point(0.75, 64)
        assert point.onset == 0.75
        assert point.pitch == 64
        assert point.dimensionality == 2
        assert list(point) == [0.75, 64.0]
        assert str(point) == "(0.75, 64.0)"

    def test_triplet_sums(self) -> None:
        """Test that accumulated triplet durations land on whole numbers."""
        third = Point(1 / 3, 0)
        total = Point.zero()
        for _ in range(12):
            total = total + third
        assert total == Point(4, 0)
        assert hash(total) == hash(Point(4, 0))

        mixed = Point(1 / 3, 0) + Point(1 / 3, 0) + Point(1, 0) + Point(1 / 3, 0)
        assert mixed == Point(2, 0)
        assert hash(mixed) == hash(Point(2, 0))

    def test_raw_onset_kept_for_arithmetic(self) -> None:
        """Test that sums use the unrounded onset."""
        total = Point(1 / 3, 1) + Point(1 / 3, 1) + Point(1, 1) + Point(100000, 1)
        assert total == Point(100001.666666666666666, 4)

    def test_small_differences_are_kept(self) -> None:
        """Test that onsets differing in the eighth place stay distinct."""
        assert Point(1e-8, 1) != Point(0, 1)
        assert Point(100000.000003, 1) != Point(100000.000004, 1)

    def test_negative_zero(self) -> None:
        """Test that -0.0 and 0.0 give the same point and hash."""
        assert Point(-0.0, 60) == Point(0.0, 60)
        assert hash(Point(-0.0, 60)) == hash(Point(0.0, 60))
        assert hash(Point(1, 60) - Point(1, 60)) == hash(Point.zero())

    def test_round_onset(self) -> None:
        """Test half-up rounding to eight places."""
        assert round_onset(0.25) == 0.25
        assert round_onset(1 / 3) == 0.33333333
        assert round_onset(3.9999999999999996) == 4.0
        assert round_onset(-1e-17) == 0.0

    def test_usable_as_dict_key(self) -> None:
        """Test lookups with computed points."""
        index = {Point(2, 0): "two"}
        assert index[Point(1 / 3, 0) + Point(1 / 3, 0) + Point(1, 0) + Point(1 / 3, 0)] == "two"

    def test_with_hash_context(self) -> None:
        """Test rebinding to another hashing context."""
        context = HashContext(seed=3)
        point = Point(1, 2)
        rebound = point.with_hash_context(context)
        assert rebound == point
        assert rebound.hash_context is context
        assert rebound.with_hash_context(context) is rebound

    def test_arithmetic_keeps_context(self) -> None:
        """Test that results hash with the left operand's context."""
        context = HashContext(seed=3)
        point = Point(1, 2, hash_context=context)
        assert (point + Point(1, 1)).hash_context is context


class TestHashContext:
    """Tests for the multilinear hash context."""

    def test_seeded_contexts_agree(self) -> None:
        """Test that the same seed yields the same hashes."""
        first = HashContext(seed=42)
        second = HashContext(seed=42)
        assert first.hash_components([1.0, 60.0]) == second.hash_components([1.0, 60.0])
        assert hash(Point(1, 60, hash_context=first)) == hash(Point(1, 60, hash_context=second))

    def test_hash_is_signed_64_bit(self) -> None:
        """Test the hash value range."""
        context = HashContext(seed=1)
        for value in (0.0, -1.5, 1e300, 123456.789):
            result = context.hash_components([value, value])
            assert -(2**63) <= result < 2**63

    def test_grows_on_demand(self) -> None:
        """Test that the table grows in increments and keeps old multipliers."""
        context = HashContext(seed=1, size=2)
        assert len(context) == 2
        first = context.multiplier(1)

        context.multiplier(10)
        assert len(context) == 2 + HashContext.INCREMENT
        assert context.multiplier(1) == first

    def test_long_sequences(self) -> None:
        """Test hashing more components than initial multipliers."""
        context = HashContext(seed=5, size=4)
        values = [float(i) for i in range(300)]
        assert context.hash_components(values) == context.hash_components(values)
        assert len(context) >= 2 * len(values) + 1

    def test_concurrent_growth(self) -> None:
        """Test that concurrent readers agree on grown multipliers."""
        context = HashContext(seed=9, size=1)
        results: list[int] = []
        lock = threading.Lock()

        def read() -> None:
            value = context.multiplier(1000)
            with lock:
                results.append(value)

        threads = [threading.Thread(target=read) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 8
        assert len(set(results)) == 1

    def test_default_context_is_shared(self) -> None:
        """Test the lazily created process-wide context."""
        assert default_hash_context() is default_hash_context()
        assert Point(1, 2).hash_context is default_hash_context()
