"""Tests for low-discrepancy sequences."""

from itertools import islice

import pytest

from spectrace.sequence import Halton2, VanDerCorput, radical_inverse


class TestRadicalInverse:
    """Test digit mirroring."""

    @pytest.mark.parametrize("index, base, expected", [
        (0, 2, 0.0),
        (1, 2, 0.5),
        (2, 2, 0.25),
        (3, 2, 0.75),
        (1, 3, 1.0 / 3.0),
        (5, 3, 2.0 / 3.0 + 1.0 / 9.0),
    ])
    def test_values(self, index, base, expected):
        assert radical_inverse(index, base) == pytest.approx(expected)


class TestVanDerCorput:
    """Test the one-dimensional sequence."""

    def test_base_2(self):
        assert list(islice(VanDerCorput(), 4)) == [0.5, 0.25, 0.75, 0.125]

    def test_offset_wraps(self):
        values = list(islice(VanDerCorput(2, offset=0.75), 3))
        assert values == pytest.approx([0.25, 0.0, 0.5])

    def test_stratified(self):
        values = list(islice(VanDerCorput(2, offset=0.25), 16))
        # Every sixteenth of the unit interval receives exactly one sample
        assert sorted(int(v * 16) for v in values) == list(range(16))

    def test_invalid_base(self):
        with pytest.raises(ValueError):
            VanDerCorput(1)


class TestHalton2:
    """Test the two-dimensional sequence."""

    def test_first_points(self):
        points = list(islice(Halton2(5, 3), 2))
        assert points[0] == pytest.approx((0.2, 1.0 / 3.0))
        assert points[1] == pytest.approx((0.4, 2.0 / 3.0))

    def test_points_in_unit_square(self):
        for x, y in islice(Halton2(5, 3, offset=(0.9, 0.9)), 100):
            assert 0.0 <= x < 1.0
            assert 0.0 <= y < 1.0

    def test_equal_bases(self):
        with pytest.raises(ValueError):
            Halton2(3, 3)
