"""Tests for _types module."""
import pytest

from aquasim._types import Lcg, clamp, compare, day_index, hash_string


def test_clamp_inside():
    assert clamp(5.0, 0.0, 10.0) == 5.0


def test_clamp_bounds():
    assert clamp(-3.0, 0.0, 10.0) == 0.0
    assert clamp(42.0, 0.0, 10.0) == 10.0


def test_compare_operators():
    assert compare(5, ">=", 5)
    assert compare(4, "<", 5)
    assert not compare(4, ">", 5)
    assert compare(3, "!=", 4)


def test_compare_unknown_operator():
    with pytest.raises(ValueError, match="Unknown operator"):
        compare(1, "=>", 2)


def test_day_index():
    assert day_index(0) == 0
    assert day_index(86399.9) == 0
    assert day_index(86400 * 3 + 5) == 3


def test_hash_string_known_values():
    assert hash_string("") == 5381
    assert hash_string("a") == 5381 * 33 + 97


def test_hash_string_wraps_to_32_bits():
    h = hash_string("tropical:19700:d_0123456789ab" * 10)
    assert 0 <= h <= 2 ** 31


def test_hash_string_stable():
    assert hash_string("fresh:1:plant") == hash_string("fresh:1:plant")
    assert hash_string("fresh:1:plant") != hash_string("fresh:2:plant")


def test_lcg_first_value():
    assert Lcg(0).next() == pytest.approx(1013904223 / 4294967296)
    assert Lcg(1).next() == pytest.approx((1664525 + 1013904223) / 4294967296)


def test_lcg_same_seed_same_sequence():
    a, b = Lcg(12345), Lcg(12345)
    assert [a.next() for _ in range(5)] == [b.next() for _ in range(5)]


def test_lcg_range():
    rng = Lcg(987654321)
    for _ in range(200):
        assert 0.0 <= rng.next() < 1.0


def test_lcg_uniform():
    rng = Lcg(7)
    for _ in range(50):
        assert -0.15 <= rng.uniform(-0.15, 0.15) < 0.15
