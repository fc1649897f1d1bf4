"""
Unit tests for exact arithmetic mod q through the NTT.
"""

import pytest

from falcon_core.core.ntt import (
    add_zq, div_ntt, div_zq, intt, is_invertible, mul_zq, neg_zq, ntt, sub_zq,
)
from falcon_core.core.poly import karamul
from falcon_core.exceptions import MalformedInputError, NotInvertibleError
from falcon_core.params import Q


class TestNTT:
    """Test the transform and ring operations mod q."""

    @pytest.mark.parametrize("n", [2, 16, 1024])
    def test_roundtrip(self, random_poly, n):
        f = random_poly(n, bound=Q)
        assert intt(ntt(f)) == [x % Q for x in f]

    @pytest.mark.parametrize("n", [4, 64, 256])
    def test_mul_matches_karamul(self, random_poly, n):
        f = random_poly(n, bound=Q)
        g = random_poly(n, bound=Q)
        assert mul_zq(f, g) == [x % Q for x in karamul(f, g)]

    def test_div_inverts_mul(self, random_poly):
        f = random_poly(64, bound=Q)
        g = [0, 5] + [0] * 62
        assert is_invertible(g)
        assert div_zq(mul_zq(f, g), g) == [x % Q for x in f]

    def test_add_sub_neg(self, random_poly):
        f = random_poly(32, bound=Q)
        g = random_poly(32, bound=Q)
        assert add_zq(f, g) == [(x + y) % Q for x, y in zip(f, g)]
        assert sub_zq(f, g) == [(x - y) % Q for x, y in zip(f, g)]
        assert neg_zq(f) == [(-x) % Q for x in f]

    def test_one_is_invertible(self):
        one = [1] + [0] * 31
        assert is_invertible(one)
        assert ntt(one) == [1] * 32

    @pytest.mark.edge_case
    def test_division_by_zero_polynomial(self):
        zero = [0] * 16
        assert not is_invertible(zero)
        with pytest.raises(NotInvertibleError):
            div_zq([1] * 16, zero)
        with pytest.raises(ZeroDivisionError):
            div_ntt([1] * 16, zero)

    @pytest.mark.edge_case
    def test_multiple_of_q_is_not_invertible(self):
        assert not is_invertible([Q, 2 * Q, 0, 0])

    @pytest.mark.edge_case
    def test_unsupported_degree(self):
        with pytest.raises(MalformedInputError):
            ntt([1, 2, 3])
        with pytest.raises(MalformedInputError):
            ntt([0] * 4096)

    @pytest.mark.edge_case
    def test_length_mismatch(self):
        with pytest.raises(MalformedInputError):
            add_zq([1, 2], [1, 2, 3, 4])
