"""
Integration tests for signing and verification.

The degree-64 tests run on a small key with the Falcon-1024 parameters and
check the algebra of the preimage sampler; the degree-1024 tests exercise
the full wire-level sign/verify path.
"""

import dataclasses

import numpy as np
import pytest

from falcon_core import signing
from falcon_core.core.ntt import add_zq, mul_zq
from falcon_core.core.poly import center_mod_q, sqnorm
from falcon_core.encoding import (
    decode_public_key, decode_signature, pack_secret_key, to_bytes,
)
from falcon_core.exceptions import MalformedInputError, SigningError
from falcon_core.hashing import hash_to_point
from falcon_core.keystore import InMemoryKeyStore
from falcon_core.lattices.context import build_falcon_context
from falcon_core.params import FALCON_1024, Q, SALT_LEN
from falcon_core.signing import (
    FalconSigner, SecretKey, derive_public_key, get_public_key, sample_preimage,
    sign, sign_with_context, verify, verify_signature,
)

MESSAGE = bytes(range(32))
DOMAIN = "FALCON TEST"


@pytest.fixture(scope="module")
def small_context(small_ntru_key):
    return build_falcon_context(*small_ntru_key)


def key_copy(secret_key):
    return SecretKey(list(secret_key.f), list(secret_key.g),
                     list(secret_key.F), list(secret_key.G))


class TestPreimageSampling:
    """Algebraic checks at degree 64."""

    def test_preimage_hits_point(self, small_context, seeded_rng):
        point = hash_to_point(DOMAIN, bytes(SALT_LEN), MESSAGE, n=64)
        s0, s1 = sample_preimage(small_context, point, seeded_rng(1))
        lhs = add_zq(s0, mul_zq(s1, small_context.h))
        assert lhs == point

    def test_preimage_is_short(self, small_context, seeded_rng):
        point = hash_to_point(DOMAIN, bytes(SALT_LEN), MESSAGE, n=64)
        norms = [sqnorm(sample_preimage(small_context, point, seeded_rng(i)))
                 for i in range(5)]
        # a uniform vector mod q would have squared norm around 128 * q^2 / 12
        assert max(norms) < 2e6

    @pytest.mark.edge_case
    def test_point_length_mismatch(self, small_context):
        with pytest.raises(MalformedInputError):
            sample_preimage(small_context, [0] * 32)

    def test_sign_with_context(self, small_context, seeded_rng):
        sig = sign_with_context(small_context, MESSAGE, DOMAIN, randombytes=seeded_rng(2))
        salt, coeffs = decode_signature(sig)
        assert len(salt) == SALT_LEN
        assert len(coeffs) == 128
        m = hash_to_point(DOMAIN, salt, MESSAGE, n=64)
        assert verify_signature(m, coeffs[64:], small_context.h)
        assert not verify_signature(m, coeffs[64:], small_context.h, signature_bound=1)

    @pytest.mark.reproducibility
    def test_seeded_signing_is_deterministic(self, small_context):
        a = sign_with_context(small_context, MESSAGE, DOMAIN, seed="0x" + "ab" * 32)
        b = sign_with_context(small_context, MESSAGE, DOMAIN, seed="0x" + "ab" * 32)
        c = sign_with_context(small_context, MESSAGE, DOMAIN, seed="0x" + "cd" * 32)
        assert a == b
        assert a != c

    @pytest.mark.edge_case
    def test_attempt_cap(self, small_context):
        ctx = dataclasses.replace(small_context, signature_bound=0)
        with pytest.raises(SigningError) as excinfo:
            sign_with_context(ctx, MESSAGE, DOMAIN, seed=b"cap", max_attempts=2)
        assert excinfo.value.attempts == 2

    @pytest.mark.edge_case
    def test_verify_signature_length_mismatch(self):
        with pytest.raises(MalformedInputError):
            verify_signature([0] * 64, [0] * 64, [0] * 32)

    def test_verify_bound_is_strict(self):
        n = 4
        m = [3, 0, 0, 0]
        s = [0, 0, 0, 0]
        h = [1, 0, 0, 0]
        assert not verify_signature(m, s, h, signature_bound=9)
        assert verify_signature(m, s, h, signature_bound=10)
        assert center_mod_q(Q - 3) == -3
        assert verify_signature([Q - 3] + [0] * (n - 1), s, h, signature_bound=10)


@pytest.mark.slow
class TestFalcon1024:
    """End-to-end signing with a degree-1024 key."""

    def test_sign_and_verify(self, secret_key_1024):
        pk = get_public_key(secret_key_1024)
        sig = sign(secret_key_1024, MESSAGE, DOMAIN)
        assert len(to_bytes(sig)) == FALCON_1024.signature_bytelen
        assert verify(pk, DOMAIN, sig, MESSAGE)

    def test_fresh_salts(self, secret_key_1024):
        pk = get_public_key(secret_key_1024)
        sig_a = sign(secret_key_1024, MESSAGE, DOMAIN)
        sig_b = sign(secret_key_1024, MESSAGE, DOMAIN)
        assert decode_signature(sig_a)[0] != decode_signature(sig_b)[0]
        assert verify(pk, DOMAIN, sig_a, MESSAGE)
        assert verify(pk, DOMAIN, sig_b, MESSAGE)

    @pytest.mark.reproducibility
    def test_seeded_signatures(self, secret_key_1024):
        seed = "0x" + "42" * 56
        sig_a = sign(secret_key_1024, MESSAGE, DOMAIN, seed=seed)
        sig_b = sign(secret_key_1024, MESSAGE, DOMAIN, seed=seed)
        sig_c = sign(secret_key_1024, MESSAGE, DOMAIN, seed=b"another seed")
        assert sig_a == sig_b
        assert sig_a != sig_c

    def test_signature_norm(self, secret_key_1024):
        sig = sign(secret_key_1024, MESSAGE, DOMAIN, seed=b"norm")
        _, coeffs = decode_signature(sig)
        centred = np.array([center_mod_q(x) for x in coeffs])
        assert int(np.sum(centred ** 2)) <= FALCON_1024.signature_bound

    @pytest.mark.parametrize("message,domain", [
        (bytes(32), DOMAIN),
        (MESSAGE, "OTHER DOMAIN"),
    ])
    def test_tampering_fails(self, secret_key_1024, message, domain):
        pk = get_public_key(secret_key_1024)
        sig = sign(secret_key_1024, MESSAGE, DOMAIN, seed=b"tamper")
        assert not verify(pk, domain, sig, message)

    def test_public_key(self, secret_key_1024):
        h = derive_public_key(secret_key_1024)
        assert mul_zq(h, secret_key_1024.f) == [x % Q for x in secret_key_1024.g]
        pk = get_public_key(secret_key_1024)
        assert len(pk) == 2 + 2 * 1792
        assert decode_public_key(pk) == h

    @pytest.mark.edge_case
    def test_malformed_inputs(self, secret_key_1024):
        pk = get_public_key(secret_key_1024)
        sig = sign(secret_key_1024, MESSAGE, DOMAIN, seed=b"malformed")
        with pytest.raises(MalformedInputError):
            verify(pk[:-2], DOMAIN, sig, MESSAGE)
        with pytest.raises(MalformedInputError):
            verify(pk, DOMAIN, sig[:2 + 2 * SALT_LEN + 4], MESSAGE)
        with pytest.raises(MalformedInputError):
            verify(pk, DOMAIN, sig, MESSAGE[:31])

    @pytest.fixture
    def signed(self, secret_key_1024):
        pk = get_public_key(secret_key_1024)
        raw = to_bytes(sign(secret_key_1024, MESSAGE, DOMAIN, seed=b"canonical"))
        assert verify(pk, DOMAIN, raw, MESSAGE)
        return pk, raw

    @pytest.mark.edge_case
    def test_signature_without_s0_rejected(self, signed):
        pk, raw = signed
        s1_only = raw[:SALT_LEN] + raw[SALT_LEN + 2 * 1024:]
        assert len(s1_only) == SALT_LEN + 2 * 1024
        with pytest.raises(MalformedInputError):
            verify(pk, DOMAIN, s1_only, MESSAGE)

    @pytest.mark.edge_case
    def test_padded_signature_rejected(self, signed):
        pk, raw = signed
        padded = raw[:SALT_LEN] + bytes(10000) + raw[SALT_LEN:]
        with pytest.raises(MalformedInputError):
            verify(pk, DOMAIN, padded, MESSAGE)
        with pytest.raises(MalformedInputError):
            verify(pk, DOMAIN, raw + b"\x00\x00", MESSAGE)

    @pytest.mark.edge_case
    def test_unreduced_coefficient_rejected(self, signed):
        pk, raw = signed
        for index in (0, 1024):
            offset = SALT_LEN + 2 * index
            word = int.from_bytes(raw[offset:offset + 2], "big") + Q
            shifted = raw[:offset] + word.to_bytes(2, "big") + raw[offset + 2:]
            with pytest.raises(MalformedInputError):
                verify(pk, DOMAIN, shifted, MESSAGE)

    def test_altered_s0_is_invalid(self, signed):
        pk, raw = signed
        word = (int.from_bytes(raw[SALT_LEN:SALT_LEN + 2], "big") + 1) % Q
        altered = raw[:SALT_LEN] + word.to_bytes(2, "big") + raw[SALT_LEN + 2:]
        assert len(altered) == FALCON_1024.signature_bytelen
        assert not verify(pk, DOMAIN, altered, MESSAGE)

    def test_wipe(self, secret_key_1024):
        secret_key = key_copy(secret_key_1024)
        secret_key.wipe()
        assert secret_key.n == 1024
        assert not any(secret_key.f + secret_key.g + secret_key.F + secret_key.G)
        assert any(secret_key_1024.f)


@pytest.mark.slow
class TestFalconSigner:
    """Signer backed by a key store."""

    def test_prepopulated_store(self, secret_key_1024):
        sk = secret_key_1024
        store = InMemoryKeyStore(pack_secret_key(sk.f, sk.g, sk.F, sk.G))
        signer = FalconSigner(store)
        assert signer.has_key()
        pk = signer.public_key()
        assert pk == get_public_key(sk)
        sig = signer.sign(MESSAGE, DOMAIN)
        assert verify(pk, DOMAIN, sig, MESSAGE)
        # the stored key survives the wipe of the loaded copy
        assert signer.public_key() == pk

    def test_generates_on_empty_store(self, secret_key_1024, monkeypatch):
        sk = secret_key_1024
        monkeypatch.setattr(signing, "ntru_gen",
                            lambda n, randombytes, q=Q: (list(sk.f), list(sk.g),
                                                         list(sk.F), list(sk.G)))
        store = InMemoryKeyStore()
        signer = FalconSigner(store)
        assert not signer.has_key()
        pk = signer.public_key()
        assert len(store) == 4
        assert pk == get_public_key(sk)

    @pytest.mark.edge_case
    def test_partial_store(self, secret_key_1024):
        sk = secret_key_1024
        stored = pack_secret_key(sk.f, sk.g, sk.F, sk.G)
        del stored["G"]
        signer = FalconSigner(InMemoryKeyStore(stored))
        assert not signer.has_key()
        with pytest.raises(MalformedInputError):
            signer.sign(MESSAGE, DOMAIN)
