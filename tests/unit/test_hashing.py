"""
Module 02 - Hashing Unit Tests
Tests for core/crypto/hashing.py

Covers:
1. sha256_hex - lowercase hex, no prefix, UTF-8 input
2. leaf_hash - canonical "wallet:amount" pre-image
3. hash_pair - commutative parent hashing
4. Input validation for leaf amounts and wallets
"""
import hashlib

import pytest

from core.crypto.hashing import (
    LEAF_SEPARATOR,
    hash_pair,
    is_hex_digest,
    leaf_hash,
    leaf_input,
    sha256_hex,
)


class TestSha256Hex:
    """Tests for text hashing."""

    def test_known_vector(self):
        assert sha256_hex("hello") == (
            "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"
        )

    def test_lowercase_no_prefix(self):
        digest = sha256_hex("anything")
        assert len(digest) == 64
        assert digest == digest.lower()
        assert not digest.startswith("0x")
        assert is_hex_digest(digest)

    def test_utf8_encoding(self):
        text = "wallet-ü"
        assert sha256_hex(text) == hashlib.sha256(text.encode("utf-8")).hexdigest()


class TestLeafHash:
    """Tests for the canonical allocation leaf."""

    def test_leaf_preimage_format(self):
        assert LEAF_SEPARATOR == ":"
        assert leaf_input("EQabc", 160_000_000_000) == "EQabc:160000000000"

    def test_leaf_matches_manual_hash(self):
        expected = hashlib.sha256(b"wallet_A:160000000000").hexdigest()
        assert leaf_hash("wallet_A", 160_000_000_000) == expected

    def test_zero_amount_allowed(self):
        assert leaf_hash("w", 0) == sha256_hex("w:0")

    def test_large_amount_exact_decimal(self):
        """Amounts above 2**53 are rendered exactly."""
        amount = 2**63 + 7
        assert leaf_input("w", amount) == f"w:{amount}"

    def test_different_amount_different_leaf(self):
        assert leaf_hash("w", 1) != leaf_hash("w", 2)

    def test_negative_amount_rejected(self):
        with pytest.raises(ValueError):
            leaf_hash("w", -1)

    def test_float_amount_rejected(self):
        with pytest.raises(TypeError):
            leaf_hash("w", 1.0)

    def test_bool_amount_rejected(self):
        with pytest.raises(TypeError):
            leaf_hash("w", True)

    def test_empty_wallet_rejected(self):
        with pytest.raises(ValueError):
            leaf_hash("", 5)


class TestHashPair:
    """Tests for commutative parent hashing."""

    def test_commutative(self):
        a = sha256_hex("a")
        b = sha256_hex("b")
        assert hash_pair(a, b) == hash_pair(b, a)

    def test_sorted_concatenation(self):
        a = sha256_hex("a")
        b = sha256_hex("b")
        lo, hi = sorted([a, b])
        assert hash_pair(a, b) == sha256_hex(lo + hi)

    def test_identical_children(self):
        a = sha256_hex("a")
        assert hash_pair(a, a) == sha256_hex(a + a)


class TestIsHexDigest:
    """Tests for digest shape checks."""

    def test_rejects_uppercase_and_prefix(self):
        digest = sha256_hex("x")
        assert not is_hex_digest(digest.upper())
        assert not is_hex_digest("0x" + digest[2:])
        assert not is_hex_digest(digest[:-1])
        assert not is_hex_digest(None)
