"""
Unit tests for PBKDF2 password hashing.
"""

import hashlib

import pytest

from objsync.app.security.hashing import CredentialHasher, HashedPassword


@pytest.fixture
def hasher():
    return CredentialHasher(iterations=1000)


def test_hash_password_returns_parameters(hasher):
    """The salt and iteration count travel with the digest."""
    hashed = hasher.hash_password("s3cret")

    assert len(hashed.salt) == 32
    assert hashed.iterations == 1000
    assert len(hashed.hash) == 32


def test_hash_password_uses_fresh_salt(hasher):
    first = hasher.hash_password("s3cret")
    second = hasher.hash_password("s3cret")

    assert first.salt != second.salt
    assert first.hash != second.hash


def test_verify_exact_password(hasher):
    hashed = hasher.hash_password("s3cret")
    assert hasher.verify_password(hashed, "s3cret") is True


@pytest.mark.parametrize("candidate", ["", "s3cret ", "s3cret\n", " s3cret", "S3cret", "s3cre"])
def test_verify_rejects_other_passwords(hasher, candidate):
    hashed = hasher.hash_password("s3cret")
    assert hasher.verify_password(hashed, candidate) is False


def test_verify_replays_stored_parameters(hasher):
    """Changing defaults must not break hashes made with the old ones."""
    old = CredentialHasher(iterations=500, output_len=16).hash_password("s3cret")

    assert hasher.verify_password(old, "s3cret") is True
    assert hasher.verify_password(old, "wrong") is False


def test_verify_matches_reference_pbkdf2(hasher):
    salt = b"\x01" * 32
    digest = hashlib.pbkdf2_hmac("sha256", "pässword".encode("utf-8"), salt, 1000, 32)

    stored = HashedPassword(salt=salt, iterations=1000, hash=digest)

    assert hasher.verify_password(stored, "pässword") is True


def test_verify_empty_stored_hash_is_false(hasher):
    stored = HashedPassword(salt=b"salt", iterations=1000, hash=b"")
    assert hasher.verify_password(stored, "") is False


def test_verify_bad_iteration_count_is_false(hasher):
    stored = HashedPassword(salt=b"salt", iterations=0, hash=b"x" * 32)
    assert hasher.verify_password(stored, "s3cret") is False
