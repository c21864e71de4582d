"""Password and reset-token hashing tests."""

from authflow.auth.password import (
    generate_reset_token,
    hash_password,
    hash_reset_token,
    verify_password,
)


def test_hash_and_verify():
    hashed = hash_password("correct horse", rounds=4)
    assert hashed.startswith("$2")
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)


def test_verify_rejects_empty_and_malformed():
    assert not verify_password("", hash_password("x" * 8, rounds=4))
    assert not verify_password("password", "")
    assert not verify_password("password", "not-a-bcrypt-hash")


def test_reset_token_pair():
    token, token_hash = generate_reset_token()
    assert len(token) == 64
    assert token_hash == hash_reset_token(token)
    assert token_hash != token


def test_reset_tokens_are_unique():
    assert generate_reset_token()[0] != generate_reset_token()[0]
