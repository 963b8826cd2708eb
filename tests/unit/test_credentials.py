"""Tests for session credentials and derived keys."""
import string

from meetrelay.utils.hashing import (
    derive_calendar_api_key,
    generate_session_id,
    generate_session_password,
    hash_admin_password,
    hash_password,
    verify_admin_password,
    verify_calendar_api_key,
    verify_password,
)


def test_session_ids_are_unique():
    ids = {generate_session_id() for _ in range(10_000)}
    assert len(ids) == 10_000


def test_session_id_format():
    session_id = generate_session_id()
    assert len(session_id) == 24
    assert set(session_id) <= set(string.hexdigits.lower())


def test_session_password_format():
    password = generate_session_password()
    assert len(password) == 8
    assert set(password) <= set("0123456789ABCDEF")


def test_password_round_trip():
    for _ in range(100):
        password = generate_session_password()
        assert verify_password(password, hash_password(password))


def test_wrong_password_rejected():
    stored = hash_password("A1B2C3D4")
    assert not verify_password("A1B2C3D5", stored)
    assert not verify_password("", stored)
    assert not verify_password(None, stored)


def test_session_password_is_case_sensitive():
    stored = hash_password("ABCDEF12")
    assert not verify_password("abcdef12", stored)


def test_hash_is_deterministic_hex():
    assert hash_password("secret") == hash_password("secret")
    assert len(hash_password("secret")) == 64


def test_admin_password_bcrypt():
    stored = hash_admin_password("correct horse")
    assert stored.startswith("$2")
    assert verify_admin_password("correct horse", stored)
    assert not verify_admin_password("wrong horse", stored)


def test_admin_password_malformed_hash():
    assert not verify_admin_password("anything", "not-a-bcrypt-hash")


def test_calendar_key_derivation():
    key = derive_calendar_api_key("abc")
    assert len(key) == 32
    assert key == derive_calendar_api_key("abc")
    assert key != derive_calendar_api_key("abd")


def test_calendar_key_verification():
    assert verify_calendar_api_key(derive_calendar_api_key())
    assert not verify_calendar_api_key("0" * 32)
    assert not verify_calendar_api_key(None)
    assert not verify_calendar_api_key("")
