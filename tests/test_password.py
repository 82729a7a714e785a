"""Tests for bcrypt helpers."""

from unittest.mock import patch

import pytest

from security.password import decoy_verify, hash_password, verify_password


class TestPasswordHashing:

    def test_round_trip(self):
        hashed = hash_password("correct123", rounds=4)
        assert hashed.startswith("$2")
        assert verify_password("correct123", hashed)
        assert not verify_password("wrong", hashed)

    def test_salted(self):
        assert hash_password("same", rounds=4) != hash_password("same", rounds=4)

    @pytest.mark.parametrize("value", ["", None, 123])
    def test_hash_rejects_empty(self, value):
        with pytest.raises(ValueError):
            hash_password(value, rounds=4)

    def test_missing_hash_never_matches(self):
        assert verify_password("", "") is False
        assert verify_password("anything", None) is False
        assert verify_password("", hash_password("x", rounds=4)) is False

    def test_malformed_hash_is_a_mismatch(self):
        assert verify_password("correct123", "not-a-bcrypt-hash") is False


class TestDecoyVerify:

    def test_runs_a_bcrypt_check(self):
        with patch("security.password.bcrypt.checkpw", return_value=False) as checkpw:
            decoy_verify("anything", rounds=4)
        checkpw.assert_called_once()

    def test_empty_password_still_costs_a_check(self):
        with patch("security.password.bcrypt.checkpw", return_value=False) as checkpw:
            decoy_verify("", rounds=4)
        checkpw.assert_called_once()
