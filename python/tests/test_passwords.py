"""Tests for password hashing."""

from clipshare.auth.passwords import hash_password, verify_password


class TestPasswords:
    def test_hash_is_not_plaintext(self):
        hashed = hash_password("correct horse")

        assert hashed != "correct horse"
        assert hashed.startswith("$2")

    def test_verify(self):
        hashed = hash_password("correct horse")

        assert verify_password("correct horse", hashed)
        assert not verify_password("wrong horse", hashed)

    def test_salted(self):
        assert hash_password("same") != hash_password("same")

    def test_missing_or_malformed_hash(self):
        assert not verify_password("anything", None)
        assert not verify_password("anything", "")
        assert not verify_password("anything", "not-a-bcrypt-hash")

    def test_long_passwords_truncated_consistently(self):
        long_password = "x" * 100

        assert verify_password(long_password, hash_password(long_password))
