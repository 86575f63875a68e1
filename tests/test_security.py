"""
Unit tests for password hashing and bearer-token primitives.
"""

from agrofund.core.security import generate_token, hash_password, hash_token, verify_password


class TestPasswordHashing:
    def test_hash_is_not_plaintext(self):
        hashed = hash_password("s3cretpass")
        assert hashed != "s3cretpass"
        assert hashed.startswith("$2")

    def test_verify_roundtrip(self):
        hashed = hash_password("s3cretpass")
        assert verify_password("s3cretpass", hashed) is True
        assert verify_password("wrongpass", hashed) is False

    def test_hashes_are_salted(self):
        assert hash_password("same-password") != hash_password("same-password")

    def test_malformed_hash_never_matches(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False


class TestTokens:
    def test_tokens_are_unique(self):
        assert len({generate_token() for _ in range(20)}) == 20

    def test_token_is_url_safe(self):
        token = generate_token()
        assert len(token) >= 40
        assert all(c.isalnum() or c in "-_" for c in token)

    def test_hash_is_stable_sha256_hex(self):
        digest = hash_token("abc")
        assert digest == hash_token("abc")
        assert len(digest) == 64
        assert digest == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
