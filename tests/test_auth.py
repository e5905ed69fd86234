import hashlib
import hmac

import pytest

from src.deployhook.auth import SIGNATURE_PREFIX, sign, verify

SECRET = "s3cret"
BODY = b'{"ref": "refs/heads/main", "after": "abc123"}'


def _expected(body: bytes, secret: str = SECRET) -> str:
    return "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def test_sign_matches_hmac_sha256_lowercase_hex():
    signature = sign(BODY, SECRET)
    assert signature == _expected(BODY)
    assert signature[len(SIGNATURE_PREFIX):] == signature[len(SIGNATURE_PREFIX):].lower()


def test_verify_accepts_matching_signature():
    assert verify(_expected(BODY), BODY, SECRET) is True


def test_verify_rejects_single_byte_mutation():
    header = _expected(BODY)
    for i in range(len(BODY)):
        mutated = bytearray(BODY)
        mutated[i] ^= 0x01
        assert verify(header, bytes(mutated), SECRET) is False


def test_verify_rejects_wrong_secret():
    assert verify(_expected(BODY, "other"), BODY, SECRET) is False


def test_empty_body_has_deterministic_digest():
    assert sign(b"", SECRET) == sign(b"", SECRET)
    assert verify(_expected(b""), b"", SECRET) is True


@pytest.mark.parametrize("header", [None, "", "deadbeef", "sha1=" + "0" * 40])
def test_verify_rejects_missing_or_malformed_header(header):
    assert verify(header, BODY, SECRET) is False


def test_verify_is_case_sensitive_on_hex_digits():
    header = _expected(BODY)
    upper = SIGNATURE_PREFIX + header[len(SIGNATURE_PREFIX):].upper()
    assert verify(upper, BODY, SECRET) is False


def test_verify_rejects_when_secret_empty():
    assert verify(_expected(BODY, ""), BODY, "") is False


def test_verify_handles_non_ascii_header():
    assert verify("sha256=é", BODY, SECRET) is False
