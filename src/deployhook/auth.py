"""GitHub-style HMAC signature verification (``x-hub-signature-256``)."""

import hashlib
import hmac

SIGNATURE_HEADER = "x-hub-signature-256"
SIGNATURE_PREFIX = "sha256="


def sign(body: bytes, secret: str) -> str:
    """Return the header value a sender holding secret would attach to body."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify(signature_header: str | None, raw_body: bytes, secret: str) -> bool:
    """Check a signature header against the raw request body.

    The digest is lowercase hex and the comparison is case-sensitive and
    constant-time. Returns False for a missing header, a header without the
    ``sha256=`` prefix, an empty secret, or a digest mismatch.
    """
    if not secret or not signature_header:
        return False
    if not signature_header.startswith(SIGNATURE_PREFIX):
        return False
    # compare_digest rejects non-ASCII str, so compare bytes
    return hmac.compare_digest(
        sign(raw_body, secret).encode("ascii"), signature_header.encode("utf-8")
    )
