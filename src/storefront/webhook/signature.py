"""HMAC-SHA256 signatures over raw webhook bodies."""

import hashlib
import hmac


def compute_signature(raw_body: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()


def verify_signature(raw_body: bytes, signature: str | None, secret: str) -> bool:
    """Constant-time comparison of ``signature`` against the body's HMAC."""
    if not signature:
        return False
    return hmac.compare_digest(compute_signature(raw_body, secret), signature.strip().lower())
