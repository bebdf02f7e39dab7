import hashlib


def fingerprint(data: bytes) -> str:
    """SHA-256 of the raw bytes, as lowercase hex."""
    return hashlib.sha256(data).hexdigest()
