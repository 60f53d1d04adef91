"""
Integrity checks for externally sourced build inputs.
"""

from pathlib import Path

from cryptography.hazmat.primitives import hashes

_CHUNK_SIZE = 1 << 20


def sha512_file_digest(path: Path) -> str:
    """Returns the hex-encoded SHA-512 digest of a file's contents."""
    digest = hashes.Hash(hashes.SHA512())
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.finalize().hex()


def matches_sha512(path: Path, expected: str) -> bool:
    return sha512_file_digest(path) == expected.strip().lower()
