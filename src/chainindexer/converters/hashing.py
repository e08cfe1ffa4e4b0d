import hashlib
from typing import Protocol


class Hasher(Protocol):
    def compute(self, data: str | bytes) -> bytes: ...


class Blake2bHasher:
    """32-byte blake2b, the chain's default hashing function."""

    SIZE = 32

    def compute(self, data: str | bytes) -> bytes:
        if isinstance(data, str):
            data = data.encode()
        return hashlib.blake2b(data, digest_size=self.SIZE).digest()
