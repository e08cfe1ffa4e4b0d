import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class PubkeyConverter(Protocol):
    """Turns raw address bytes into their human-readable form and back."""

    def encode(self, pubkey: bytes) -> str: ...

    def decode(self, address: str) -> bytes: ...

    def silent_encode(self, pubkey: bytes, log: logging.Logger | None = None) -> str: ...


class HexPubkeyConverter:
    """Hex address rendering. Bech32 converters can be injected through the same protocol."""

    def __init__(self, length: int = 32) -> None:
        if length <= 0:
            raise ValueError("address length must be positive")
        self._length = length

    @property
    def length(self) -> int:
        return self._length

    def encode(self, pubkey: bytes) -> str:
        if len(pubkey) != self._length:
            raise ValueError(f"wrong address length: expected {self._length}, got {len(pubkey)}")
        return pubkey.hex()

    def decode(self, address: str) -> bytes:
        decoded = bytes.fromhex(address)
        if len(decoded) != self._length:
            raise ValueError(f"wrong address length: expected {self._length}, got {len(decoded)}")
        return decoded

    def silent_encode(self, pubkey: bytes, log: logging.Logger | None = None) -> str:
        """Encode, returning "" and logging on failure."""
        if not pubkey:
            return ""
        try:
            return self.encode(pubkey)
        except ValueError as exc:
            (log or logger).warning("cannot encode address %s: %s", pubkey.hex(), exc)
            return ""
