"""Field-level helpers: truncation, token identifiers and attribute parsing."""

MAX_FIELD_LENGTH = 30000
MAX_KEYWORD_FIELD_LENGTH_BEFORE_BASE64 = 22500
MAX_DCDT_VALUE_LENGTH = 100
AT_SEPARATOR = "@"

_ATTRIBUTES_SEPARATOR = ";"
_KEY_VALUE_SEPARATOR = ":"
_VALUES_SEPARATOR = ","
_TAGS_KEY = "tags"
_METADATA_KEY = "metadata"


def truncate_field(value: str) -> str:
    return value[:MAX_FIELD_LENGTH]


def truncate_field_base64(value: str) -> str:
    """Truncate a value that will be base64-encoded, so the encoded form still fits."""
    return value[:MAX_KEYWORD_FIELD_LENGTH_BEFORE_BASE64]


def truncate_slice(values: list[str]) -> list[str]:
    return [truncate_field(v) for v in values]


def nonce_to_hex(nonce: int) -> str:
    """Minimal big-endian hex of a nonce, always even length (2 -> "02")."""
    if nonce == 0:
        return ""
    return nonce.to_bytes((nonce.bit_length() + 7) // 8, "big").hex()


def compute_token_identifier(token: str, nonce: int) -> str:
    if not token or nonce == 0:
        return token
    return f"{token}-{nonce_to_hex(nonce)}"


def balance_row_nonce_hex(nonce: int) -> str:
    return nonce_to_hex(nonce) or "00"


def bytes_to_int(value: bytes) -> int:
    return int.from_bytes(value, "big") if value else 0


def bytes_to_uint64(value: bytes) -> int:
    """Low 64 bits of a big-endian integer topic, as nonces are read on chain."""
    return bytes_to_int(value[-8:])


def bytes_to_bool(value: bytes) -> bool:
    return value == b"true"


def decode_utf8(value: bytes) -> str:
    return value.decode("utf-8", errors="replace")


def _split_attributes(attributes: bytes) -> dict[str, str]:
    pairs: dict[str, str] = {}
    for chunk in decode_utf8(attributes).split(_ATTRIBUTES_SEPARATOR):
        key, sep, value = chunk.partition(_KEY_VALUE_SEPARATOR)
        if not sep:
            continue
        pairs.setdefault(key, value)
    return pairs


def extract_tags(attributes: bytes) -> list[str] | None:
    """``tags:a,b;metadata:x`` -> ``["a", "b"]``."""
    raw = _split_attributes(attributes).get(_TAGS_KEY)
    if raw is None:
        return None
    tags = [tag for tag in raw.split(_VALUES_SEPARATOR) if tag]
    return tags or None


def extract_metadata(attributes: bytes) -> str:
    return _split_attributes(attributes).get(_METADATA_KEY, "")


def is_frozen(properties: str) -> bool:
    """Bit 0 of the first properties byte marks a frozen balance."""
    try:
        decoded = bytes.fromhex(properties)
    except ValueError:
        return False
    return bool(decoded) and bool(decoded[0] & 1)


def is_letters_only(value: str) -> bool:
    return all(ch.isalpha() for ch in value)


def account_token_id(address: str, token: str, nonce: int) -> str:
    """Id of a token balance row: ``address-TOKEN-nonceHex``."""
    return f"{address}-{token}-{balance_row_nonce_hex(nonce)}"
