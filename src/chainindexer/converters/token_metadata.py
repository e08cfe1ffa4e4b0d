from chainindexer.converters.fields import (
    extract_metadata,
    extract_tags,
    truncate_field,
    truncate_field_base64,
    truncate_slice,
)
from chainindexer.domain.models import TokenMetaDataDocument
from chainindexer.domain.models.chain import TokenMetaData

_IPFS_URL = "https://ipfs.io/ipfs/"
_IPFS_SCHEME = "ipfs://"
_DWEB_URL = "https://dweb.link/ipfs"
_PINATA_CLOUD = ".pinata.cloud/ipfs"
_SECURE_PREFIX = "https://"


def prepare_token_metadata(metadata: TokenMetaData | None) -> TokenMetaDataDocument | None:
    if metadata is None:
        return None

    uris = [truncate_field_base64(uri.decode("utf-8", errors="replace")).encode() for uri in metadata.uris]
    tags = extract_tags(metadata.attributes)
    attributes = truncate_field_base64(metadata.attributes.decode("utf-8", errors="replace")).encode()

    return TokenMetaDataDocument(
        name=truncate_field(metadata.name),
        creator=metadata.creator,
        royalties=metadata.royalties,
        hash=metadata.hash or None,
        uris=uris or None,
        attributes=attributes or None,
        tags=truncate_slice(tags) if tags else None,
        metadata=extract_metadata(metadata.attributes) or None,
        non_empty_uris=non_empty_uris(metadata.uris),
        white_listed_storage=white_listed_storage(metadata.uris),
    )


def non_empty_uris(uris: list[bytes]) -> bool:
    return any(len(uri) > 0 for uri in uris)


def white_listed_storage(uris: list[bytes]) -> bool:
    """Only the first URI decides whether the content lives on a trusted gateway."""
    if not uris:
        return False
    uri = uris[0].decode("utf-8", errors="replace")
    return (
        uri.startswith(_IPFS_URL)
        or uri.startswith(_IPFS_SCHEME)
        or uri.startswith(_DWEB_URL)
        or (_PINATA_CLOUD in uri and uri.startswith(_SECURE_PREFIX))
    )
