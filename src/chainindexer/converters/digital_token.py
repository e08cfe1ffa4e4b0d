"""Decoding of the token data carried by NFT-create events."""

from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field

from chainindexer.domain.models.base import B64Bytes


class DigitalTokenMetaData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    nonce: int = Field(0, alias="Nonce", ge=0, lt=2**64)
    name: B64Bytes = Field(b"", alias="Name")
    creator: B64Bytes = Field(b"", alias="Creator")
    royalties: int = Field(0, alias="Royalties", ge=0, lt=2**32)
    hash: B64Bytes = Field(b"", alias="Hash")
    uris: list[B64Bytes] = Field(default_factory=list, alias="URIs")
    attributes: B64Bytes = Field(b"", alias="Attributes")


class DigitalToken(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: int = Field(0, alias="Type", ge=0, lt=2**32)
    value: int = Field(0, alias="Value")
    properties: B64Bytes = Field(b"", alias="Properties")
    token_meta_data: DigitalTokenMetaData | None = Field(None, alias="TokenMetaData")


class TokenMarshaller(Protocol):
    """Decoder of the node's token data wire format. The indexer is configured for JSON."""

    def unmarshal(self, raw: bytes) -> DigitalToken: ...


class JsonTokenMarshaller:
    """Token data encoded as JSON with base64 byte fields."""

    def unmarshal(self, raw: bytes) -> DigitalToken:
        return DigitalToken.model_validate_json(raw)
