"""Token, delegation and contract facts extracted from logs."""

from dataclasses import dataclass, field

from pydantic import Field

from chainindexer.domain.models.base import B64Bytes, Document


class TokenMetaDataDocument(Document):
    name: str = ""
    creator: str = ""
    royalties: int = 0
    hash: B64Bytes | None = None
    uris: list[B64Bytes] | None = None
    tags: list[str] | None = None
    attributes: B64Bytes | None = None
    metadata: str | None = None
    non_empty_uris: bool = Field(False, alias="nonEmptyURIs")
    white_listed_storage: bool = False


class OwnerData(Document):
    address: str
    timestamp: int


class TokenInfo(Document):
    """A token document. Collections are keyed by ``token``, NFT instances by ``identifier``."""

    name: str | None = None
    ticker: str | None = None
    token: str = ""
    issuer: str | None = None
    current_owner: str | None = None
    num_decimals: int = 0
    type: str | None = None
    timestamp: int = 0
    owners_history: list[OwnerData] | None = None
    properties: dict[str, bool] | None = None
    identifier: str | None = None
    nonce: int | None = None
    data: TokenMetaDataDocument | None = None

    transfer_ownership: bool = Field(False, exclude=True)

    @property
    def doc_id(self) -> str:
        return self.identifier or self.token


class Delegator(Document):
    address: str
    contract: str
    timestamp: int = 0
    active_stake: str = "0"
    active_stake_num: float = 0.0

    should_delete: bool = Field(False, exclude=True)


@dataclass
class ScDeployInfo:
    tx_hash: str
    creator: str
    timestamp: int
    code_hash: str | None = None


@dataclass
class RoleData:
    token: str
    address: str
    is_set: bool


@dataclass
class PropertiesData:
    token: str
    properties: dict[str, bool] = field(default_factory=dict)


@dataclass
class NFTDataUpdate:
    identifier: str
    address: str
    new_attributes: bytes = b""
    uris_to_add: list[bytes] = field(default_factory=list)
    freeze: bool = False
    unfreeze: bool = False
    pause: bool = False
    unpause: bool = False


@dataclass
class StatusInfo:
    status: str = ""
    error_event: bool = False
    completed_event: bool = False

    def to_params(self) -> dict:
        return {"status": self.status, "errorEvent": self.error_event, "completedEvent": self.completed_event}


@dataclass
class FeeData:
    fee: str
    fee_num: float
    gas_used: int
