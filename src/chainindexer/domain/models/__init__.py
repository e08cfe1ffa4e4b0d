from chainindexer.domain.models.chain import BlockContext, OutportBlock
from chainindexer.domain.models.documents import (
    AccountDocument,
    AccountHistoryDocument,
    AccountTokenDocument,
    EventDocument,
    LogDocument,
    LogEventEntry,
    ReceiptDocument,
    ScResultDocument,
    TransactionDocument,
)
from chainindexer.domain.models.tokens import (
    Delegator,
    FeeData,
    NFTDataUpdate,
    OwnerData,
    PropertiesData,
    RoleData,
    ScDeployInfo,
    StatusInfo,
    TokenInfo,
    TokenMetaDataDocument,
)

__all__ = [
    "AccountDocument",
    "AccountHistoryDocument",
    "AccountTokenDocument",
    "BlockContext",
    "Delegator",
    "EventDocument",
    "FeeData",
    "LogDocument",
    "LogEventEntry",
    "NFTDataUpdate",
    "OutportBlock",
    "OwnerData",
    "PropertiesData",
    "ReceiptDocument",
    "RoleData",
    "ScDeployInfo",
    "ScResultDocument",
    "StatusInfo",
    "TokenInfo",
    "TokenMetaDataDocument",
    "TransactionDocument",
]
