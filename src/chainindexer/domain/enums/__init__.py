from chainindexer.domain.enums.block import MiniBlockType
from chainindexer.domain.enums.event import EventIdentifier
from chainindexer.domain.enums.index import IndexName
from chainindexer.domain.enums.status import OperationType, TxStatus
from chainindexer.domain.enums.token import TokenRole, TokenType

__all__ = [
    "EventIdentifier",
    "IndexName",
    "MiniBlockType",
    "OperationType",
    "TokenRole",
    "TokenType",
    "TxStatus",
]
