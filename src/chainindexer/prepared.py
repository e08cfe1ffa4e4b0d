"""PreparedResults: the per-block accumulator filled by correlation and log classification."""

from collections import OrderedDict
from dataclasses import dataclass, field

from chainindexer.converters.fields import compute_token_identifier
from chainindexer.domain.models import (
    AccountDocument,
    AccountHistoryDocument,
    AccountTokenDocument,
    Delegator,
    EventDocument,
    FeeData,
    LogDocument,
    NFTDataUpdate,
    OwnerData,
    PropertiesData,
    ReceiptDocument,
    RoleData,
    ScDeployInfo,
    ScResultDocument,
    StatusInfo,
    TokenInfo,
    TransactionDocument,
)


class TokensInfo:
    """Token facts keyed by identifier. Later facts for the same identifier replace earlier ones."""

    def __init__(self) -> None:
        self._tokens: OrderedDict[str, TokenInfo] = OrderedDict()

    def add(self, info: TokenInfo) -> None:
        key = info.identifier or info.token
        if key:
            self._tokens[key] = info

    def get(self, identifier: str) -> TokenInfo | None:
        return self._tokens.get(identifier)

    def get_all(self) -> list[TokenInfo]:
        return list(self._tokens.values())

    def get_all_tokens(self) -> list[str]:
        """Distinct collection tickers, in insertion order."""
        return list(OrderedDict.fromkeys(t.token for t in self._tokens.values() if t.token))

    def add_type_for_token(self, token: str, token_type: str) -> None:
        for info in self._tokens.values():
            if info.token == token:
                info.type = token_type

    def __len__(self) -> int:
        return len(self._tokens)

    def __contains__(self, identifier: str) -> bool:
        return identifier in self._tokens


class TokenRolesAndProperties:
    def __init__(self) -> None:
        self._roles: dict[str, list[RoleData]] = {}
        self._properties: list[PropertiesData] = []

    def add_role(self, token: str, address: str, role: str, is_set: bool) -> None:
        self._roles.setdefault(role, []).append(RoleData(token=token, address=address, is_set=is_set))

    def add_properties(self, token: str, properties: dict[str, bool]) -> None:
        self._properties.append(PropertiesData(token=token, properties=properties))

    @property
    def roles(self) -> dict[str, list[RoleData]]:
        return self._roles

    @property
    def properties(self) -> list[PropertiesData]:
        return self._properties


class TxHashStatusInfo:
    """Status overrides for transactions whose document lives in another block."""

    def __init__(self) -> None:
        self._records: dict[str, StatusInfo] = {}

    def add_record(self, tx_hash: str, record: StatusInfo) -> None:
        existing = self._records.get(tx_hash)
        if existing is None:
            self._records[tx_hash] = record
            return
        existing.completed_event = existing.completed_event or record.completed_event
        existing.error_event = existing.error_event or record.error_event
        if record.status:
            existing.status = record.status

    def get_all(self) -> dict[str, StatusInfo]:
        return dict(self._records)


class TagsCount:
    def __init__(self) -> None:
        self._tags: dict[str, int] = {}

    def parse_tags(self, tags: list[str] | None) -> None:
        for tag in tags or []:
            if tag:
                self._tags[tag] = self._tags.get(tag, 0) + 1

    def items(self) -> list[tuple[str, int]]:
        return list(self._tags.items())

    def __len__(self) -> int:
        return len(self._tags)


@dataclass
class PreparedResults:
    """Everything one block contributes, before it is turned into store mutations."""

    transactions: list[TransactionDocument] = field(default_factory=list)
    sc_results: list[ScResultDocument] = field(default_factory=list)
    receipts: list[ReceiptDocument] = field(default_factory=list)
    tx_hash_fee: dict[str, FeeData] = field(default_factory=dict)
    tx_hash_status: TxHashStatusInfo = field(default_factory=TxHashStatusInfo)

    logs: list[LogDocument] = field(default_factory=list)
    events: list[EventDocument] = field(default_factory=list)

    # log-derived facts
    tokens_created: TokensInfo = field(default_factory=TokensInfo)
    tokens_supply: TokensInfo = field(default_factory=TokensInfo)
    tokens_info: list[TokenInfo] = field(default_factory=list)
    token_roles_and_properties: TokenRolesAndProperties = field(default_factory=TokenRolesAndProperties)
    nft_updates: list[NFTDataUpdate] = field(default_factory=list)
    delegators: dict[str, Delegator] = field(default_factory=dict)
    sc_deploys: dict[str, ScDeployInfo] = field(default_factory=dict)
    change_owner_operations: dict[str, OwnerData] = field(default_factory=dict)

    # account-derived facts
    accounts: dict[str, AccountDocument] = field(default_factory=dict)
    accounts_dcdt: dict[str, AccountTokenDocument] = field(default_factory=dict)
    accounts_history: dict[str, AccountHistoryDocument] = field(default_factory=dict)
    accounts_dcdt_history: dict[str, AccountHistoryDocument] = field(default_factory=dict)
    tokens_from_accounts: TokensInfo = field(default_factory=TokensInfo)
    tags: TagsCount = field(default_factory=TagsCount)

    def __post_init__(self) -> None:
        self._txs_by_hash: dict[str, TransactionDocument] = {}
        self._scrs_by_hash: dict[str, ScResultDocument] = {}
        self.reindex()

    def reindex(self) -> None:
        """Rebuild the hash lookups after the transaction/SCR lists were replaced."""
        self._txs_by_hash = {tx.hash: tx for tx in self.transactions}
        self._scrs_by_hash = {scr.hash: scr for scr in self.sc_results}

    def tx(self, tx_hash: str) -> TransactionDocument | None:
        return self._txs_by_hash.get(tx_hash)

    def scr(self, scr_hash: str) -> ScResultDocument | None:
        return self._scrs_by_hash.get(scr_hash)

    def add_delegator(self, delegator: Delegator) -> None:
        self.delegators[delegator.address + delegator.contract] = delegator

    def created_token(self, token: str, nonce: int) -> TokenInfo | None:
        return self.tokens_created.get(compute_token_identifier(token, nonce))
