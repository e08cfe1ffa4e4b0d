"""Turn split altered accounts into balance, token balance and history documents."""

import logging
from collections.abc import Iterable

from chainindexer.accounts.splitter import AccountSplitter, PlainBalanceEntry, TokenBalanceEntry
from chainindexer.converters.balance import BalanceConversionError, BalanceConverter, parse_big_int
from chainindexer.converters.fields import account_token_id, balance_row_nonce_hex, compute_token_identifier, is_frozen
from chainindexer.converters.pubkey import PubkeyConverter
from chainindexer.converters.token_metadata import prepare_token_metadata
from chainindexer.domain.enums import TokenType
from chainindexer.domain.models import (
    AccountDocument,
    AccountHistoryDocument,
    AccountTokenDocument,
    BlockContext,
    TokenInfo,
    TokenMetaDataDocument,
)
from chainindexer.domain.models.chain import AccountTokenData, AlteredAccount
from chainindexer.exceptions import ConfigurationError
from chainindexer.prepared import PreparedResults, TagsCount, TokensInfo
from chainindexer.sharding import is_smart_contract_address

logger = logging.getLogger(__name__)


class AccountsProcessor:
    def __init__(
        self,
        pubkey_converter: PubkeyConverter,
        balance_converter: BalanceConverter,
        splitter: AccountSplitter | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        if pubkey_converter is None:
            raise ConfigurationError("AccountsProcessor: nil pubkey converter")
        if balance_converter is None:
            raise ConfigurationError("AccountsProcessor: nil balance converter")
        self._pubkey = pubkey_converter
        self._balance = balance_converter
        self._splitter = splitter or AccountSplitter()
        self._log = log or logger

    def process(
        self,
        altered_accounts: dict[str, AlteredAccount],
        context: BlockContext,
        results: PreparedResults,
    ) -> None:
        """Fill the account sections of ``results``. Runs after log classification."""
        plain, tokens = self._splitter.split(altered_accounts)

        results.accounts = self.prepare_regular_accounts(context, plain)
        results.accounts_dcdt, results.tokens_from_accounts = self.prepare_token_accounts(
            context, tokens, results.tags, results
        )
        results.accounts_history = self.prepare_history(context, results.accounts.values())
        results.accounts_dcdt_history = self.prepare_history(context, results.accounts_dcdt.values())
        self.put_token_metadata_in_tokens(results.tokens_created.get_all(), altered_accounts)

    def prepare_regular_accounts(
        self, context: BlockContext, entries: list[PlainBalanceEntry]
    ) -> dict[str, AccountDocument]:
        accounts: dict[str, AccountDocument] = {}
        for entry in entries:
            account = entry.account
            address_bytes = self._decode(account.address)
            if address_bytes is None:
                continue

            balance = self._parse_balance(account.balance, account.address)
            doc = AccountDocument(
                address=account.address,
                nonce=account.nonce,
                balance=str(balance),
                balance_num=self._as_float(balance, account.address),
                is_sender=entry.is_sender or None,
                is_smart_contract=is_smart_contract_address(address_bytes) or None,
                timestamp=context.timestamp,
                shard_id=context.shard_id,
            )
            self._add_additional_data(account, doc)
            accounts[account.address] = doc
        return accounts

    def prepare_token_accounts(
        self,
        context: BlockContext,
        entries: list[TokenBalanceEntry],
        tags: TagsCount,
        results: PreparedResults | None = None,
    ) -> tuple[dict[str, AccountTokenDocument], TokensInfo]:
        tokens_data = TokensInfo()
        accounts: dict[str, AccountTokenDocument] = {}
        for entry in entries:
            address = entry.account.address
            address_bytes = self._decode(address)
            if address_bytes is None:
                continue

            token_data = self._find_token(entry)
            balance = self._parse_balance(token_data.balance if token_data else "", address)
            properties = token_data.properties if token_data else ""
            metadata = prepare_token_metadata(token_data.meta_data) if token_data else None
            if metadata is None and results is not None:
                created = results.created_token(entry.token, entry.nonce)
                metadata = created.data if created is not None else None

            if metadata is not None and entry.is_nft_create:
                tags.parse_tags(metadata.tags)

            identifier = compute_token_identifier(entry.token, entry.nonce)
            doc = AccountTokenDocument(
                address=address,
                balance=str(balance),
                balance_num=self._as_float(balance, address, identifier),
                token=entry.token,
                identifier=identifier,
                token_nonce=entry.nonce,
                properties=properties or None,
                frozen=is_frozen(properties) or None,
                data=metadata,
                type=self._token_type(entry, results),
                is_sender=entry.is_sender or None,
                is_smart_contract=is_smart_contract_address(address_bytes) or None,
                timestamp=context.timestamp,
                shard_id=context.shard_id,
                is_nft_create=entry.is_nft_create,
            )
            accounts[account_token_id(address, entry.token, entry.nonce)] = doc

            if balance != 0:
                tokens_data.add(TokenInfo(token=entry.token, identifier=identifier, nonce=entry.nonce or None))
        return accounts, tokens_data

    def prepare_history(
        self, context: BlockContext, accounts: Iterable[AccountDocument | AccountTokenDocument]
    ) -> dict[str, AccountHistoryDocument]:
        history: dict[str, AccountHistoryDocument] = {}
        for account in accounts:
            if isinstance(account, AccountTokenDocument):
                nonce_hex = balance_row_nonce_hex(account.token_nonce)
                key = f"{account.address}-{account.token}-{nonce_hex}-{context.timestamp}"
                doc = AccountHistoryDocument(
                    address=account.address,
                    balance=account.balance,
                    token=account.token,
                    identifier=account.identifier,
                    token_nonce=account.token_nonce,
                    is_sender=account.is_sender,
                    is_smart_contract=account.is_smart_contract,
                    timestamp=context.timestamp,
                    shard_id=context.shard_id,
                )
            else:
                key = f"{account.address}-{context.timestamp}"
                doc = AccountHistoryDocument(
                    address=account.address,
                    balance=account.balance,
                    is_sender=account.is_sender,
                    is_smart_contract=account.is_smart_contract,
                    timestamp=context.timestamp,
                    shard_id=context.shard_id,
                )
            history[key] = doc
        return history

    def put_token_metadata_in_tokens(
        self, tokens: list[TokenInfo], altered_accounts: dict[str, AlteredAccount]
    ) -> None:
        """Fill missing NFT metadata from any altered account that holds the instance."""
        for token in tokens:
            if token.data is not None or not token.nonce:
                continue
            metadata = self._load_metadata(token, altered_accounts)
            if metadata is None:
                self._log.warning("cannot load token metadata for %s", token.identifier)
                continue
            token.data = metadata

    @staticmethod
    def _load_metadata(
        token: TokenInfo, altered_accounts: dict[str, AlteredAccount]
    ) -> TokenMetaDataDocument | None:
        for account in altered_accounts.values():
            for data in account.tokens:
                if data.identifier == token.token and data.nonce == token.nonce and data.meta_data is not None:
                    return prepare_token_metadata(data.meta_data)
        return None

    @staticmethod
    def _find_token(entry: TokenBalanceEntry) -> AccountTokenData | None:
        if not entry.token:
            return None
        found = None
        for data in entry.account.tokens:
            if data.identifier == entry.token and data.nonce == entry.nonce:
                found = data
        return found

    @staticmethod
    def _token_type(entry: TokenBalanceEntry, results: PreparedResults | None) -> str | None:
        if entry.nonce == 0:
            return TokenType.FUNGIBLE.value
        if results is None:
            return None
        for info in results.tokens_info:
            if info.token == entry.token and info.type:
                return info.type
        return None

    def _add_additional_data(self, account: AlteredAccount, doc: AccountDocument) -> None:
        extra = account.additional_data
        if extra is None:
            return
        doc.user_name = extra.user_name or None
        doc.current_owner = extra.current_owner or None
        if not extra.developer_rewards:
            return
        rewards = parse_big_int(extra.developer_rewards)
        if rewards is None:
            self._log.warning("cannot parse developer rewards of %s: %r", account.address, extra.developer_rewards)
            return
        doc.developer_rewards = extra.developer_rewards
        doc.developer_rewards_num = self._as_float(rewards, account.address)

    def _decode(self, address: str) -> bytes | None:
        try:
            return self._pubkey.decode(address)
        except ValueError as exc:
            self._log.warning("cannot decode address %s: %s", address, exc)
            return None

    def _parse_balance(self, raw: str, address: str) -> int:
        value = parse_big_int(raw)
        if value is None:
            if raw:
                self._log.warning("cannot parse balance %r of %s, using 0", raw, address)
            return 0
        return value

    def _as_float(self, value: int, address: str, identifier: str = "") -> float:
        try:
            return self._balance.convert_big_value_to_float(value)
        except BalanceConversionError as exc:
            self._log.warning("cannot compute balance as num for %s %s: %s", address, identifier, exc)
            return 0.0
