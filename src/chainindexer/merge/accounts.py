"""Bulk mutations for balance rows and balance history."""

from chainindexer.domain.models import AccountDocument, AccountHistoryDocument, AccountTokenDocument
from chainindexer.merge import scripts
from chainindexer.merge.bulk import BulkBuffer


def serialize_accounts(buffer: BulkBuffer, accounts: dict[str, AccountDocument], index: str) -> None:
    for address, account in accounts.items():
        script = scripts.overwrite_by_timestamp("account", account.to_source())
        buffer.update(index, address, script, scripted_upsert=True)


def serialize_token_accounts(buffer: BulkBuffer, accounts: dict[str, AccountTokenDocument], index: str) -> None:
    """Emptied rows are deleted unless a newer block rewrote them; other rows follow the newest timestamp."""
    for doc_id, account in accounts.items():
        if account.balance in ("", "0"):
            buffer.update(index, doc_id, scripts.delete_unless_newer(account.timestamp), scripted_upsert=True)
            continue
        script = scripts.overwrite_by_timestamp("account", account.to_source())
        buffer.update(index, doc_id, script, scripted_upsert=True)


def serialize_history(buffer: BulkBuffer, history: dict[str, AccountHistoryDocument], index: str) -> None:
    for doc_id, row in history.items():
        buffer.index(index, doc_id, row.to_source())
