from enum import Enum


class IndexName(str, Enum):
    """Logical document-store indexes written by the indexer."""

    TRANSACTIONS = "transactions"
    OPERATIONS = "operations"
    SC_RESULTS = "scresults"
    RECEIPTS = "receipts"
    LOGS = "logs"
    EVENTS = "events"
    ACCOUNTS = "accounts"
    ACCOUNTS_HISTORY = "accountshistory"
    ACCOUNTS_DCDT = "accountsdcdt"
    ACCOUNTS_DCDT_HISTORY = "accountsdcdthistory"
    TOKENS = "tokens"
    TAGS = "tags"
    DELEGATORS = "delegators"
    SC_DEPLOYS = "scdeploys"
