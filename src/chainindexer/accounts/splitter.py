"""AccountSplitter: which altered accounts become plain and token balance rows."""

import logging
from dataclasses import dataclass

from chainindexer.domain.models.chain import AlteredAccount

logger = logging.getLogger(__name__)


@dataclass
class PlainBalanceEntry:
    account: AlteredAccount
    is_sender: bool


@dataclass
class TokenBalanceEntry:
    account: AlteredAccount
    token: str
    nonce: int
    is_sender: bool
    is_nft_create: bool = False


def has_zero_balance(balance: str) -> bool:
    return balance in ("", "0")


def is_pass_through_receiver(account: AlteredAccount) -> bool:
    """A nonzero balance that did not change, on an account that did not send.

    Such accounts usually only appear because a token operation passed through
    them. Their plain balance is not re-indexed. This can skip a first-time
    receipt in rare timing windows; it is kept on purpose and isolated here.
    """
    extra = account.additional_data
    if extra is None:
        logger.debug("nil additional data for altered account %s", account.address)
        is_sender, balance_changed = False, False
    else:
        is_sender, balance_changed = extra.is_sender, extra.balance_changed
    return not balance_changed and not has_zero_balance(account.balance) and not is_sender


class AccountSplitter:
    def split(
        self, altered_accounts: dict[str, AlteredAccount]
    ) -> tuple[list[PlainBalanceEntry], list[TokenBalanceEntry]]:
        plain: list[PlainBalanceEntry] = []
        tokens: list[TokenBalanceEntry] = []
        for account in altered_accounts.values():
            account_plain, account_tokens = self.split_account(account)
            plain.extend(account_plain)
            tokens.extend(account_tokens)
        return plain, tokens

    def split_account(self, account: AlteredAccount) -> tuple[list[PlainBalanceEntry], list[TokenBalanceEntry]]:
        is_sender = account.additional_data.is_sender if account.additional_data else False

        plain = [] if is_pass_through_receiver(account) else [PlainBalanceEntry(account=account, is_sender=is_sender)]
        tokens = [
            TokenBalanceEntry(
                account=account,
                token=token.identifier,
                nonce=token.nonce,
                is_sender=is_sender,
                is_nft_create=bool(token.additional_data and token.additional_data.is_nft_create),
            )
            for token in account.tokens
        ]
        return plain, tokens
