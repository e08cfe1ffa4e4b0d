import logging

from chainindexer.converters.balance import BalanceConversionError, BalanceConverter, is_value_too_big
from chainindexer.converters.fields import bytes_to_bool, bytes_to_int
from chainindexer.converters.pubkey import PubkeyConverter
from chainindexer.domain.enums import EventIdentifier
from chainindexer.domain.models import Delegator
from chainindexer.events.base import CLAIMED, EventArgs, EventHandler, HandlerResult
from chainindexer.exceptions import ConfigurationError

_MIN_TOPICS = 4


class DelegatorsHandler(EventHandler):
    """Delegation stake changes.

    Topics: [0] operation value, [1] active stake, [2] contract users,
    [3] total contract stake, [4] contract address (delegate) or
    "true" when the delegator left (withdraw).
    """

    HANDLER_NAME = "DelegatorsHandler"
    IDENTIFIERS = frozenset({
        EventIdentifier.DELEGATE.value,
        EventIdentifier.UNDELEGATE.value,
        EventIdentifier.WITHDRAW.value,
        EventIdentifier.REDELEGATE_REWARDS.value,
    })

    def __init__(
        self,
        pubkey_converter: PubkeyConverter,
        balance_converter: BalanceConverter,
        log: logging.Logger | None = None,
    ) -> None:
        super().__init__(pubkey_converter, log)
        if balance_converter is None:
            raise ConfigurationError(f"{self.HANDLER_NAME}: nil balance converter")
        self._balance = balance_converter

    def process(self, args: EventArgs) -> HandlerResult:
        topics = args.topics
        if len(topics) < _MIN_TOPICS:
            return CLAIMED

        active_stake = bytes_to_int(topics[1])
        if is_value_too_big(active_stake):
            self._log.warning("active stake of %s has too many digits, event dropped", args.tx_hash)
            return CLAIMED
        contract = self._encode(args.log_address)
        if args.identifier == EventIdentifier.DELEGATE and len(topics) > _MIN_TOPICS:
            contract = self._encode(topics[4])

        try:
            active_stake_num = self._balance.compute_balance_as_float(active_stake)
        except BalanceConversionError as exc:
            self._log.warning("cannot compute active stake as num for %s: %s", args.tx_hash, exc)
            active_stake_num = 0.0

        delegator = Delegator(
            address=self._encode(args.event.address),
            contract=contract,
            active_stake=str(active_stake),
            active_stake_num=active_stake_num,
            timestamp=args.timestamp,
        )
        if args.identifier == EventIdentifier.WITHDRAW and len(topics) > _MIN_TOPICS:
            delegator.should_delete = bytes_to_bool(topics[4])

        return HandlerResult(claimed=True, delegator=delegator)
