"""EventClassifier: ordered first-claim-wins dispatch of log events to handlers."""

import logging

from chainindexer.converters.balance import BalanceConverter
from chainindexer.converters.digital_token import TokenMarshaller
from chainindexer.converters.pubkey import PubkeyConverter
from chainindexer.domain.models import BlockContext
from chainindexer.domain.models.chain import Event, LogData
from chainindexer.events.base import EventArgs, EventHandler, HandlerResult
from chainindexer.events.handlers.delegators import DelegatorsHandler
from chainindexer.events.handlers.informative import InformativeHandler
from chainindexer.events.handlers.nft_properties import NftPropertiesHandler
from chainindexer.events.handlers.nfts import NftsHandler
from chainindexer.events.handlers.sc_deploys import ScDeploysHandler
from chainindexer.events.handlers.token_issue import TokenIssueHandler
from chainindexer.events.handlers.token_properties import TokenPropertiesHandler
from chainindexer.exceptions import ConfigurationError
from chainindexer.prepared import PreparedResults

logger = logging.getLogger(__name__)

# Precedence: deploys, informative catch-alls, then increasingly specific token handlers.
HANDLER_ORDER: tuple[type[EventHandler], ...] = (
    ScDeploysHandler,
    InformativeHandler,
    NftPropertiesHandler,
    TokenPropertiesHandler,
    TokenIssueHandler,
    DelegatorsHandler,
    NftsHandler,
)


class EventClassifier:
    """Walks each event through the handler chain until one claims it."""

    def __init__(self, handlers: list[EventHandler], log: logging.Logger | None = None) -> None:
        if not handlers:
            raise ConfigurationError("EventClassifier needs at least one handler")
        self._handlers = list(handlers)
        self._log = log or logger

    @property
    def handlers(self) -> list[EventHandler]:
        return list(self._handlers)

    def classify(self, logs: list[LogData | None], context: BlockContext, results: PreparedResults) -> None:
        claimed = 0
        for log_data in logs:
            if log_data is None:
                continue
            for event in log_data.log.events:
                if event is None:
                    continue
                if self.classify_event(log_data.tx_hash, log_data.log.address, event, context, results):
                    claimed += 1

            tx = results.tx(log_data.tx_hash)
            if tx is not None:
                tx.has_logs = True
                continue
            scr = results.scr(log_data.tx_hash)
            if scr is not None:
                scr.has_logs = True

        self._log.debug(
            "classified logs: shard=%d round=%d claimed_events=%d", context.shard_id, context.round, claimed
        )

    def classify_event(
        self,
        tx_hash: str,
        log_address: bytes,
        event: Event,
        context: BlockContext,
        results: PreparedResults,
    ) -> str | None:
        """Offer one event to the chain. Returns the name of the claiming handler, if any."""
        self._mark_has_operations(tx_hash, results)

        args = EventArgs(event=event, tx_hash=tx_hash, log_address=log_address, context=context, results=results)
        for handler in self._handlers:
            result = handler.handle(args)
            self._collect(result, results)
            if result.claimed:
                return handler.HANDLER_NAME
        return None

    @staticmethod
    def _mark_has_operations(tx_hash: str, results: PreparedResults) -> None:
        tx = results.tx(tx_hash)
        if tx is not None:
            tx.has_operations = True
            return
        scr = results.scr(tx_hash)
        if scr is not None:
            scr.has_operations = True

    @staticmethod
    def _collect(result: HandlerResult, results: PreparedResults) -> None:
        if result.token_info is not None:
            results.tokens_info.append(result.token_info)
        if result.delegator is not None:
            results.add_delegator(result.delegator)
        if result.nft_update is not None:
            results.nft_updates.append(result.nft_update)


def build_default_classifier(
    pubkey_converter: PubkeyConverter,
    balance_converter: BalanceConverter,
    marshaller: TokenMarshaller | None = None,
) -> EventClassifier:
    """Create an EventClassifier with every handler, in HANDLER_ORDER."""
    handlers: list[EventHandler] = []
    for handler_cls in HANDLER_ORDER:
        if handler_cls is DelegatorsHandler:
            handlers.append(DelegatorsHandler(pubkey_converter, balance_converter))
        elif handler_cls is NftsHandler:
            handlers.append(NftsHandler(pubkey_converter, marshaller))
        else:
            handlers.append(handler_cls(pubkey_converter))
    return EventClassifier(handlers)
