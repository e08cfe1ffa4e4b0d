"""Event handler interface and the shared claim-or-pass result."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from chainindexer.converters.fields import decode_utf8
from chainindexer.converters.pubkey import PubkeyConverter
from chainindexer.domain.models import BlockContext, Delegator, NFTDataUpdate, TokenInfo
from chainindexer.domain.models.chain import Event
from chainindexer.exceptions import ConfigurationError
from chainindexer.prepared import PreparedResults


@dataclass(frozen=True)
class HandlerResult:
    """Outcome of offering an event to a handler.

    ``claimed`` stops the handler chain for the event. Facts that are not
    keyed maps in PreparedResults ride back on the result.
    """

    claimed: bool = False
    token_info: TokenInfo | None = None
    delegator: Delegator | None = None
    nft_update: NFTDataUpdate | None = None


PASS = HandlerResult()
CLAIMED = HandlerResult(claimed=True)


@dataclass
class EventArgs:
    event: Event
    tx_hash: str  # hex hash of the tx/scr that produced the log
    log_address: bytes
    context: BlockContext
    results: PreparedResults

    @property
    def timestamp(self) -> int:
        return self.context.timestamp

    @property
    def identifier(self) -> str:
        return self.event.identifier

    @property
    def topics(self) -> list[bytes]:
        return self.event.topics


class EventHandler(ABC):
    """One link of the classification chain. Recognizes a closed set of identifiers."""

    HANDLER_NAME: str = "EventHandler"
    IDENTIFIERS: frozenset[str] = frozenset()

    def __init__(self, pubkey_converter: PubkeyConverter, log: logging.Logger | None = None) -> None:
        if pubkey_converter is None:
            raise ConfigurationError(f"{self.HANDLER_NAME}: nil pubkey converter")
        self._pubkey = pubkey_converter
        self._log = log or logging.getLogger(type(self).__module__)

    def can_handle(self, identifier: str) -> bool:
        return identifier in self.IDENTIFIERS

    def handle(self, args: EventArgs) -> HandlerResult:
        if not self.can_handle(args.identifier):
            return PASS
        return self.process(args)

    @abstractmethod
    def process(self, args: EventArgs) -> HandlerResult:
        """Extract facts from a recognized event."""

    def _encode(self, address: bytes) -> str:
        return self._pubkey.silent_encode(address, self._log)

    @staticmethod
    def _text(topic: bytes) -> str:
        return decode_utf8(topic)
