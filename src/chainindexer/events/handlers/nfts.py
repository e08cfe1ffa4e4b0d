import logging

from chainindexer.converters.digital_token import DigitalTokenMetaData, JsonTokenMarshaller, TokenMarshaller
from chainindexer.converters.fields import bytes_to_uint64, compute_token_identifier
from chainindexer.converters.pubkey import PubkeyConverter
from chainindexer.converters.token_metadata import prepare_token_metadata
from chainindexer.domain.enums import EventIdentifier
from chainindexer.domain.models import TokenInfo
from chainindexer.domain.models.chain import TokenMetaData
from chainindexer.events.base import CLAIMED, PASS, EventArgs, EventHandler, HandlerResult
from chainindexer.sharding import AddressShardOracle

_NUM_TOPICS_WITH_RECEIVER = 4
_RECEIVER_IDENTIFIERS = {
    EventIdentifier.NFT_TRANSFER.value,
    EventIdentifier.MULTI_NFT_TRANSFER.value,
    EventIdentifier.WIPE.value,
}
_SUPPLY_IDENTIFIERS = {EventIdentifier.NFT_BURN.value, EventIdentifier.WIPE.value}


class NftsHandler(EventHandler):
    """NFT/SFT lifecycle: create, burn, wipe and transfers.

    Topics: [0] token, [1] nonce, [2] value,
    [3] receiver (transfers, wipe) or marshalled token data (create).
    A zero nonce means a fungible token, which is left to other handlers.
    """

    HANDLER_NAME = "NftsHandler"
    IDENTIFIERS = frozenset({
        EventIdentifier.NFT_CREATE.value,
        EventIdentifier.NFT_BURN.value,
        EventIdentifier.WIPE.value,
        EventIdentifier.NFT_TRANSFER.value,
        EventIdentifier.MULTI_NFT_TRANSFER.value,
    })

    def __init__(
        self,
        pubkey_converter: PubkeyConverter,
        marshaller: TokenMarshaller | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        super().__init__(pubkey_converter, log)
        self._marshaller = marshaller or JsonTokenMarshaller()

    def process(self, args: EventArgs) -> HandlerResult:
        topics = args.topics
        if len(topics) < 2:
            return CLAIMED

        nonce = bytes_to_uint64(topics[1])
        if nonce == 0:
            return PASS

        oracle = AddressShardOracle(args.context.num_shards)
        token = self._text(topics[0])
        identifier = compute_token_identifier(token, nonce)

        if oracle.compute_shard_id(args.event.address) == args.context.shard_id:
            self._process_on_sender(args, token, nonce, identifier)

        if args.identifier not in _RECEIVER_IDENTIFIERS or len(topics) < _NUM_TOPICS_WITH_RECEIVER:
            return CLAIMED
        if oracle.compute_shard_id(topics[3]) != args.context.shard_id:
            return CLAIMED

        if args.identifier == EventIdentifier.WIPE:
            args.results.tokens_supply.add(
                TokenInfo(token=token, identifier=identifier, nonce=nonce, timestamp=args.timestamp)
            )
        return CLAIMED

    def _process_on_sender(self, args: EventArgs, token: str, nonce: int, identifier: str) -> None:
        if args.identifier in _SUPPLY_IDENTIFIERS:
            args.results.tokens_supply.add(
                TokenInfo(token=token, identifier=identifier, nonce=nonce, timestamp=args.timestamp)
            )

        topics = args.topics
        if args.identifier != EventIdentifier.NFT_CREATE or len(topics) < _NUM_TOPICS_WITH_RECEIVER:
            return

        try:
            digital_token = self._marshaller.unmarshal(topics[3])
        except ValueError as exc:
            self._log.warning("cannot unmarshal token data of %s in %s: %s", identifier, args.tx_hash, exc)
            return

        args.results.tokens_created.add(
            TokenInfo(
                token=token,
                identifier=identifier,
                nonce=nonce,
                timestamp=args.timestamp,
                data=prepare_token_metadata(self._convert_metadata(digital_token.token_meta_data)),
            )
        )

    def _convert_metadata(self, metadata: DigitalTokenMetaData | None) -> TokenMetaData | None:
        if metadata is None:
            return None
        return TokenMetaData(
            nonce=metadata.nonce,
            name=metadata.name.decode("utf-8", errors="replace"),
            creator=self._encode(metadata.creator),
            royalties=metadata.royalties,
            hash=metadata.hash,
            uris=metadata.uris,
            attributes=metadata.attributes,
        )
