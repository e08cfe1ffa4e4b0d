from chainindexer.converters.fields import bytes_to_uint64, compute_token_identifier
from chainindexer.domain.enums import EventIdentifier
from chainindexer.domain.models import NFTDataUpdate
from chainindexer.events.base import CLAIMED, PASS, EventArgs, EventHandler, HandlerResult

_MIN_TOPICS = 4


class NftPropertiesHandler(EventHandler):
    """URI additions, attribute updates, freeze and pause.

    Topics: [0] token, [1] nonce, [2] value, [3:] new attributes or URIs.
    Pause/unpause carry only the token.
    """

    HANDLER_NAME = "NftPropertiesHandler"
    IDENTIFIERS = frozenset({
        EventIdentifier.NFT_ADD_URI.value,
        EventIdentifier.NFT_UPDATE_ATTRIBUTES.value,
        EventIdentifier.FREEZE.value,
        EventIdentifier.UNFREEZE.value,
        EventIdentifier.PAUSE.value,
        EventIdentifier.UNPAUSE.value,
    })

    def process(self, args: EventArgs) -> HandlerResult:
        caller = self._encode(args.event.address)
        if not caller:
            return CLAIMED

        identifier = args.identifier
        topics = args.topics
        if len(topics) == 1:
            return HandlerResult(
                claimed=True,
                nft_update=NFTDataUpdate(
                    identifier=self._text(topics[0]),
                    address=caller,
                    pause=identifier == EventIdentifier.PAUSE,
                    unpause=identifier == EventIdentifier.UNPAUSE,
                ),
            )

        if len(topics) < _MIN_TOPICS:
            return CLAIMED

        nonce = bytes_to_uint64(topics[1])
        if nonce == 0:
            return PASS

        update = NFTDataUpdate(
            identifier=compute_token_identifier(self._text(topics[0]), nonce),
            address=caller,
        )
        if identifier == EventIdentifier.NFT_UPDATE_ATTRIBUTES:
            update.new_attributes = topics[3]
        elif identifier == EventIdentifier.NFT_ADD_URI:
            update.uris_to_add = list(topics[3:])
        elif identifier == EventIdentifier.FREEZE:
            update.freeze = True
        elif identifier == EventIdentifier.UNFREEZE:
            update.unfreeze = True

        return HandlerResult(claimed=True, nft_update=update)
