from chainindexer.converters.fields import bytes_to_uint64
from chainindexer.domain.enums import EventIdentifier, TokenType
from chainindexer.domain.models import OwnerData, TokenInfo
from chainindexer.events.base import CLAIMED, PASS, EventArgs, EventHandler, HandlerResult
from chainindexer.sharding import METACHAIN_SHARD_ID

_MIN_TOPICS = 4


class TokenIssueHandler(EventHandler):
    """Token issuance and ownership transfer. Only the metachain owns global token metadata.

    Topics: [0] token, [1] name, [2] ticker, [3] type,
    [4] new owner (transferOwnership) or number of decimals.
    """

    HANDLER_NAME = "TokenIssueHandler"
    IDENTIFIERS = frozenset({
        EventIdentifier.ISSUE_FUNGIBLE.value,
        EventIdentifier.ISSUE_SEMI_FUNGIBLE.value,
        EventIdentifier.ISSUE_NON_FUNGIBLE.value,
        EventIdentifier.REGISTER_META.value,
        EventIdentifier.CHANGE_SFT_TO_META.value,
        EventIdentifier.TRANSFER_OWNERSHIP.value,
        EventIdentifier.REGISTER_AND_SET_ALL_ROLES.value,
    })

    def process(self, args: EventArgs) -> HandlerResult:
        if args.context.shard_id != METACHAIN_SHARD_ID:
            return PASS

        topics = args.topics
        if len(topics) < _MIN_TOPICS:
            return CLAIMED

        issuer = self._encode(args.event.address)
        info = TokenInfo(
            token=self._text(topics[0]),
            name=self._text(topics[1]),
            ticker=self._text(topics[2]),
            type=TokenType.normalize(self._text(topics[3])),
            timestamp=args.timestamp,
            issuer=issuer,
            current_owner=issuer,
            owners_history=[OwnerData(address=issuer, timestamp=args.timestamp)],
        )

        if args.identifier == EventIdentifier.TRANSFER_OWNERSHIP:
            if len(topics) > _MIN_TOPICS:
                new_owner = self._encode(topics[4])
                info.current_owner = new_owner
                info.owners_history = [OwnerData(address=new_owner, timestamp=args.timestamp)]
            info.transfer_ownership = True
        elif len(topics) > _MIN_TOPICS:
            info.num_decimals = bytes_to_uint64(topics[4])

        return HandlerResult(claimed=True, token_info=info)
