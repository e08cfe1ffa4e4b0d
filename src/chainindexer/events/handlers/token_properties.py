from chainindexer.converters.fields import bytes_to_bool, is_letters_only
from chainindexer.domain.enums import EventIdentifier, TokenRole
from chainindexer.events.base import CLAIMED, EventArgs, EventHandler, HandlerResult

_MIN_TOPICS = 4
_SETTERS = {EventIdentifier.SET_ROLE.value, EventIdentifier.SET_BURN_ROLE_FOR_ALL.value}


class TokenPropertiesHandler(EventHandler):
    """Role grants/revocations and collection property upgrades.

    Topics: [0] token, [1] nonce, [2] value, [3:] roles.
    upgradeProperties: property/value pairs from [2].
    DCDTNFTCreateRoleTransfer: [3] is "true" when the role moves to the event address.
    """

    HANDLER_NAME = "TokenPropertiesHandler"
    IDENTIFIERS = frozenset({
        EventIdentifier.SET_ROLE.value,
        EventIdentifier.UNSET_ROLE.value,
        EventIdentifier.NFT_CREATE_ROLE_TRANSFER.value,
        EventIdentifier.UPGRADE_PROPERTIES.value,
        EventIdentifier.SET_BURN_ROLE_FOR_ALL.value,
        EventIdentifier.UNSET_BURN_ROLE_FOR_ALL.value,
    })

    def process(self, args: EventArgs) -> HandlerResult:
        topics = args.topics
        if len(topics) < _MIN_TOPICS:
            return CLAIMED

        token = self._text(topics[0])
        store = args.results.token_roles_and_properties

        if args.identifier == EventIdentifier.UPGRADE_PROPERTIES:
            properties: dict[str, bool] = {}
            for i in range(2, len(topics) - 1, 2):
                properties[self._text(topics[i])] = bytes_to_bool(topics[i + 1])
            store.add_properties(token, properties)
            return CLAIMED

        address = self._encode(args.event.address)
        if args.identifier == EventIdentifier.NFT_CREATE_ROLE_TRANSFER:
            store.add_role(token, address, TokenRole.NFT_CREATE.value, bytes_to_bool(topics[3]))
            return CLAIMED

        roles = [self._text(topic) for topic in topics[3:]]
        if not all(is_letters_only(role) for role in roles):
            self._log.warning("dropping %s for %s: malformed roles %s", args.identifier, token, roles)
            return CLAIMED

        is_set = args.identifier in _SETTERS
        for role in roles:
            role_address = "" if role == TokenRole.BURN_FOR_ALL else address
            store.add_role(token, role_address, role, is_set)
        return CLAIMED
