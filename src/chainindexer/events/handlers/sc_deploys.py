from chainindexer.domain.enums import EventIdentifier
from chainindexer.domain.models import OwnerData, ScDeployInfo
from chainindexer.events.base import CLAIMED, EventArgs, EventHandler, HandlerResult


class ScDeploysHandler(EventHandler):
    """Contract deploys, upgrades and owner changes.

    Deploy/upgrade topics: [0] contract address, [1] deployer, [2] code hash (optional).
    ChangeOwnerAddress: the event address is the contract, [0] is the new owner.
    """

    HANDLER_NAME = "ScDeploysHandler"
    IDENTIFIERS = frozenset({
        EventIdentifier.SC_DEPLOY.value,
        EventIdentifier.SC_UPGRADE.value,
        EventIdentifier.CHANGE_OWNER.value,
    })

    def process(self, args: EventArgs) -> HandlerResult:
        topics = args.topics
        if args.identifier == EventIdentifier.CHANGE_OWNER:
            if not topics:
                return CLAIMED
            contract = self._encode(args.event.address)
            args.results.change_owner_operations[contract] = OwnerData(
                address=self._encode(topics[0]),
                timestamp=args.timestamp,
            )
            return CLAIMED

        if len(topics) < 2:
            return CLAIMED

        contract = self._encode(topics[0])
        args.results.sc_deploys[contract] = ScDeployInfo(
            tx_hash=args.tx_hash,
            creator=self._encode(topics[1]),
            timestamp=args.timestamp,
            code_hash=topics[2].hex() if len(topics) > 2 and topics[2] else None,
        )
        return CLAIMED
