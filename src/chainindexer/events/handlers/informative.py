from chainindexer.domain.enums import EventIdentifier, TxStatus
from chainindexer.domain.models import StatusInfo
from chainindexer.events.base import CLAIMED, EventArgs, EventHandler, HandlerResult

_ERROR_EVENTS = {EventIdentifier.SIGNAL_ERROR.value, EventIdentifier.INTERNAL_VM_ERRORS.value}
_COMPLETED_EVENTS = {EventIdentifier.WRITE_LOG.value, EventIdentifier.COMPLETED_TX.value}


class InformativeHandler(EventHandler):
    """Execution outcome events. They only mark transaction status."""

    HANDLER_NAME = "InformativeHandler"
    IDENTIFIERS = frozenset(_ERROR_EVENTS | _COMPLETED_EVENTS)

    def process(self, args: EventArgs) -> HandlerResult:
        identifier = args.identifier
        tx = args.results.tx(args.tx_hash)
        if tx is not None:
            if identifier in _ERROR_EVENTS:
                tx.error_event = True
                tx.status = TxStatus.FAIL.value
            else:
                tx.completed_event = True
            return CLAIMED

        # Log of a smart contract result: the outcome belongs to the originating tx,
        # whose document may have been written by an earlier block.
        scr = args.results.scr(args.tx_hash)
        if scr is None or not scr.original_tx_hash:
            return CLAIMED

        record = StatusInfo()
        if identifier == EventIdentifier.COMPLETED_TX:
            record.completed_event = True
        elif identifier in _ERROR_EVENTS:
            record.status = TxStatus.FAIL.value
            record.error_event = True
        else:
            return CLAIMED

        original = args.results.tx(scr.original_tx_hash)
        if original is not None:
            if record.completed_event:
                original.completed_event = True
            if record.error_event:
                original.error_event = True
                original.status = record.status
            return CLAIMED

        args.results.tx_hash_status.add_record(scr.original_tx_hash, record)
        return CLAIMED
