"""Bulk mutations for logs, events, contract deploys and delegators."""

import base64

from chainindexer.converters.hashing import Hasher
from chainindexer.domain.models import Delegator, EventDocument, LogDocument, OwnerData, ScDeployInfo
from chainindexer.merge import scripts
from chainindexer.merge.bulk import BulkBuffer


def serialize_logs(buffer: BulkBuffer, logs: list[LogDocument], index: str) -> None:
    for log in logs:
        source = log.to_source()
        buffer.update(index, log.id, scripts.overwrite_by_timestamp("log", source), scripted_upsert=True)


def serialize_events(buffer: BulkBuffer, events: list[EventDocument], index: str) -> None:
    for event in events:
        source = event.to_source()
        buffer.update(index, event.id, scripts.overwrite_by_timestamp("event", source), scripted_upsert=True)


def serialize_sc_deploys(buffer: BulkBuffer, deploys: dict[str, ScDeployInfo], index: str) -> None:
    for address, deploy in deploys.items():
        upgrade = {
            "upgradeTxHash": deploy.tx_hash,
            "upgrader": deploy.creator,
            "timestamp": deploy.timestamp,
            "codeHash": deploy.code_hash,
        }
        upsert = {
            "deployTxHash": deploy.tx_hash,
            "deployer": deploy.creator,
            "currentOwner": "",
            "initialCodeHash": deploy.code_hash,
            "timestamp": deploy.timestamp,
            "upgrades": [],
            "owners": [],
        }
        buffer.update(index, address, scripts.append_to_list("upgrades", upgrade), upsert=upsert)


def serialize_change_owners(buffer: BulkBuffer, changes: dict[str, OwnerData], index: str) -> None:
    for contract, owner in changes.items():
        script = scripts.append_to_list(
            "owners",
            owner.to_source(),
            then="ctx._source.currentOwner = params.owner;",
            owner=owner.address,
        )
        buffer.update(index, contract, script, scripted_upsert=True)


def delegator_id(hasher: Hasher, delegator: Delegator) -> str:
    digest = hasher.compute(delegator.address + delegator.contract)
    return base64.b64encode(digest).decode()


def serialize_delegators(buffer: BulkBuffer, delegators: dict[str, Delegator], hasher: Hasher, index: str) -> None:
    for delegator in delegators.values():
        doc_id = delegator_id(hasher, delegator)
        if delegator.should_delete:
            buffer.delete(index, doc_id)
            continue
        script = scripts.seed_or_update_fields(
            "delegator", delegator.to_source(), ("activeStake", "activeStakeNum", "timestamp")
        )
        buffer.update(index, doc_id, script, scripted_upsert=True)
