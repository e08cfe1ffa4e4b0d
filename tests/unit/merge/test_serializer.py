"""Tests for turning prepared results into bulk mutations."""

import base64
import json

import pytest

from chainindexer.domain.models import (
    AccountDocument,
    AccountHistoryDocument,
    AccountTokenDocument,
    BlockContext,
    Delegator,
    FeeData,
    LogDocument,
    NFTDataUpdate,
    OwnerData,
    ScDeployInfo,
    ScResultDocument,
    StatusInfo,
    TokenInfo,
    TransactionDocument,
)
from chainindexer.exceptions import ConfigurationError
from chainindexer.merge.logs import delegator_id
from chainindexer.merge.serializer import MergeProtocolSerializer
from chainindexer.merge.tokens import tag_id
from chainindexer.prepared import PreparedResults


def _make_context(shard_id: int = 1) -> BlockContext:
    return BlockContext(round=2, timestamp=900, shard_id=shard_id, num_shards=3)


def _actions(buffer) -> list[tuple[str, str, str, dict | None]]:
    """(op, index, id, document) for every action of every body."""
    parsed = []
    for body in buffer.bodies():
        lines = [json.loads(line) for line in body.splitlines()]
        i = 0
        while i < len(lines):
            [(op, meta)] = lines[i].items()
            document = None
            if op != "delete":
                i += 1
                document = lines[i]
            parsed.append((op, meta["_index"], meta["_id"], document))
            i += 1
    return parsed


@pytest.fixture()
def serializer(hasher):
    return MergeProtocolSerializer(hasher)


class TestTransactions:
    def test_needs_hasher(self):
        with pytest.raises(ConfigurationError):
            MergeProtocolSerializer(None)

    def test_final_transaction_is_indexed(self, serializer):
        tx = TransactionDocument(hash="aa", sender_shard=1, receiver_shard=1, status="success", timestamp=900)
        results = PreparedResults(transactions=[tx])
        actions = _actions(serializer.serialize(results, _make_context()))

        op, index, doc_id, doc = actions[0]
        assert (op, index, doc_id) == ("index", "transactions", "aa")
        assert doc["status"] == "success"
        assert "hash" not in doc

    def test_cross_shard_on_source_never_overwrites(self, serializer):
        tx = TransactionDocument(hash="aa", sender_shard=1, receiver_shard=2, status="pending")
        actions = _actions(serializer.serialize(PreparedResults(transactions=[tx]), _make_context()))

        op, _, _, body = actions[0]
        assert op == "update"
        assert body["script"] == {"source": "return"}
        assert body["upsert"]["status"] == "pending"
        assert "scripted_upsert" not in body

    def test_cross_shard_on_destination_is_indexed(self, serializer):
        tx = TransactionDocument(hash="aa", sender_shard=0, receiver_shard=1)
        actions = _actions(serializer.serialize(PreparedResults(transactions=[tx]), _make_context()))
        assert actions[0][0] == "index"

    def test_intra_shard_nft_transfer_keeps_outcome(self, serializer):
        tx = TransactionDocument(
            hash="aa", sender_shard=1, receiver_shard=1, data=b"DCDTNFTTransfer@4e4654@01@01@aabb"
        )
        actions = _actions(serializer.serialize(PreparedResults(transactions=[tx]), _make_context()))

        op, _, _, body = actions[0]
        assert op == "update"
        assert body["scripted_upsert"] is True
        assert "def status = ctx._source.status" in body["script"]["source"]
        assert body["script"]["params"]["tx"]["data"] == base64.b64encode(tx.data).decode()
        assert body["upsert"] == {}

    def test_status_record_for_tx_of_earlier_block(self, serializer):
        results = PreparedResults()
        results.tx_hash_status.add_record("orig", StatusInfo(status="fail", error_event=True))
        actions = _actions(serializer.serialize(results, _make_context()))

        [(op, index, doc_id, body)] = [a for a in actions if a[1] == "transactions"]
        assert (op, doc_id) == ("update", "orig")
        assert body["script"]["params"]["statusInfo"] == {"status": "fail", "errorEvent": True, "completedEvent": False}
        assert body["upsert"]["status"] == "fail"
        assert body["upsert"]["errorEvent"] is True
        assert "completedEvent" not in body["upsert"]

    def test_fee_update_never_creates(self, serializer):
        results = PreparedResults(tx_hash_fee={"orig": FeeData(fee="400", fee_num=0.4, gas_used=40)})
        actions = _actions(serializer.serialize(results, _make_context()))

        [(_, _, doc_id, body)] = [a for a in actions if a[1] == "transactions"]
        assert doc_id == "orig"
        assert body["scripted_upsert"] is True
        assert body["script"]["source"].startswith("if ('create' == ctx.op) {ctx.op = 'noop'}")
        assert body["script"]["params"] == {"fee": "400", "feeNum": 0.4, "gasUsed": 40}

    def test_operations(self, serializer):
        results = PreparedResults(
            transactions=[
                TransactionDocument(hash="aa", sender_shard=1, receiver_shard=1),
                TransactionDocument(hash="rw", sender_shard=1, receiver_shard=1, operation="reward"),
            ],
            sc_results=[ScResultDocument(hash="bb")],
        )
        actions = _actions(serializer.serialize(results, _make_context()))

        types = {doc_id: doc["type"] for _, index, doc_id, doc in actions if index == "operations"}
        assert types == {"aa": "normal", "rw": "reward", "bb": "unsigned"}
        assert ("index", "scresults", "bb") in [a[:3] for a in actions]


class TestLogsAndDeploys:
    def test_log_overwrites_by_timestamp(self, serializer):
        results = PreparedResults(logs=[LogDocument(id="aa", address="cc", timestamp=900)])
        [(op, index, doc_id, body)] = _actions(serializer.serialize(results, _make_context()))

        assert (op, index, doc_id) == ("update", "logs", "aa")
        assert body["scripted_upsert"] is True
        assert body["script"]["params"]["log"] == {"address": "cc", "events": [], "timestamp": 900}

    def test_sc_deploy(self, serializer):
        results = PreparedResults(
            sc_deploys={"contract": ScDeployInfo(tx_hash="d1", creator="me", timestamp=900, code_hash="cafe")}
        )
        [(_, index, doc_id, body)] = _actions(serializer.serialize(results, _make_context()))

        assert (index, doc_id) == ("scdeploys", "contract")
        assert body["script"]["params"]["elem"] == {
            "upgradeTxHash": "d1",
            "upgrader": "me",
            "timestamp": 900,
            "codeHash": "cafe",
        }
        assert body["upsert"] == {
            "deployTxHash": "d1",
            "deployer": "me",
            "currentOwner": "",
            "initialCodeHash": "cafe",
            "timestamp": 900,
            "upgrades": [],
            "owners": [],
        }

    def test_change_owner(self, serializer):
        results = PreparedResults(change_owner_operations={"contract": OwnerData(address="new", timestamp=900)})
        [(_, _, _, body)] = _actions(serializer.serialize(results, _make_context()))

        assert body["scripted_upsert"] is True
        assert body["script"]["source"].endswith("ctx._source.currentOwner = params.owner;")
        assert body["script"]["params"] == {"elem": {"address": "new", "timestamp": 900}, "owner": "new"}

    def test_delegators(self, serializer, hasher):
        staying = Delegator(address="d1", contract="c", active_stake="5", active_stake_num=0.5, timestamp=900)
        leaving = Delegator(address="d2", contract="c", should_delete=True)
        results = PreparedResults()
        results.add_delegator(staying)
        results.add_delegator(leaving)

        actions = _actions(serializer.serialize(results, _make_context()))

        assert actions[0][:3] == ("update", "delegators", delegator_id(hasher, staying))
        assert actions[0][3]["script"]["params"]["delegator"] == {
            "address": "d1",
            "contract": "c",
            "timestamp": 900,
            "activeStake": "5",
            "activeStakeNum": 0.5,
        }
        assert actions[1] == ("delete", "delegators", delegator_id(hasher, leaving), None)


class TestTokens:
    def test_issue_preserves_roles(self, serializer):
        info = TokenInfo(token="SEMI-abcd", type="SemiFungibleDCDT", timestamp=900)
        buffer = serializer.serialize(PreparedResults(tokens_info=[info]), _make_context())
        [(_, index, doc_id, body)] = _actions(buffer)

        assert (index, doc_id) == ("tokens", "SEMI-abcd")
        assert body["scripted_upsert"] is True
        assert "def roles = ctx._source.roles" in body["script"]["source"]
        assert body["script"]["params"]["token"]["type"] == "SemiFungibleDCDT"

    def test_ownership_transfer_appends_history(self, serializer):
        info = TokenInfo(
            token="TKN-abcd",
            current_owner="new",
            timestamp=900,
            owners_history=[OwnerData(address="new", timestamp=900)],
            transfer_ownership=True,
        )
        [(_, _, _, body)] = _actions(serializer.serialize(PreparedResults(tokens_info=[info]), _make_context()))

        assert body["script"]["params"] == {"elem": {"address": "new", "timestamp": 900}, "owner": "new"}
        assert body["upsert"]["currentOwner"] == "new"
        assert "transferOwnership" not in body["upsert"]

    def test_created_nft_is_keyed_by_identifier(self, serializer):
        results = PreparedResults()
        results.tokens_created.add(TokenInfo(token="SEMI-abcd", identifier="SEMI-abcd-02", nonce=2, timestamp=900))
        [(_, index, doc_id, _)] = _actions(serializer.serialize(results, _make_context()))
        assert (index, doc_id) == ("tokens", "SEMI-abcd-02")

    def test_roles(self, serializer):
        results = PreparedResults()
        results.token_roles_and_properties.add_role("NFT-abcd", "aa", "DCDTRoleNFTCreate", True)
        results.token_roles_and_properties.add_role("NFT-abcd", "bb", "DCDTRoleNFTBurn", False)
        set_role, unset_role = _actions(serializer.serialize(results, _make_context()))

        assert set_role[3]["upsert"] == {"token": "NFT-abcd", "roles": {"DCDTRoleNFTCreate": ["aa"]}}
        assert unset_role[3]["upsert"] == {"token": "NFT-abcd"}
        assert "removeIf" in unset_role[3]["script"]["source"]

    def test_properties(self, serializer):
        results = PreparedResults()
        results.token_roles_and_properties.add_properties("TKN-abcd", {"canMint": True})
        [(_, _, doc_id, body)] = _actions(serializer.serialize(results, _make_context()))

        assert doc_id == "TKN-abcd"
        assert body["upsert"] == {"token": "TKN-abcd", "properties": {"canMint": True}}
        assert body["script"]["params"] == {"properties": {"canMint": True}}

    def test_nft_attribute_update_hits_token_and_balance_row(self, serializer):
        update = NFTDataUpdate(identifier="NFT-abcd-02", address="aa", new_attributes=b"tags:x,y;metadata:Qm")
        actions = _actions(serializer.serialize(PreparedResults(nft_updates=[update]), _make_context()))

        assert [a[1:3] for a in actions] == [("tokens", "NFT-abcd-02"), ("accountsdcdt", "aa-NFT-abcd-02")]
        params = actions[0][3]["script"]["params"]
        assert params == {
            "attributes": base64.b64encode(b"tags:x,y;metadata:Qm").decode(),
            "metadata": "Qm",
            "tags": ["x", "y"],
        }

    def test_nft_uris_update(self, serializer):
        update = NFTDataUpdate(identifier="NFT-abcd-02", address="aa", uris_to_add=[b"u1"])
        actions = _actions(serializer.serialize(PreparedResults(nft_updates=[update]), _make_context()))
        assert actions[0][3]["script"]["params"] == {"uris": ["dTE="]}

    def test_freeze_only_on_token_document(self, serializer):
        update = NFTDataUpdate(identifier="NFT-abcd-02", address="aa", freeze=True)
        [(_, index, _, body)] = _actions(serializer.serialize(PreparedResults(nft_updates=[update]), _make_context()))

        assert index == "tokens"
        assert body["script"]["params"] == {"frozen": True}

    def test_tags(self, serializer):
        results = PreparedResults()
        results.tags.parse_tags(["art", "art"])
        [(_, index, doc_id, body)] = _actions(serializer.serialize(results, _make_context()))

        assert (index, doc_id) == ("tags", tag_id("art"))
        assert body["upsert"] == {"tag": "art", "count": 2}
        assert body["script"]["params"] == {"count": 2}


class TestAccounts:
    def test_accounts_and_history(self, serializer):
        results = PreparedResults(
            accounts={"aa": AccountDocument(address="aa", balance="5", timestamp=900, shard_id=1)},
            accounts_history={"aa-900": AccountHistoryDocument(address="aa", balance="5", timestamp=900)},
        )
        account, history = _actions(serializer.serialize(results, _make_context()))

        assert account[:3] == ("update", "accounts", "aa")
        assert account[3]["script"]["params"]["account"]["shardID"] == 1
        assert history[:3] == ("index", "accountshistory", "aa-900")

    def test_zero_token_balance_deletes_row_unless_newer(self, serializer):
        results = PreparedResults(
            accounts_dcdt={
                "aa-TKN-abcd-00": AccountTokenDocument(address="aa", balance="0", token="TKN-abcd", timestamp=900),
                "aa-SEMI-abcd-02": AccountTokenDocument(address="aa", balance="3", token="SEMI-abcd", token_nonce=2),
            }
        )
        deleted, kept = _actions(serializer.serialize(results, _make_context()))

        assert deleted[:3] == ("update", "accountsdcdt", "aa-TKN-abcd-00")
        assert deleted[3]["scripted_upsert"] is True
        assert deleted[3]["upsert"] == {}
        assert deleted[3]["script"]["source"].endswith("{ctx.op = 'noop'} else {ctx.op = 'delete'}}")
        assert deleted[3]["script"]["params"] == {"timestamp": 900}
        assert kept[:3] == ("update", "accountsdcdt", "aa-SEMI-abcd-02")


class TestEnabledIndexes:
    def test_disabled_indexes_are_skipped(self, hasher):
        serializer = MergeProtocolSerializer(hasher, enabled_indexes=["accounts"])
        results = PreparedResults(
            transactions=[TransactionDocument(hash="aa")],
            accounts={"aa": AccountDocument(address="aa")},
        )
        actions = _actions(serializer.serialize(results, _make_context()))
        assert [a[1] for a in actions] == ["accounts"]

    def test_order_transactions_first_accounts_last(self, serializer):
        results = PreparedResults(
            transactions=[TransactionDocument(hash="aa", sender_shard=1, receiver_shard=1)],
            accounts={"aa": AccountDocument(address="aa")},
            logs=[LogDocument(id="aa")],
        )
        results.tags.parse_tags(["t"])
        indexes = [a[1] for a in _actions(serializer.serialize(results, _make_context()))]
        assert indexes == ["transactions", "operations", "logs", "tags", "accounts"]
