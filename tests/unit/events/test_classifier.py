"""Tests for the ordered handler chain."""

import pytest

from chainindexer.domain.models import BlockContext, ScResultDocument, TransactionDocument
from chainindexer.domain.models.chain import Event, Log, LogData
from chainindexer.events.base import CLAIMED, PASS, EventArgs, EventHandler, HandlerResult
from chainindexer.events.classifier import HANDLER_ORDER, EventClassifier, build_default_classifier
from chainindexer.events.handlers.delegators import DelegatorsHandler
from chainindexer.events.handlers.informative import InformativeHandler
from chainindexer.events.handlers.nft_properties import NftPropertiesHandler
from chainindexer.events.handlers.nfts import NftsHandler
from chainindexer.events.handlers.sc_deploys import ScDeploysHandler
from chainindexer.events.handlers.token_issue import TokenIssueHandler
from chainindexer.events.handlers.token_properties import TokenPropertiesHandler
from chainindexer.exceptions import ConfigurationError
from chainindexer.prepared import PreparedResults
from chainindexer.sharding import METACHAIN_SHARD_ID


def _addr(last: int) -> bytes:
    return b"\x01" * 31 + bytes([last])


def _make_context(shard_id: int = 1) -> BlockContext:
    return BlockContext(round=3, timestamp=1000, shard_id=shard_id, num_shards=3)


class _RecordingHandler(EventHandler):
    HANDLER_NAME = "Recording"
    IDENTIFIERS = frozenset({"custom"})

    def __init__(self, pubkey_converter, claim: bool):
        super().__init__(pubkey_converter)
        self.claim = claim
        self.calls: list[str] = []

    def process(self, args: EventArgs) -> HandlerResult:
        self.calls.append(args.tx_hash)
        return CLAIMED if self.claim else PASS


class TestEventClassifier:
    def test_needs_handlers(self):
        with pytest.raises(ConfigurationError):
            EventClassifier([])

    def test_default_order(self, pubkey_converter, balance_converter):
        assert HANDLER_ORDER == (
            ScDeploysHandler,
            InformativeHandler,
            NftPropertiesHandler,
            TokenPropertiesHandler,
            TokenIssueHandler,
            DelegatorsHandler,
            NftsHandler,
        )
        classifier = build_default_classifier(pubkey_converter, balance_converter)
        assert [type(h) for h in classifier.handlers] == list(HANDLER_ORDER)

    def test_first_claim_wins(self, pubkey_converter):
        first = _RecordingHandler(pubkey_converter, claim=True)
        second = _RecordingHandler(pubkey_converter, claim=True)
        classifier = EventClassifier([first, second])

        claimed_by = classifier.classify_event(
            "aa", _addr(1), Event(address=_addr(1), identifier="custom"), _make_context(), PreparedResults()
        )

        assert claimed_by == "Recording"
        assert first.calls == ["aa"]
        assert second.calls == []

    def test_pass_moves_to_next_handler(self, pubkey_converter):
        first = _RecordingHandler(pubkey_converter, claim=False)
        second = _RecordingHandler(pubkey_converter, claim=True)
        classifier = EventClassifier([first, second])

        classifier.classify_event(
            "aa", _addr(1), Event(address=_addr(1), identifier="custom"), _make_context(), PreparedResults()
        )

        assert first.calls == ["aa"]
        assert second.calls == ["aa"]

    def test_unknown_identifier_is_unclaimed(self, pubkey_converter, balance_converter):
        classifier = build_default_classifier(pubkey_converter, balance_converter)
        results = PreparedResults()
        claimed_by = classifier.classify_event(
            "aa", _addr(1), Event(address=_addr(1), identifier="somethingElse"), _make_context(), results
        )
        assert claimed_by is None

    def test_fungible_nft_transfer_yields_no_facts(self, pubkey_converter, balance_converter):
        classifier = build_default_classifier(pubkey_converter, balance_converter)
        results = PreparedResults()
        event = Event(address=_addr(1), identifier="DCDTNFTTransfer", topics=[b"TKN-abcd", b"", b"\x01", _addr(1)])

        assert classifier.classify_event("aa", _addr(1), event, _make_context(), results) is None
        assert len(results.tokens_created) == 0
        assert len(results.tokens_supply) == 0
        assert results.nft_updates == []

    def test_token_issue_reaches_metachain_handler(self, pubkey_converter, balance_converter):
        classifier = build_default_classifier(pubkey_converter, balance_converter)
        results = PreparedResults()
        event = Event(
            address=_addr(1),
            identifier="issueSemiFungible",
            topics=[b"SEMI-abcd", b"Semi", b"SEMI", b"SemiFungible"],
        )

        context = _make_context(shard_id=METACHAIN_SHARD_ID)
        claimed_by = classifier.classify_event("aa", _addr(1), event, context, results)

        assert claimed_by == "TokenIssueHandler"
        assert [t.type for t in results.tokens_info] == ["SemiFungibleDCDT"]

    def test_classify_marks_logs_and_operations(self, pubkey_converter, balance_converter):
        classifier = build_default_classifier(pubkey_converter, balance_converter)
        results = PreparedResults(
            transactions=[TransactionDocument(hash="aa")],
            sc_results=[ScResultDocument(hash="bb")],
        )
        logs = [
            LogData(tx_hash="aa", log=Log(address=_addr(1), events=[Event(address=_addr(1), identifier="x")])),
            LogData(tx_hash="bb", log=Log(address=_addr(1), events=[None])),
            None,
        ]

        classifier.classify(logs, _make_context(), results)

        tx = results.tx("aa")
        assert tx.has_logs is True
        assert tx.has_operations is True
        scr = results.scr("bb")
        assert scr.has_logs is True
        assert scr.has_operations is None

    def test_delegator_facts_are_collected(self, pubkey_converter, balance_converter):
        classifier = build_default_classifier(pubkey_converter, balance_converter)
        results = PreparedResults()
        event = Event(address=_addr(1), identifier="delegate", topics=[b"\x01", b"\x05", b"\x01", b"\x05"])

        classifier.classify_event("aa", _addr(7), event, _make_context(), results)

        [delegator] = results.delegators.values()
        assert delegator.contract == _addr(7).hex()
        assert delegator.active_stake == "5"

    def test_oversized_numeric_topic_does_not_abort_block(self, pubkey_converter, balance_converter):
        classifier = build_default_classifier(pubkey_converter, balance_converter)
        results = PreparedResults(transactions=[TransactionDocument(hash="aa")])
        oversized = Event(address=_addr(1), identifier="delegate", topics=[b"\x01", b"\xff" * 2000, b"\x01", b"\x05"])
        burn = Event(address=_addr(1), identifier="DCDTNFTBurn", topics=[b"NFT-abcd", b"\x0a", b"\x01"])
        logs = [LogData(tx_hash="aa", log=Log(address=_addr(1), events=[oversized, burn]))]

        classifier.classify(logs, _make_context(), results)

        assert results.delegators == {}
        assert "NFT-abcd-0a" in results.tokens_supply
