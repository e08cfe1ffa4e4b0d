"""Parsing of the transaction data field (``function@arg1@arg2``)."""

import logging
from dataclasses import dataclass, field

from chainindexer.converters.fields import AT_SEPARATOR, compute_token_identifier
from chainindexer.converters.pubkey import PubkeyConverter
from chainindexer.domain.enums import EventIdentifier
from chainindexer.sharding import AddressShardOracle, is_smart_contract_address

logger = logging.getLogger(__name__)

OPERATION_TRANSFER = "transfer"
_RELAYED = {"relayedTx", "relayedTxV2"}


@dataclass
class ParsedData:
    operation: str = OPERATION_TRANSFER
    function: str = ""
    tokens: list[str] = field(default_factory=list)
    dcdt_values: list[str] = field(default_factory=list)
    receivers: list[str] = field(default_factory=list)
    receivers_shard_ids: list[int] = field(default_factory=list)
    is_relayed: bool = False


def _hex_text(arg: str) -> str:
    return bytes.fromhex(arg).decode("utf-8", errors="replace")


def _hex_int(arg: str) -> int:
    return int(arg, 16) if arg else 0


class DataFieldParser:
    """Recognizes token transfer built-ins and plain contract calls."""

    def __init__(self, pubkey_converter: PubkeyConverter, log: logging.Logger | None = None) -> None:
        self._pubkey = pubkey_converter
        self._log = log or logger

    def parse(self, data: bytes, sender: bytes, receiver: bytes, num_shards: int) -> ParsedData:
        if not data:
            return ParsedData()

        parts = data.decode("utf-8", errors="replace").split(AT_SEPARATOR)
        function = parts[0]
        try:
            if function == EventIdentifier.TRANSFER:
                return self._parse_transfer(parts)
            if function == EventIdentifier.NFT_TRANSFER:
                return self._parse_nft_transfer(parts, num_shards)
            if function == EventIdentifier.MULTI_NFT_TRANSFER:
                return self._parse_multi_transfer(parts, num_shards)
        except ValueError as exc:
            self._log.warning("cannot parse data field of %s: %s", function, exc)
            return ParsedData()

        if function in _RELAYED:
            return ParsedData(is_relayed=True)
        if is_smart_contract_address(receiver) and function:
            return ParsedData(function=function)
        return ParsedData()

    @staticmethod
    def _parse_transfer(parts: list[str]) -> ParsedData:
        if len(parts) < 3:
            return ParsedData()
        return ParsedData(
            operation=EventIdentifier.TRANSFER.value,
            function=_hex_text(parts[3]) if len(parts) > 3 else "",
            tokens=[_hex_text(parts[1])],
            dcdt_values=[str(_hex_int(parts[2]))],
        )

    def _parse_nft_transfer(self, parts: list[str], num_shards: int) -> ParsedData:
        if len(parts) < 5:
            return ParsedData()
        receiver = bytes.fromhex(parts[4])
        return ParsedData(
            operation=EventIdentifier.NFT_TRANSFER.value,
            function=_hex_text(parts[5]) if len(parts) > 5 else "",
            tokens=[compute_token_identifier(_hex_text(parts[1]), _hex_int(parts[2]))],
            dcdt_values=[str(_hex_int(parts[3]))],
            receivers=[self._pubkey.silent_encode(receiver, self._log)],
            receivers_shard_ids=[AddressShardOracle(num_shards).compute_shard_id(receiver)],
        )

    def _parse_multi_transfer(self, parts: list[str], num_shards: int) -> ParsedData:
        if len(parts) < 3:
            return ParsedData()
        receiver = bytes.fromhex(parts[1])
        count = _hex_int(parts[2])
        if len(parts) < 3 + 3 * count:
            return ParsedData()

        parsed = ParsedData(operation=EventIdentifier.MULTI_NFT_TRANSFER.value)
        encoded = self._pubkey.silent_encode(receiver, self._log)
        shard_id = AddressShardOracle(num_shards).compute_shard_id(receiver)
        for i in range(count):
            token, nonce, value = parts[3 + 3 * i : 6 + 3 * i]
            parsed.tokens.append(compute_token_identifier(_hex_text(token), _hex_int(nonce)))
            parsed.dcdt_values.append(str(_hex_int(value)))
            parsed.receivers.append(encoded)
            parsed.receivers_shard_ids.append(shard_id)
        function_index = 3 + 3 * count
        if len(parts) > function_index:
            parsed.function = _hex_text(parts[function_index])
        return parsed
