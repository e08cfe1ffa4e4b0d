"""Address to shard mapping."""

import math

METACHAIN_SHARD_ID = 4294967295

_NUM_INITIAL_SHARD_ZEROS = 8
_SYSTEM_SC_ZEROS = slice(10, 15)


def is_smart_contract_address(address: bytes) -> bool:
    return len(address) > _NUM_INITIAL_SHARD_ZEROS + 2 and not any(address[:_NUM_INITIAL_SHARD_ZEROS])


def is_metachain_system_contract(address: bytes) -> bool:
    if not is_smart_contract_address(address):
        return False
    return not any(address[_SYSTEM_SC_ZEROS]) and address[-2:] == b"\xff\xff"


class AddressShardOracle:
    """Deterministic address -> shard id mapping for a fixed shard count."""

    def __init__(self, num_shards: int) -> None:
        self._num_shards = num_shards
        self._bits = math.ceil(math.log2(num_shards)) if num_shards > 1 else 0
        self._mask_high = (1 << self._bits) - 1
        self._mask_low = (1 << max(self._bits - 1, 0)) - 1

    @property
    def num_shards(self) -> int:
        return self._num_shards

    def compute_shard_id(self, address: bytes) -> int:
        if self._num_shards == 0 or not address:
            return 0
        if is_metachain_system_contract(address):
            return METACHAIN_SHARD_ID

        bytes_needed = self._bits // 8 + 1
        tail = address[-bytes_needed:]
        value = int.from_bytes(tail, "big")

        shard = value & self._mask_high
        if shard > self._num_shards - 1:
            shard = value & self._mask_low
        return shard

    def same_shard(self, first: bytes, second: bytes) -> bool:
        return self.compute_shard_id(first) == self.compute_shard_id(second)
