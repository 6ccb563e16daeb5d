# services/helpers.py
from typing import Any, Callable, Optional

from multicall_aggregate.ports import CallSpec
from multicall_aggregate.adapters.multicall import MULTICALL_INTERFACE


def _signature(name: str) -> str:
    fn = MULTICALL_INTERFACE.find_function(name)
    return f"{fn.signature}({','.join(fn.output_types)})"


def _spec(name: str, key: str, *args: Any, transform: Optional[Callable] = None) -> CallSpec:
    # no target: the call goes to the Multicall contract itself
    ret = [key, transform] if transform is not None else [key]
    return CallSpec(call=[_signature(name), *args], returns=[ret])


def eth_balance(address: str, key: str, transform: Optional[Callable] = None) -> CallSpec:
    return _spec("getEthBalance", key, address, transform=transform)


def block_hash(block_number: int, key: str, transform: Optional[Callable] = None) -> CallSpec:
    return _spec("getBlockHash", key, block_number, transform=transform)


def last_block_hash(key: str, transform: Optional[Callable] = None) -> CallSpec:
    return _spec("getLastBlockHash", key, transform=transform)


def current_block_timestamp(key: str, transform: Optional[Callable] = None) -> CallSpec:
    return _spec("getCurrentBlockTimestamp", key, transform=transform)


def current_block_difficulty(key: str, transform: Optional[Callable] = None) -> CallSpec:
    return _spec("getCurrentBlockDifficulty", key, transform=transform)


def current_block_gas_limit(key: str, transform: Optional[Callable] = None) -> CallSpec:
    return _spec("getCurrentBlockGasLimit", key, transform=transform)


def current_block_coinbase(key: str, transform: Optional[Callable] = None) -> CallSpec:
    return _spec("getCurrentBlockCoinbase", key, transform=transform)
