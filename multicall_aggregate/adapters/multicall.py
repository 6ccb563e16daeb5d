# adapters/multicall.py
import asyncio
import logging
from typing import List, Tuple, Optional, Sequence

from web3 import AsyncWeb3
from eth_abi import encode, decode
from eth_abi.exceptions import DecodingError

from multicall_aggregate.config import AppConfig
from multicall_aggregate.errors import AggregateError, RpcCallFailed, DecodeFailure
from multicall_aggregate.ports import EthCaller
from multicall_aggregate.adapters.abi_interface import AbiInterface

log = logging.getLogger("multicall")

MULTICALL_ABI = [
    {"constant": True, "inputs": [], "name": "getCurrentBlockTimestamp",
     "outputs": [{"name": "timestamp", "type": "uint256"}],
     "payable": False, "stateMutability": "view", "type": "function"},
    {"constant": False,
     "inputs": [{"components": [{"name": "target", "type": "address"}, {"name": "callData", "type": "bytes"}],
                 "name": "calls", "type": "tuple[]"}],
     "name": "aggregate",
     "outputs": [{"name": "blockNumber", "type": "uint256"}, {"name": "returnData", "type": "bytes[]"}],
     "payable": False, "stateMutability": "nonpayable", "type": "function"},
    {"constant": True, "inputs": [], "name": "getLastBlockHash",
     "outputs": [{"name": "blockHash", "type": "bytes32"}],
     "payable": False, "stateMutability": "view", "type": "function"},
    {"constant": True, "inputs": [{"name": "addr", "type": "address"}], "name": "getEthBalance",
     "outputs": [{"name": "balance", "type": "uint256"}],
     "payable": False, "stateMutability": "view", "type": "function"},
    {"constant": True, "inputs": [], "name": "getCurrentBlockDifficulty",
     "outputs": [{"name": "difficulty", "type": "uint256"}],
     "payable": False, "stateMutability": "view", "type": "function"},
    {"constant": True, "inputs": [], "name": "getCurrentBlockGasLimit",
     "outputs": [{"name": "gaslimit", "type": "uint256"}],
     "payable": False, "stateMutability": "view", "type": "function"},
    {"constant": True, "inputs": [], "name": "getCurrentBlockCoinbase",
     "outputs": [{"name": "coinbase", "type": "address"}],
     "payable": False, "stateMutability": "view", "type": "function"},
    {"constant": True, "inputs": [{"name": "blockNumber", "type": "uint256"}], "name": "getBlockHash",
     "outputs": [{"name": "blockHash", "type": "bytes32"}],
     "payable": False, "stateMutability": "view", "type": "function"},
]

MULTICALL_INTERFACE = AbiInterface(MULTICALL_ABI)

# method: aggregate((address target, bytes callData)[] calls) returns (uint256 blockNumber, bytes[] returnData)
AGGREGATE = MULTICALL_INTERFACE.find_function("aggregate")
AGGREGATE_SELECTOR = AsyncWeb3.keccak(text=AGGREGATE.signature)[:4]
ENVELOPE_TYPES = AGGREGATE.input_types
RESULT_TYPES = ["uint256", "bytes[]"]


def encode_envelope(calls: List[Tuple[str, bytes]]) -> bytes:
    # types: ((address, bytes)[])
    return encode(ENVELOPE_TYPES, [[(c[0], c[1]) for c in calls]])


def decode_aggregate_result(data: bytes, types: Sequence[str] = RESULT_TYPES) -> Tuple[int, List[bytes]]:
    # returns: (uint256, bytes[])
    try:
        block_number, return_data = decode(list(types), data)
    except (DecodingError, ValueError, OverflowError) as e:
        raise DecodeFailure(types, e) from e
    return block_number, list(return_data)


class MulticallClient:
    def __init__(self, caller: EthCaller, config: AppConfig, address: Optional[str] = None):
        self.caller = caller
        self.config = config
        self.address = AsyncWeb3.to_checksum_address(address or config.multicall_address)

    async def aggregate(self, envelope: bytes) -> bytes:
        payload = AGGREGATE_SELECTOR + envelope
        timeout = self.config.call_timeout or None
        try:
            res = await asyncio.wait_for(self.caller.call(self.address, payload, self.config), timeout=timeout)
        except AggregateError:
            raise
        except Exception as e:
            log.warning(f"aggregate({self.address}) failed: {e!r}")
            raise RpcCallFailed(self.address, e) from e
        log.debug(f"aggregate({self.address}) payload={len(payload)}b response={len(res)}b")
        return bytes(res)
