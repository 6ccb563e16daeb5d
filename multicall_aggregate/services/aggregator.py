# services/aggregator.py
"""
One `aggregate` round trip: normalize the calls, build (or reuse) the
envelope, send it through the Multicall contract and decode the answer.

Example:
    ::

        config = load_env()
        response = await aggregate(
            [
                {"call": ["balanceOf(address)(uint256)", holder], "target": token,
                 "returns": [["bal", lambda v: v / 10**18]]},
                {"call": ["getEthBalance(address)(uint256)", holder], "returns": [["eth"]]},
            ],
            config,
        )
        response.results.transformed["bal"]
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from multicall_aggregate.config import AppConfig
from multicall_aggregate.ports import CallSpec, EthCaller, EnvelopeStore
from multicall_aggregate.adapters.multicall import MulticallClient
from multicall_aggregate.adapters.web3_gateway import Web3EthCaller
from multicall_aggregate.repositories.envelope_memory import MemoryEnvelopeStore, BoundedEnvelopeStore
from multicall_aggregate.repositories.envelope_fs import FileEnvelopeStore
from multicall_aggregate.services.envelope import EnvelopeBuilder
from multicall_aggregate.services.normalizer import (
    SignatureResolver, AbiResolver, as_call_list, key_to_arg_map,
)
from multicall_aggregate.services.decoder import (
    AggregateResult, check_return_arity, decode_results, decode_abi_results,
)

log = logging.getLogger("aggregator")

# shared by every Aggregator built without an explicit store
DEFAULT_STORE = MemoryEnvelopeStore()


@dataclass
class AggregateResponse:
    results: AggregateResult
    key_to_arg_map: dict[str, list[Any]] = field(default_factory=dict)


_stores: dict[tuple[str, int], EnvelopeStore] = {}


def store_from_config(config: AppConfig) -> EnvelopeStore:
    spec = (config.envelope_cache_dir, max(0, config.envelope_cache_size))
    if spec == ("", 0):
        return DEFAULT_STORE
    if spec not in _stores:
        if config.envelope_cache_dir:
            _stores[spec] = FileEnvelopeStore(Path(config.envelope_cache_dir))
        else:
            _stores[spec] = BoundedEnvelopeStore(config.envelope_cache_size)
    return _stores[spec]


class Aggregator:
    def __init__(
            self,
            config: AppConfig,
            caller: EthCaller,
            store: Optional[EnvelopeStore] = None,
    ) -> None:
        self.config = config
        self.builder = EnvelopeBuilder(store if store is not None else DEFAULT_STORE)
        self.client = MulticallClient(caller, config)
        self._signatures = SignatureResolver()
        self._abis = AbiResolver()

    @classmethod
    def from_config(cls, config: AppConfig, caller: Optional[EthCaller] = None) -> "Aggregator":
        return cls(config, caller or Web3EthCaller.from_config(config), store_from_config(config))

    async def aggregate(self, calls: CallSpec | list[CallSpec]) -> AggregateResponse:
        calls = as_call_list(calls)
        arg_map = key_to_arg_map(calls)
        descriptors = self._signatures.resolve(calls, self.config.multicall_address)
        check_return_arity(descriptors)

        envelope = self.builder.build(descriptors)
        response = await self.client.aggregate(envelope)
        results = decode_results(descriptors, response)
        log.info(f"aggregate: {len(descriptors)} calls at block {results.block_number}")
        return AggregateResponse(results=results, key_to_arg_map=arg_map)

    async def aggregate_decoded_from_abi(self, calls: CallSpec | list[CallSpec]) -> list[tuple]:
        calls = as_call_list(calls)
        descriptors = self._abis.resolve(calls, self.config.multicall_address)

        envelope = self.builder.build(descriptors)
        response = await self.client.aggregate(envelope)
        decoded = decode_abi_results(descriptors, response)
        log.info(f"aggregate_decoded_from_abi: {len(descriptors)} calls")
        return decoded


async def aggregate(
        calls: CallSpec | list[CallSpec],
        config: AppConfig,
        caller: Optional[EthCaller] = None,
) -> AggregateResponse:
    owned = Web3EthCaller.from_config(config) if caller is None else None
    try:
        return await Aggregator.from_config(config, caller or owned).aggregate(calls)
    finally:
        if owned is not None:
            await owned.aclose()


async def aggregate_decoded_from_abi(
        calls: CallSpec | list[CallSpec],
        config: AppConfig,
        caller: Optional[EthCaller] = None,
) -> list[tuple]:
    owned = Web3EthCaller.from_config(config) if caller is None else None
    try:
        return await Aggregator.from_config(config, caller or owned).aggregate_decoded_from_abi(calls)
    finally:
        if owned is not None:
            await owned.aclose()
