import inspect
import logging
from typing import Union

import aiohttp
from web3 import AsyncWeb3
from web3.providers import AsyncHTTPProvider
from web3.exceptions import ContractLogicError, BadFunctionCallOutput, Web3Exception

from multicall_aggregate.config import AppConfig
from multicall_aggregate.errors import RpcCallFailed
from multicall_aggregate.ports import EthCaller
from multicall_aggregate.utils.parsing import hex_to_bytes

log = logging.getLogger("web3_gateway")


def _block_identifier(raw: str) -> Union[str, int]:
    raw = (raw or "latest").strip()
    if raw.isdigit():
        return int(raw)
    if raw.startswith("0x"):
        return int(raw, 16)
    return raw


class Web3EthCaller(EthCaller):
    """
    Read-only `eth_call` against a single JSON-RPC node.
    """

    def __init__(self, w3: AsyncWeb3) -> None:
        self._w3 = w3

    @classmethod
    def from_config(cls, config: AppConfig) -> "Web3EthCaller":
        provider = AsyncHTTPProvider(
            config.rpc_url,
            request_kwargs={"timeout": aiohttp.ClientTimeout(total=config.request_timeout)},
        )
        log.info(f"Web3EthCaller: {config.chain} via {config.rpc_url} (timeout={config.request_timeout:.1f}s)")
        return cls(AsyncWeb3(provider))

    async def call(self, target: str, call_data: bytes, config: AppConfig) -> bytes:
        tx = {"to": AsyncWeb3.to_checksum_address(target), "data": "0x" + call_data.hex()}
        try:
            res = await self._w3.eth.call(tx, block_identifier=_block_identifier(config.block_identifier))
        except (ContractLogicError, BadFunctionCallOutput, Web3Exception, aiohttp.ClientError, ValueError) as e:
            log.warning(f"eth_call {target} failed: {e!r}")
            raise RpcCallFailed(target, e) from e
        return hex_to_bytes(res)

    async def aclose(self) -> None:
        disconnect = getattr(self._w3.provider, "disconnect", None)
        if disconnect is not None:
            res = disconnect()
            if inspect.isawaitable(res):
                await res
        log.info("Web3EthCaller: session closed")
