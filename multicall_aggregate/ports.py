from __future__ import annotations
from typing import Protocol, Optional, Any, TYPE_CHECKING

if TYPE_CHECKING:
    from multicall_aggregate.config import AppConfig
    from multicall_aggregate.services.normalizer import CallDescriptor


class CallSpec(dict):
    call: list[Any]
    target: Optional[str]
    returns: list[list[Any]]
    abi: list[dict]


class EthCaller(Protocol):
    async def call(self, target: str, call_data: bytes, config: AppConfig) -> bytes: ...


class EnvelopeStore(Protocol):
    def get(self, key: str) -> Optional[bytes]: ...

    def put(self, key: str, blob: bytes) -> None: ...


class TypeResolver(Protocol):
    def resolve(self, calls: list[CallSpec], default_target: str) -> list[CallDescriptor]: ...
