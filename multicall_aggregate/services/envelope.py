# services/envelope.py
import json
import logging
from typing import Any, Optional

from web3 import AsyncWeb3
from eth_abi import encode
from eth_abi.exceptions import EncodingError

from multicall_aggregate.errors import EncodeFailure
from multicall_aggregate.ports import EnvelopeStore
from multicall_aggregate.adapters.multicall import encode_envelope
from multicall_aggregate.repositories.envelope_memory import MemoryEnvelopeStore
from multicall_aggregate.services.normalizer import CallDescriptor

log = logging.getLogger("envelope")


def _key_default(o: Any):
    if isinstance(o, (bytes, bytearray)):
        return {"bytes": "0x" + bytes(o).hex()}
    return str(o)


def selector(method: str) -> bytes:
    return bytes(AsyncWeb3.keccak(text=method)[:4])


def encode_call_data(call: CallDescriptor) -> bytes:
    if not call.args:
        return selector(call.method)
    try:
        return selector(call.method) + encode(call.arg_types, call.arg_values)
    except (EncodingError, TypeError, ValueError, OverflowError) as e:
        raise EncodeFailure(call.method, call.arg_types, e) from e


class EnvelopeBuilder:
    """
    Encodes descriptor lists into `(address,bytes)[]` envelopes.
    Identical lists are encoded once per store; `encode_count` counts real encodings.
    """

    def __init__(self, store: Optional[EnvelopeStore] = None) -> None:
        self.store = store if store is not None else MemoryEnvelopeStore()
        self.encode_count = 0

    @staticmethod
    def cache_key(calls: list[CallDescriptor]) -> str:
        return json.dumps([c.key_material() for c in calls], default=_key_default, separators=(",", ":"))

    def build(self, calls: list[CallDescriptor]) -> bytes:
        key = self.cache_key(calls)
        blob = self.store.get(key)
        if blob is not None:
            log.debug(f"envelope cache hit ({len(calls)} calls)")
            return blob
        blob = self.encode(calls)
        self.store.put(key, blob)
        log.debug(f"envelope cache miss ({len(calls)} calls, {len(blob)}b)")
        return blob

    def encode(self, calls: list[CallDescriptor]) -> bytes:
        self.encode_count += 1
        return encode_envelope([(c.target, encode_call_data(c)) for c in calls])
