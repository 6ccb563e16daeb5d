# services/decoder.py
from __future__ import annotations
import enum
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable

from eth_abi import decode
from eth_abi.grammar import normalize
from eth_abi.exceptions import DecodingError

from multicall_aggregate.errors import ResultArityMismatch, DecodeFailure
from multicall_aggregate.adapters.multicall import AGGREGATE, RESULT_TYPES, decode_aggregate_result
from multicall_aggregate.services.normalizer import CallDescriptor

log = logging.getLogger("decoder")

_FIXED_BYTES_RE = re.compile(r"^bytes([1-9]|[12][0-9]|3[0-2])$")
_UINT_RE = re.compile(r"^uint\d*$")
_INT_RE = re.compile(r"^int\d*$")
_FIXED_RE = re.compile(r"^u?fixed(\d+x\d+)?$")


class TypeFamily(enum.Enum):
    ADDRESS = "address"
    BOOL = "bool"
    UINT = "uint"
    INT = "int"
    FIXED = "fixed"
    FIXED_BYTES = "bytesN"
    BYTES = "bytes"
    STRING = "string"
    TUPLE = "tuple"
    ARRAY = "array"
    OTHER = "other"


def classify(type_tag: str) -> TypeFamily:
    # aliases such as `uint`, `fixed` and `function` resolve to their canonical tags
    t = normalize(type_tag.strip())
    if t.endswith("]"):
        return TypeFamily.ARRAY
    if t.startswith("(") or t == "tuple":
        return TypeFamily.TUPLE
    if t in ("address", "bool", "bytes", "string"):
        return TypeFamily(t)
    if _FIXED_BYTES_RE.match(t):
        return TypeFamily.FIXED_BYTES
    if _UINT_RE.match(t):
        return TypeFamily.UINT
    if _INT_RE.match(t):
        return TypeFamily.INT
    if _FIXED_RE.match(t):
        return TypeFamily.FIXED
    return TypeFamily.OTHER


def string_form(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def coerce_bool(value: Any) -> bool:
    # only the exact text "true" counts; any other rendering of the value is False
    return string_form(value) == "true"


def _passthrough(value: Any) -> Any:
    return value


POSTPROCESSORS: dict[TypeFamily, Callable[[Any], Any]] = {
    TypeFamily.BOOL: coerce_bool,
}


def postprocess(type_tag: str, value: Any) -> Any:
    return POSTPROCESSORS.get(classify(type_tag), _passthrough)(value)


@dataclass
class AggregateResult:
    block_number: int
    original: dict[str, Any] = field(default_factory=dict)
    transformed: dict[str, Any] = field(default_factory=dict)


def decode_values(types: list[str], data: bytes) -> tuple:
    try:
        return decode(types, data)
    except (DecodingError, ValueError, OverflowError) as e:
        raise DecodeFailure(types, e) from e


def check_return_arity(calls: list[CallDescriptor]) -> None:
    """
    Every declared return type needs exactly one return key, checked before anything is sent.
    """
    types = sum(len(c.return_types) for c in calls)
    fields = sum(len(c.returns) for c in calls)
    if types != fields:
        raise ResultArityMismatch(types, fields, "return keys")


def _check_call_count(calls: list[CallDescriptor], return_data: list[bytes]) -> None:
    if len(return_data) != len(calls):
        raise ResultArityMismatch(len(calls), len(return_data), "call results")


def decode_results(calls: list[CallDescriptor], response: bytes) -> AggregateResult:
    """
    Decode an `aggregate` response and map every value onto its return key.

    Values are flattened in call order, then field order, and walked in lockstep
    with the flattened return keys. A key seen twice keeps the later value.

    Raises:
        ResultArityMismatch: call or value counts do not line up; nothing is mapped.
        DecodeFailure: a blob does not decode with its declared types.
    """
    block_number, return_data = decode_aggregate_result(response, RESULT_TYPES)
    _check_call_count(calls, return_data)

    values: list[Any] = []
    for call, blob in zip(calls, return_data):
        types = call.return_types
        decoded = decode_values(types, blob)
        values.extend(postprocess(types[idx], v) for idx, v in enumerate(decoded))

    fields = [r for c in calls for r in c.returns]
    if len(values) != len(fields):
        raise ResultArityMismatch(len(fields), len(values), "decoded values")

    result = AggregateResult(block_number=block_number)
    for ret, value in zip(fields, values):
        result.original[ret.key] = value
        result.transformed[ret.key] = ret.transform(value) if ret.transform is not None else value
    log.debug(f"block {block_number}: mapped {len(values)} values from {len(calls)} calls")
    return result


def decode_abi_results(calls: list[CallDescriptor], response: bytes) -> list[tuple]:
    _, return_data = decode_aggregate_result(response, AGGREGATE.output_types)
    _check_call_count(calls, return_data)
    return [c.abi_function.decode_output(blob) for c, blob in zip(calls, return_data)]
