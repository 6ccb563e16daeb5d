# services/normalizer.py
"""
Turns user call specs into `CallDescriptor`s with resolved Solidity types.

Two resolvers share the same output:

* `SignatureResolver` reads types from a pseudo-signature such as
  ``"balanceOf(address)(uint256)"``: argument types from the first
  parenthesized group, return types from the second.
* `AbiResolver` looks the method name up in the contract ABI supplied with
  the call and takes the input/output types from there.
"""
from __future__ import annotations
import re
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

from multicall_aggregate.ports import CallSpec, TypeResolver
from multicall_aggregate.errors import MalformedCallArguments
from multicall_aggregate.adapters.abi_interface import AbiInterface, AbiFunction
from multicall_aggregate.utils.parsing import normalize_address

log = logging.getLogger("normalizer")

INSIDE_EVERY_PARENTHESES = re.compile(r"\(.*?\)")
FIRST_CLOSING_PARENTHESES = re.compile(r"^[^)]*\)")


@dataclass
class ReturnField:
    key: str
    transform: Optional[Callable[[Any], Any]] = None


@dataclass
class CallDescriptor:
    target: str
    method: str
    args: list[tuple[Any, str]] = field(default_factory=list)
    return_types: list[str] = field(default_factory=list)
    returns: list[ReturnField] = field(default_factory=list)
    # set in ABI mode only, used to decode the per-call result
    abi_function: Optional[AbiFunction] = None

    @property
    def arg_types(self) -> list[str]:
        return [a[1] for a in self.args]

    @property
    def arg_values(self) -> list[Any]:
        return [a[0] for a in self.args]

    def key_material(self) -> list[Any]:
        """
        What identifies this call inside an envelope cache key. Transforms are left out.
        """
        return [
            self.target,
            self.method,
            [[v, t] for v, t in self.args],
            list(self.return_types),
            [r.key for r in self.returns],
        ]


def as_call_list(calls: Union[CallSpec, dict, list]) -> list[CallSpec]:
    return list(calls) if isinstance(calls, (list, tuple)) else [calls]


def parse_returns(returns: Optional[list]) -> list[ReturnField]:
    out: list[ReturnField] = []
    for meta in returns or []:
        if isinstance(meta, str):
            out.append(ReturnField(meta))
            continue
        key, *rest = meta
        transform = rest[0] if rest else None
        out.append(ReturnField(key, transform))
    return out


def parse_signature(signature: str) -> tuple[str, list[str], list[str]]:
    """
    Split ``name(argTypes)(returnTypes)`` into ``("name(argTypes)", argTypes, returnTypes)``.
    """
    groups = [g[1:-1] for g in INSIDE_EVERY_PARENTHESES.findall(signature or "")]
    first = FIRST_CLOSING_PARENTHESES.match(signature or "")
    if not groups or first is None:
        raise ValueError(f"signature must look like name(argTypes)(returnTypes): {signature!r}")
    arg_types_string = groups[0]
    return_types_string = groups[1] if len(groups) > 1 else ""
    arg_types = [t for t in arg_types_string.split(",") if t]
    return_types = return_types_string.split(",") if return_types_string else []
    return first.group(0), arg_types, return_types


def _zip_args(arg_types: list[str], arg_values: list[Any]) -> list[tuple[Any, str]]:
    if len(arg_types) != len(arg_values):
        raise MalformedCallArguments(arg_types, arg_values)
    return [(value, arg_types[idx]) for idx, value in enumerate(arg_values)]


def _target(spec: CallSpec, default_target: str) -> str:
    return normalize_address(spec.get("target") or default_target)


def key_to_arg_map(calls: list[CallSpec]) -> dict[str, list[Any]]:
    acc: dict[str, list[Any]] = {}
    for spec in calls:
        _, *args = spec["call"]
        if len(args) > 0:
            for ret in parse_returns(spec.get("returns")):
                acc[ret.key] = args
    return acc


class SignatureResolver(TypeResolver):
    def resolve(self, calls: list[CallSpec], default_target: str) -> list[CallDescriptor]:
        out = []
        for spec in calls:
            signature, *arg_values = spec["call"]
            method, arg_types, return_types = parse_signature(signature)
            out.append(CallDescriptor(
                target=_target(spec, default_target),
                method=method,
                args=_zip_args(arg_types, arg_values),
                return_types=return_types,
                returns=parse_returns(spec.get("returns")),
            ))
        log.debug(f"resolved {len(out)} calls from signatures")
        return out


class AbiResolver(TypeResolver):
    def resolve(self, calls: list[CallSpec], default_target: str) -> list[CallDescriptor]:
        interfaces = self.interfaces_by_target(calls, default_target)
        out = []
        for spec in calls:
            target = _target(spec, default_target)
            name, *arg_values = spec["call"]
            fn = interfaces[target].find_function(name)
            out.append(CallDescriptor(
                target=target,
                method=fn.signature,
                args=_zip_args(fn.input_types, arg_values),
                return_types=list(fn.output_types),
                abi_function=fn,
            ))
        log.debug(f"resolved {len(out)} calls from {len(interfaces)} ABIs")
        return out

    @staticmethod
    def interfaces_by_target(calls: list[CallSpec], default_target: str) -> dict[str, AbiInterface]:
        # one ABI per contract; a later call to the same target replaces the earlier ABI
        return {_target(spec, default_target): AbiInterface(spec["abi"]) for spec in calls}
