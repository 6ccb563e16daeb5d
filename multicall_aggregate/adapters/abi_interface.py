from typing import Any, Iterable

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from eth_utils.abi import collapse_if_tuple

from multicall_aggregate.errors import UnknownFunction, DecodeFailure


def _types(params: Iterable[dict]) -> list[str]:
    return [collapse_if_tuple(dict(p)) for p in params]


class AbiFunction:
    """
    One `function` entry of a contract ABI with its collapsed input/output types.
    """

    def __init__(self, entry: dict) -> None:
        self.name: str = entry["name"]
        self.input_types = _types(entry.get("inputs", []))
        self.output_types = _types(entry.get("outputs", []))

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.input_types)})"

    def decode_output(self, data: bytes) -> tuple:
        try:
            return decode(self.output_types, data)
        except (DecodingError, ValueError, OverflowError) as e:
            raise DecodeFailure(self.output_types, e) from e


class AbiInterface:
    """
    Function lookup over a JSON contract ABI.
    Overloaded functions must be addressed by their full signature, e.g. `transfer(address,uint256)`.
    """

    def __init__(self, abi: list[dict]) -> None:
        self._by_name: dict[str, list[AbiFunction]] = {}
        self._by_signature: dict[str, AbiFunction] = {}
        for entry in abi:
            if not isinstance(entry, dict) or entry.get("type", "function") != "function" or not entry.get("name"):
                continue
            fn = AbiFunction(entry)
            self._by_name.setdefault(fn.name, []).append(fn)
            self._by_signature[fn.signature] = fn

    def find_function(self, name_or_signature: str) -> AbiFunction:
        if "(" in name_or_signature:
            fn = self._by_signature.get(name_or_signature.replace(" ", ""))
            if fn is None:
                raise UnknownFunction(name_or_signature)
            return fn
        matches = self._by_name.get(name_or_signature, [])
        if not matches:
            raise UnknownFunction(name_or_signature)
        if len(matches) > 1:
            options = ", ".join(f.signature for f in matches)
            raise UnknownFunction(name_or_signature, f"ambiguous, use one of: {options}")
        return matches[0]

    def function_names(self) -> list[str]:
        return list(self._by_name)

    def decode_function_result(self, name_or_signature: str, data: bytes) -> tuple[Any, ...]:
        return self.find_function(name_or_signature).decode_output(data)
