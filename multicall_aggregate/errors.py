import json
from typing import Any, Sequence


class AggregateError(Exception):
    pass


class MalformedCallArguments(AggregateError):
    def __init__(self, arg_types: Sequence[str], arg_values: Sequence[Any]) -> None:
        self.arg_types = list(arg_types)
        self.arg_values = list(arg_values)
        super().__init__(
            "Every method argument must have exactly one type. "
            f"Comparing argument types {json.dumps(self.arg_types)} "
            f"to argument values {json.dumps(self.arg_values, default=str)}."
        )


class UnknownFunction(AggregateError):
    def __init__(self, name: str, reason: str = "not found in ABI") -> None:
        self.name = name
        super().__init__(f"function {name!r}: {reason}")


class ResultArityMismatch(AggregateError):
    def __init__(self, expected: int, actual: int, what: str = "return fields") -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Missing data needed to parse results: expected {expected} {what}, got {actual}")


class RpcCallFailed(AggregateError):
    def __init__(self, target: str, cause: BaseException) -> None:
        self.target = target
        self.cause = cause
        super().__init__(f"eth_call to {target} failed: {cause!r}")


class DecodeFailure(AggregateError):
    def __init__(self, types: Sequence[str], cause: BaseException) -> None:
        self.types = list(types)
        self.cause = cause
        super().__init__(f"cannot decode {list(self.types)}: {cause!r}")


class EncodeFailure(AggregateError):
    def __init__(self, method: str, types: Sequence[str], cause: BaseException) -> None:
        self.method = method
        self.types = list(types)
        self.cause = cause
        super().__init__(f"cannot encode arguments of {method} as {list(self.types)}: {cause}")
