import pytest

from multicall_aggregate.errors import MalformedCallArguments, UnknownFunction
from multicall_aggregate.services.normalizer import (
    SignatureResolver, AbiResolver, parse_signature, parse_returns, key_to_arg_map, as_call_list,
)
from stubs import MULTICALL, TOKEN, HOLDER, OTHER, ERC20_ABI


POOL_ABI = [
    {"inputs": [{"components": [{"name": "asset", "type": "address"}, {"name": "amount", "type": "uint256"}],
                 "name": "orders", "type": "tuple[]"}],
     "name": "quote", "outputs": [{"name": "", "type": "uint256"}, {"name": "", "type": "bool"}],
     "stateMutability": "view", "type": "function"},
]


def test_parse_signature():
    assert parse_signature("balanceOf(address)(uint256)") == ("balanceOf(address)", ["address"], ["uint256"])
    assert parse_signature("getReserves()(uint112,uint112,uint32)") == (
        "getReserves()", [], ["uint112", "uint112", "uint32"])
    assert parse_signature("allowance(address,address)(uint256)")[1] == ["address", "address"]


def test_parse_signature_without_return_group():
    assert parse_signature("poke(uint256)") == ("poke(uint256)", ["uint256"], [])
    assert parse_signature("poke(uint256)()") == ("poke(uint256)", ["uint256"], [])


def test_parse_signature_drops_empty_arg_types():
    assert parse_signature("f(address,,uint256,)(bool)")[1] == ["address", "uint256"]


def test_parse_signature_rejects_bare_name():
    with pytest.raises(ValueError):
        parse_signature("balanceOf")


def test_parse_returns():
    transform = str
    fields = parse_returns([["a"], ["b", transform], "c"])
    assert [(f.key, f.transform) for f in fields] == [("a", None), ("b", transform), ("c", None)]
    assert parse_returns(None) == []


def test_signature_resolver_builds_descriptor():
    (d,) = SignatureResolver().resolve(
        [{"call": ["balanceOf(address)(uint256)", HOLDER], "target": TOKEN, "returns": [["bal"]]}], MULTICALL)
    assert d.target == TOKEN
    assert d.method == "balanceOf(address)"
    assert d.args == [(HOLDER, "address")]
    assert d.return_types == ["uint256"]
    assert [r.key for r in d.returns] == ["bal"]


def test_signature_resolver_defaults_target_to_multicall():
    (d,) = SignatureResolver().resolve(
        [{"call": ["getEthBalance(address)(uint256)", HOLDER], "returns": [["eth"]]}], MULTICALL)
    assert d.target == MULTICALL


def test_signature_resolver_checksums_target():
    (d,) = SignatureResolver().resolve(
        [{"call": ["decimals()(uint8)"], "target": TOKEN.lower(), "returns": [["d"]]}], MULTICALL)
    assert d.target == TOKEN


def test_argument_count_mismatch():
    with pytest.raises(MalformedCallArguments) as e:
        SignatureResolver().resolve(
            [{"call": ["f(address,uint256,bool)(uint256)", HOLDER, 1], "target": TOKEN, "returns": [["x"]]}],
            MULTICALL,
        )
    assert e.value.arg_types == ["address", "uint256", "bool"]
    assert e.value.arg_values == [HOLDER, 1]


def test_key_to_arg_map_skips_calls_without_args():
    calls = [
        {"call": ["balanceOf(address)(uint256)", HOLDER], "target": TOKEN, "returns": [["bal"]]},
        {"call": ["decimals()(uint8)"], "target": TOKEN, "returns": [["dec"]]},
        {"call": ["allowance(address,address)(uint256)", HOLDER, OTHER], "target": TOKEN,
         "returns": [["allowance"]]},
    ]
    assert key_to_arg_map(calls) == {"bal": [HOLDER], "allowance": [HOLDER, OTHER]}


def test_key_to_arg_map_last_call_wins():
    calls = [
        {"call": ["balanceOf(address)(uint256)", HOLDER], "target": TOKEN, "returns": [["bal"]]},
        {"call": ["balanceOf(address)(uint256)", OTHER], "target": TOKEN, "returns": [["bal"]]},
    ]
    assert key_to_arg_map(calls) == {"bal": [OTHER]}


def test_as_call_list_wraps_single_spec():
    spec = {"call": ["decimals()(uint8)"], "returns": [["d"]]}
    assert as_call_list(spec) == [spec]
    assert as_call_list([spec, spec]) == [spec, spec]


def test_abi_resolver():
    d1, d2 = AbiResolver().resolve(
        [
            {"abi": ERC20_ABI, "call": ["balanceOf", HOLDER], "target": TOKEN},
            {"abi": ERC20_ABI, "call": ["decimals"], "target": TOKEN},
        ],
        MULTICALL,
    )
    assert d1.method == "balanceOf(address)"
    assert d1.args == [(HOLDER, "address")]
    assert d1.return_types == ["uint256"]
    assert d2.method == "decimals()"
    assert d2.args == []
    assert d2.abi_function.output_types == ["uint8"]


def test_abi_resolver_collapses_tuples():
    orders = [(OTHER, 1), (HOLDER, 2)]
    (d,) = AbiResolver().resolve([{"abi": POOL_ABI, "call": ["quote", orders], "target": OTHER}], MULTICALL)
    assert d.method == "quote((address,uint256)[])"
    assert d.return_types == ["uint256", "bool"]


def test_abi_resolver_overloads():
    with pytest.raises(UnknownFunction):
        AbiResolver().resolve([{"abi": ERC20_ABI, "call": ["transfer", OTHER, 1], "target": TOKEN}], MULTICALL)
    (d,) = AbiResolver().resolve(
        [{"abi": ERC20_ABI, "call": ["transfer(address,uint256)", OTHER, 1], "target": TOKEN}], MULTICALL)
    assert d.method == "transfer(address,uint256)"


def test_abi_resolver_unknown_function():
    with pytest.raises(UnknownFunction):
        AbiResolver().resolve([{"abi": ERC20_ABI, "call": ["Transfer"], "target": TOKEN}], MULTICALL)


def test_abi_resolver_argument_count_mismatch():
    with pytest.raises(MalformedCallArguments):
        AbiResolver().resolve([{"abi": ERC20_ABI, "call": ["balanceOf"], "target": TOKEN}], MULTICALL)


def test_target_must_be_an_address():
    with pytest.raises(ValueError):
        SignatureResolver().resolve([{"call": ["decimals()(uint8)"], "target": "0x123", "returns": [["d"]]}],
                                    MULTICALL)
