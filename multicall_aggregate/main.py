import sys
import json
import asyncio
import logging
import argparse
from pathlib import Path

from core.log import setup_logging
from multicall_aggregate.config import AppConfig, load_env
from multicall_aggregate.errors import AggregateError
from multicall_aggregate.adapters.web3_gateway import Web3EthCaller
from multicall_aggregate.services.aggregator import Aggregator, store_from_config
from multicall_aggregate.utils.iohelpers import read_json, to_jsonable

log = logging.getLogger("main")


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Batch read-only contract calls through one Multicall aggregate")
    p.add_argument("calls", help="JSON file with a list of calls")
    p.add_argument("--abi", action="store_true", help="calls carry an `abi` and return decoded tuples")
    p.add_argument("--rpc", help="overrides RPC_URL")
    p.add_argument("--multicall", help="overrides MULTICALL_ADDRESS")
    p.add_argument("--block", help="overrides BLOCK_IDENTIFIER")
    p.add_argument("--out", help="write the JSON result here instead of stdout")
    p.add_argument("--debug", action="store_true")
    p.add_argument("--log-file")
    return p.parse_args(argv)


def load_calls(path: Path) -> list[dict]:
    calls = read_json(path)
    if isinstance(calls, dict):
        calls = [calls]
    if not isinstance(calls, list):
        raise ValueError(f"{path}: expected a list of calls")
    for idx, c in enumerate(calls):
        if not isinstance(c, dict):
            raise ValueError(f"{path}: call #{idx} is not an object")
        # an ABI may be given inline or as a path relative to the calls file
        if isinstance(c.get("abi"), str):
            c["abi"] = read_json(path.parent / c["abi"])
    return calls


def apply_overrides(cfg: AppConfig, a: argparse.Namespace) -> AppConfig:
    update = {}
    if a.rpc:
        update["rpc_url"] = a.rpc
    if a.multicall:
        update["multicall_address"] = a.multicall
    if a.block:
        update["block_identifier"] = a.block
    if a.debug:
        update["debug"] = True
    return cfg.model_copy(update=update)


async def run(cfg: AppConfig, a: argparse.Namespace) -> dict | list:
    calls = load_calls(Path(a.calls))
    log.info("Calls: %d | Multicall: %s | Block: %s", len(calls), cfg.multicall_address, cfg.block_identifier)

    caller = Web3EthCaller.from_config(cfg)
    aggregator = Aggregator(cfg, caller, store_from_config(cfg))
    try:
        if a.abi:
            return to_jsonable(await aggregator.aggregate_decoded_from_abi(calls))
        response = await aggregator.aggregate(calls)
    finally:
        await caller.aclose()

    return to_jsonable({
        "blockNumber": response.results.block_number,
        "original": response.results.original,
        "transformed": response.results.transformed,
        "keyToArgMap": response.key_to_arg_map,
    })


def main(argv=None) -> int:
    a = parse_args(argv)
    cfg = apply_overrides(load_env(), a)
    setup_logging(cfg.debug, a.log_file)
    try:
        result = asyncio.run(run(cfg, a))
    except (AggregateError, ValueError) as e:
        log.error("aggregate failed: %s", e)
        return 1

    text = json.dumps(result, ensure_ascii=False, indent=2)
    if a.out:
        Path(a.out).write_text(text, encoding="utf-8")
        log.info("Saved: %s", a.out)
    else:
        print(text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
