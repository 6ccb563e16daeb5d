from multicall_aggregate.config import AppConfig, DEFAULT_MULTICALL_ADDRESS
from multicall_aggregate.services.aggregator import DEFAULT_STORE, store_from_config
from multicall_aggregate.repositories.envelope_memory import BoundedEnvelopeStore
from multicall_aggregate.repositories.envelope_fs import FileEnvelopeStore
from stubs import make_config


def test_defaults(monkeypatch):
    for var in ("MULTICALL_ADDRESS", "BLOCK_IDENTIFIER", "CALL_TIMEOUT", "ENVELOPE_CACHE_SIZE", "DEBUG"):
        monkeypatch.delenv(var, raising=False)
    cfg = AppConfig()
    assert cfg.multicall_address == DEFAULT_MULTICALL_ADDRESS
    assert cfg.block_identifier == "latest"
    assert cfg.call_timeout == 15.0
    assert cfg.envelope_cache_size == 0
    assert cfg.debug is False


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("MULTICALL_ADDRESS", "0x1111111111111111111111111111111111111111")
    monkeypatch.setenv("CALL_TIMEOUT", "2.5")
    monkeypatch.setenv("ENVELOPE_CACHE_SIZE", "64")
    monkeypatch.setenv("DEBUG", "1")
    monkeypatch.setenv("CHAIN", "ARB")
    cfg = AppConfig()
    assert cfg.multicall_address == "0x1111111111111111111111111111111111111111"
    assert cfg.call_timeout == 2.5
    assert cfg.envelope_cache_size == 64
    assert cfg.debug is True
    assert cfg.chain == "arb"


def test_store_from_config(tmp_path):
    assert store_from_config(make_config()) is DEFAULT_STORE
    bounded = store_from_config(make_config(envelope_cache_size=8))
    assert isinstance(bounded, BoundedEnvelopeStore)
    assert store_from_config(make_config(envelope_cache_size=8)) is bounded
    assert isinstance(store_from_config(make_config(envelope_cache_dir=str(tmp_path))), FileEnvelopeStore)
