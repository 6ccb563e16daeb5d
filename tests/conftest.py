import pytest

from multicall_aggregate.config import AppConfig
from multicall_aggregate.repositories.envelope_memory import MemoryEnvelopeStore
from multicall_aggregate.services.aggregator import Aggregator
from stubs import StubEthCaller, make_config, echo_handler


@pytest.fixture
def config() -> AppConfig:
    return make_config()


@pytest.fixture
def store() -> MemoryEnvelopeStore:
    return MemoryEnvelopeStore()


@pytest.fixture
def echo_caller() -> StubEthCaller:
    return StubEthCaller(echo_handler)


@pytest.fixture
def aggregator(config: AppConfig, echo_caller: StubEthCaller, store: MemoryEnvelopeStore) -> Aggregator:
    """
    Aggregator over an echoing contract with its own envelope cache
    """
    return Aggregator(config, echo_caller, store)
