import os
from pydantic import BaseModel, Field

# MakerDAO Multicall on Ethereum mainnet
DEFAULT_MULTICALL_ADDRESS = "0xeefBa1e63905eF1D7ACbA5a8513c70307C1cE441"


class AppConfig(BaseModel):
    chain: str = Field(default_factory=lambda: os.getenv("CHAIN", "eth").lower())
    rpc_url: str = Field(default_factory=lambda: os.getenv("RPC_URL", "https://rpc.mevblocker.io"))
    multicall_address: str = Field(
        default_factory=lambda: os.getenv("MULTICALL_ADDRESS", DEFAULT_MULTICALL_ADDRESS))
    block_identifier: str = Field(default_factory=lambda: os.getenv("BLOCK_IDENTIFIER", "latest"))

    call_timeout: float = Field(default_factory=lambda: float(os.getenv("CALL_TIMEOUT", "15.0")))
    request_timeout: float = Field(default_factory=lambda: float(os.getenv("REQUEST_TIMEOUT", "30.0")))

    # 0 keeps every envelope for the life of the process
    envelope_cache_size: int = Field(default_factory=lambda: int(os.getenv("ENVELOPE_CACHE_SIZE", "0")))
    envelope_cache_dir: str = Field(default_factory=lambda: os.getenv("ENVELOPE_CACHE_DIR", "").strip())

    debug: bool = Field(default_factory=lambda: os.getenv("DEBUG", "false").lower() != "false")


def load_env() -> AppConfig:
    from dotenv import load_dotenv
    load_dotenv()
    return AppConfig()
