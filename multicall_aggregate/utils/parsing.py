import re
from web3 import AsyncWeb3

ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")


def strip_0x(value: str) -> str:
    return value[2:] if value[:2] in ("0x", "0X") else value


def hex_to_bytes(value) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return bytes.fromhex(strip_0x(value))


def normalize_address(address: str) -> str:
    if not isinstance(address, str) or not ADDRESS_RE.match(address):
        raise ValueError(f"not a 20-byte hex address: {address!r}")
    return AsyncWeb3.to_checksum_address(address)
