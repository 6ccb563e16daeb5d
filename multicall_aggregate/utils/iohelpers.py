import json
from pathlib import Path


def read_text(p: Path) -> str:
    return p.read_text(encoding="utf-8") if p.exists() else ""


def read_json(p: Path):
    return json.loads(read_text(p) or "null")


def to_jsonable(o):
    # uint256 values overflow JS numbers, so they leave as decimal strings
    if isinstance(o, bool) or o is None:
        return o
    if isinstance(o, int):
        return str(o)
    if isinstance(o, (bytes, bytearray)):
        return "0x" + bytes(o).hex()
    if isinstance(o, dict):
        return {str(k): to_jsonable(v) for k, v in o.items()}
    if isinstance(o, (list, tuple)):
        return [to_jsonable(v) for v in o]
    if hasattr(o, "__dict__"):
        return to_jsonable(o.__dict__)
    return o
