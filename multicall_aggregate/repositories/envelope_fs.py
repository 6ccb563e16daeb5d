import os
import hashlib
import tempfile
from pathlib import Path
from typing import Optional

from multicall_aggregate.ports import EnvelopeStore


class FileEnvelopeStore(EnvelopeStore):
    """
    Envelopes persisted as hex files, one per sha256 of the cache key.
    """

    def __init__(self, base_dir: Path) -> None:
        self.envelopes = Path(base_dir) / "envelopes"
        self.envelopes.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.envelopes / f"{hashlib.sha256(key.encode('utf-8')).hexdigest()}.hex"

    def get(self, key: str) -> Optional[bytes]:
        p = self._path(key)
        if not p.exists():
            return None
        try:
            return bytes.fromhex(p.read_text(encoding="utf-8").strip())
        except ValueError:  # truncated or foreign file, treat as a miss
            return None

    def put(self, key: str, blob: bytes) -> None:
        p = self._path(key)
        # one temp file per write; readers only ever see complete files
        with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=self.envelopes, suffix=".tmp", delete=False) as tmp:
            tmp.write(blob.hex())
        os.replace(tmp.name, p)
