import threading
from collections import OrderedDict
from typing import Optional

from multicall_aggregate.ports import EnvelopeStore


class MemoryEnvelopeStore(EnvelopeStore):
    """
    Unbounded in-process envelope cache. Entries are never evicted.
    """

    def __init__(self) -> None:
        self._blobs: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._blobs.get(key)

    def put(self, key: str, blob: bytes) -> None:
        with self._lock:
            self._blobs[key] = blob

    def __len__(self) -> int:
        return len(self._blobs)


class BoundedEnvelopeStore(EnvelopeStore):
    """
    LRU variant: keeps at most `max_size` envelopes, dropping the least recently used.
    """

    def __init__(self, max_size: int) -> None:
        self._max_size = max(1, int(max_size))
        self._blobs: OrderedDict[str, bytes] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            blob = self._blobs.get(key)
            if blob is not None:
                self._blobs.move_to_end(key)
            return blob

    def put(self, key: str, blob: bytes) -> None:
        with self._lock:
            self._blobs[key] = blob
            self._blobs.move_to_end(key)
            while len(self._blobs) > self._max_size:
                self._blobs.popitem(last=False)

    def __len__(self) -> int:
        return len(self._blobs)
