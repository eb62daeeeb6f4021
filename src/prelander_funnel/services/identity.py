"""Per-tab session identifiers."""

import logging
import random
import string
import time
from collections.abc import Callable, MutableMapping
from dataclasses import dataclass, field

SESSION_STORAGE_KEY = "session_id"
_SUFFIX_ALPHABET = string.digits + string.ascii_lowercase
_SUFFIX_LENGTH = 6

_logger = logging.getLogger(__name__)


def generate_session_id(
    now_ms: Callable[[], int] | None = None,
    rng: random.Random | None = None,
) -> str:
    """Build ``session_<epoch-ms>_<base36 suffix>``.

    Collision resistant at funnel traffic volumes; not meant to be unguessable.
    """
    timestamp = now_ms() if now_ms else time.time_ns() // 1_000_000
    source = rng or random
    suffix = "".join(source.choice(_SUFFIX_ALPHABET) for _ in range(_SUFFIX_LENGTH))
    return f"session_{timestamp}_{suffix}"


@dataclass
class SessionIdProvider:
    """Returns one stable session id per storage scope."""

    storage: MutableMapping[str, str] | None = None
    generate: Callable[[], str] = generate_session_id
    _memory_value: str | None = field(default=None, init=False, repr=False)

    def get_session_id(self) -> str:
        """Return the stored id, creating and persisting one on first call."""
        existing = self._read()
        if existing:
            return existing
        session_id = self.generate()
        self._memory_value = session_id
        if self.storage is not None:
            try:
                self.storage[SESSION_STORAGE_KEY] = session_id
            except Exception:  # noqa: BLE001
                _logger.warning("Session storage unavailable, keeping id in memory")
        return session_id

    def _read(self) -> str | None:
        if self._memory_value:
            return self._memory_value
        if self.storage is None:
            return None
        try:
            value = self.storage.get(SESSION_STORAGE_KEY)
        except Exception:  # noqa: BLE001
            _logger.warning("Session storage unreadable, falling back to memory")
            return None
        if value:
            self._memory_value = value
        return value or None
