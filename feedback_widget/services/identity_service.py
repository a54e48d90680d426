"""
Identity Manager: durable client id + per-load session id.
===========================================================

client id: ``client_`` + two random base-36 segments + base-36 epoch ms.
           Generated once per durable-store scope and reused afterwards.
session id: ``sess_`` + two random base-36 segments. Fresh for every
            widget instantiation, never persisted.

Identifiers are for non-adversarial uniqueness only. The random source is
injected so tests can seed it; it is NOT cryptographically secure.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Optional

from feedback_widget.config import settings
from feedback_widget.services.storage import KeyValueStore

logger = logging.getLogger(__name__)

BASE36_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
SEGMENT_LENGTH = 11  # ~56 bits per segment

SESSION_PREFIX = "sess_"
CLIENT_PREFIX = "client_"


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("value must be non-negative")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(BASE36_ALPHABET[rem])
    return "".join(reversed(digits))


def random_segment(rng: random.Random, length: int = SEGMENT_LENGTH) -> str:
    return "".join(rng.choice(BASE36_ALPHABET) for _ in range(length))


@dataclass(frozen=True)
class SessionIdentity:
    session_id: str
    client_id: str


class IdentityManager:
    """Produces the identifiers attached to every submission."""

    def __init__(
        self,
        durable_store: KeyValueStore,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
        client_id_key: Optional[str] = None,
    ):
        self._store = durable_store
        self._rng = rng or random.Random()
        self._clock = clock
        self._key = client_id_key or settings.client_id_key

    def generate_session_id(self) -> str:
        return SESSION_PREFIX + random_segment(self._rng) + random_segment(self._rng)

    def generate_client_id(self) -> str:
        return (
            CLIENT_PREFIX
            + random_segment(self._rng)
            + random_segment(self._rng)
            + to_base36(int(self._clock() * 1000))
        )

    def get_or_create_client_id(self) -> str:
        existing = self._store.get(self._key)
        if existing:
            return existing

        client_id = self.generate_client_id()
        self._store.set(self._key, client_id)
        logger.info("Generated new client id %s", client_id[:16])
        return client_id

    def resolve(self) -> SessionIdentity:
        """Identity for one widget instantiation."""
        return SessionIdentity(
            session_id=self.generate_session_id(),
            client_id=self.get_or_create_client_id(),
        )
