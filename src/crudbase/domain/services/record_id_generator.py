"""Record ID generator service.

Generates record IDs in ``<epoch-millis>-<9 base36 chars>`` format, optionally
prefixed (the memory backend uses ``mem-``). IDs are regenerated until they
are unique within the target collection.
"""

import re
import secrets
import time
from typing import Callable, Iterable

from crudbase.core.exceptions import PersistenceError


class RecordIdExhaustedError(PersistenceError):
    """Raised when no unused ID could be produced."""

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(f"Could not generate a unique record ID after {attempts} attempts")


class RecordIdGenerator:
    """Generator for collision-free record IDs.

    Example IDs: 1718000000000-k3j9x0a1b, mem-1718000000000-0zz81mq2p
    """

    ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
    SUFFIX_LENGTH = 9
    MAX_ATTEMPTS = 100

    PATTERN = re.compile(r"^(?:[a-z]+-)?\d+-[0-9a-z]{9}$")

    def __init__(
        self,
        prefix: str = "",
        millis: Callable[[], int] | None = None,
    ) -> None:
        self.prefix = prefix
        self._millis = millis or (lambda: time.time_ns() // 1_000_000)

    def _random_suffix(self) -> str:
        return "".join(secrets.choice(self.ALPHABET) for _ in range(self.SUFFIX_LENGTH))

    def generate(self) -> str:
        """Generate a single ID without collision checking."""
        head = f"{self.prefix}-" if self.prefix else ""
        return f"{head}{self._millis()}-{self._random_suffix()}"

    def generate_unique(self, existing_ids: Iterable[str]) -> str:
        """Generate an ID not present in ``existing_ids``.

        Raises:
            RecordIdExhaustedError: If every attempt collided.
        """
        taken = set(existing_ids)
        for _ in range(self.MAX_ATTEMPTS):
            candidate = self.generate()
            if candidate not in taken:
                return candidate
        raise RecordIdExhaustedError(self.MAX_ATTEMPTS)

    @classmethod
    def validate(cls, record_id: str) -> bool:
        """Check whether a value looks like a generated record ID.

        Examples:
            >>> RecordIdGenerator.validate("1718000000000-k3j9x0a1b")
            True
            >>> RecordIdGenerator.validate("abc")
            False
        """
        if not isinstance(record_id, str):
            return False
        return bool(cls.PATTERN.match(record_id))
