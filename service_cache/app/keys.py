"""
Cache key validation.
"""

import re
from dataclasses import dataclass

from shared.errors import InvalidKeyError

# ASCII digits only; str.isdigit and \d also accept other Unicode digits.
CACHE_KEY_PATTERN = re.compile(r"[0-9]{3}")
ENTRY_SUFFIX = ".jpg"


@dataclass(frozen=True)
class CacheKey:
    """A validated 3-digit HTTP status code identifying one cached image."""

    value: str

    def __post_init__(self):
        if not is_valid_key(self.value):
            raise InvalidKeyError(details={"key": self.value})

    @classmethod
    def parse(cls, raw: str) -> "CacheKey":
        """Validate a raw key taken verbatim from the request path."""
        return cls(raw)

    @property
    def filename(self) -> str:
        """Storage file name for the entry."""
        return f"{self.value}{ENTRY_SUFFIX}"

    def __str__(self) -> str:
        return self.value


def is_valid_key(raw) -> bool:
    """Return True if ``raw`` is a non-empty 3-digit string."""
    return isinstance(raw, str) and CACHE_KEY_PATTERN.fullmatch(raw) is not None
