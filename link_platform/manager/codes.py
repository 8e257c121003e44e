"""
Short-code generation and grammar validation.

Provided pieces:
- RandomStrategy: uniform random Base62 code of a fixed length (default 6)
- generate_candidate: facade producing one candidate with the configured length
- validate_grammar: accept 6-8 characters drawn from [A-Za-z0-9], reject everything else

Notes:
- Candidates carry no uniqueness guarantee; the registry checks each one and
  the storage backend enforces uniqueness at insert time.
- There is no security requirement on the randomness, only uniform coverage of
  the code space. SystemRandom is used anyway so forked workers never share a
  seeded PRNG state.
"""

import random
import re
from dataclasses import dataclass, field
from typing import Optional

from link_platform.config import settings

BASE62_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"

MIN_CODE_LENGTH = 6
MAX_CODE_LENGTH = 8
DEFAULT_CODE_LENGTH = 6

# ASCII only; str.isalnum() accepts Unicode letters and digits.
_CODE_PATTERN = re.compile(r"[0-9A-Za-z]{%d,%d}" % (MIN_CODE_LENGTH, MAX_CODE_LENGTH))


@dataclass(frozen=True)
class RandomStrategy:
    """
    Random Base62 codes; rely on storage-level uniqueness (unique index + bounded retry).
    """
    length: int = DEFAULT_CODE_LENGTH
    _rng: random.SystemRandom = field(default_factory=random.SystemRandom, repr=False, compare=False)

    def __post_init__(self):
        if not MIN_CODE_LENGTH <= self.length <= MAX_CODE_LENGTH:
            raise ValueError(
                f"Code length must be between {MIN_CODE_LENGTH} and {MAX_CODE_LENGTH}"
            )

    def generate(self) -> str:
        return "".join(self._rng.choice(BASE62_ALPHABET) for _ in range(self.length))


def generate_candidate(length: Optional[int] = None) -> str:
    """
    Produce one random candidate code.

    Args:
        length (int, optional): Code length; defaults to settings.CODE_LENGTH (6 unless overridden).

    Returns:
        str: Code drawn uniformly from the 62-symbol alphabet.
    """
    return RandomStrategy(length=length or settings.CODE_LENGTH).generate()


def validate_grammar(code) -> bool:
    """Return True if `code` is a 6-8 character [A-Za-z0-9] string."""
    if not isinstance(code, str):
        return False
    return _CODE_PATTERN.fullmatch(code) is not None
