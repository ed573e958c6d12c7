"""Validation rules for user-chosen aliases."""

import re
from typing import Callable, Optional

from .errors import (
    AliasTaken,
    InvalidCharacters,
    InvalidFormat,
    InvalidLength,
    ReservedKeyword,
)

# Aliases that would shadow service routes or look official
RESERVED_KEYWORDS = frozenset({
    "admin", "api", "health", "analytics", "dashboard",
    "login", "logout", "register", "settings", "help",
    "about", "contact", "privacy", "terms", "docs",
})

ALIAS_PATTERN = re.compile(r'[A-Za-z0-9-]+')


def is_reserved(alias: str) -> bool:
    """Case-insensitive check against the reserved keyword set."""
    return alias.lower() in RESERVED_KEYWORDS


class AliasValidator:
    """
    Applies the alias rules in order; the first failing rule decides the
    error raised.
    
    1. length within [min_length, max_length]
    2. letters, digits and hyphens only
    3. no leading or trailing hyphen
    4. not a reserved keyword
    5. not already present in the key space (only when is_taken is given)
    """
    
    def __init__(self, min_length: int = 3, max_length: int = 20):
        self.min_length = min_length
        self.max_length = max_length
    
    def validate(self, alias: str, is_taken: Optional[Callable[[str], bool]] = None) -> None:
        if not (self.min_length <= len(alias) <= self.max_length):
            raise InvalidLength(
                f"Alias must be between {self.min_length} and {self.max_length} characters"
            )
        
        if not ALIAS_PATTERN.fullmatch(alias):
            raise InvalidCharacters()
        
        if alias.startswith("-") or alias.endswith("-"):
            raise InvalidFormat()
        
        if is_reserved(alias):
            raise ReservedKeyword(f"'{alias}' is a reserved keyword and cannot be used")
        
        if is_taken is not None and is_taken(alias):
            raise AliasTaken(f"Alias '{alias}' is already taken")
