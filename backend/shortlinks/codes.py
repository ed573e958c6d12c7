"""Short code generation."""

import secrets
import string
from typing import Callable

from .errors import CapacityExhausted
from .logging_config import get_logger

logger = get_logger(__name__)


class CodeGenerator:
    """Generate random short codes and allocate ones not yet in use."""
    
    # Base62 characters (alphanumeric, case-sensitive)
    ALPHABET = string.ascii_letters + string.digits
    
    def __init__(self, length: int = 7, max_attempts: int = 100):
        """
        Args:
            length: Length of generated codes
            max_attempts: Candidates tried by allocate() before giving up
        """
        self.length = length
        self.max_attempts = max_attempts
    
    def generate(self) -> str:
        """Generate a random code from a cryptographically strong source."""
        return ''.join(secrets.choice(self.ALPHABET) for _ in range(self.length))
    
    def allocate(self, is_taken: Callable[[str], bool]) -> str:
        """
        Return a generated code for which is_taken() is false.
        
        Raises:
            CapacityExhausted: if every candidate collided.
        """
        for attempt in range(self.max_attempts):
            candidate = self.generate()
            if not is_taken(candidate):
                if attempt:
                    logger.debug(f"Allocated code after {attempt + 1} attempts")
                return candidate
        
        logger.error(f"Failed to generate unique code after {self.max_attempts} attempts")
        raise CapacityExhausted()
