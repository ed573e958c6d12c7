"""
Error taxonomy for the short-link engine.

Every error carries a stable ``code`` that the HTTP layer returns to
clients alongside the human readable message.
"""

from typing import Optional


class ShortLinkError(Exception):
    """Base class for all engine errors."""
    
    code = "error"
    default_message = "Short link error"
    
    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ShortLinkError):
    """A create request was rejected; the caller can fix the input."""
    
    code = "validation_error"
    default_message = "Invalid request"


class InvalidURL(ValidationError):
    code = "invalid_url"
    default_message = "URL must start with http:// or https://"


class InvalidLength(ValidationError):
    code = "invalid_length"
    default_message = "Alias must be between 3 and 20 characters"


class InvalidCharacters(ValidationError):
    code = "invalid_characters"
    default_message = "Alias can only contain letters, numbers, and hyphens"


class InvalidFormat(ValidationError):
    code = "invalid_format"
    default_message = "Alias cannot start or end with a hyphen"


class ReservedKeyword(ValidationError):
    code = "reserved_keyword"
    default_message = "This alias is a reserved keyword"


class AliasTaken(ValidationError):
    code = "alias_taken"
    default_message = "This alias is already taken"


class NotFound(ShortLinkError):
    """No active mapping is reachable under the requested code."""
    
    code = "not_found"
    default_message = "Short URL not found"


class Expired(ShortLinkError):
    """
    Internal signal raised when a lookup hits an alias past its expiry.
    ResolutionService converts it to NotFound before it reaches a client.
    """
    
    code = "expired"
    default_message = "Short URL has expired"


class CapacityExhausted(ShortLinkError):
    code = "capacity_exhausted"
    default_message = "Failed to generate unique code. Please try again."


class PersistenceError(ShortLinkError):
    code = "persistence_error"
    default_message = "Failed to save URL mapping"
