"""Application-level exceptions.

Storage-related exceptions live in `linkregistry.dao.exceptions`; this module
holds the errors raised by validation, code allocation and configuration.

Example:
    >>> from linkregistry.exceptions import ValidationError, ValidationReason
    >>> raise ValidationError('shortcode', ValidationReason.TOO_SHORT, 'Shortcode must be at least 3 characters long')
    Traceback (most recent call last):
        ...
    linkregistry.exceptions.ValidationError: Shortcode must be at least 3 characters long
"""

from enum import StrEnum


class LinkRegistryError(Exception):
    """Base exception for all application-specific errors."""

    error_code = 'app:link_registry_error'


class ValidationReason(StrEnum):
    REQUIRED = 'Required'
    TOO_SHORT = 'TooShort'
    TOO_LONG = 'TooLong'
    INVALID_FORMAT = 'InvalidFormat'
    INVALID_CHARS = 'InvalidChars'
    RESERVED = 'Reserved'
    INVALID_EXPIRY = 'InvalidExpiry'
    DUPLICATE_IN_BATCH = 'DuplicateInBatch'


class ValidationError(LinkRegistryError):
    """Raised when a user-supplied value fails validation.

    Attributes:
        field (str): name of the offending field ('url', 'shortcode', 'expiry', 'batch').
        reason (ValidationReason): machine-readable failure reason.
    """

    error_code = 'validation:validation_error'

    def __init__(self, field: str, reason: ValidationReason, message: str | None = None):
        self.field = field
        self.reason = reason
        self.message = message or f'{field}: {reason}'
        super().__init__(self.message)


class BatchValidationError(ValidationError):
    """Raised when a batch is rejected as a whole (wrong type, empty, too large)."""

    error_code = 'validation:batch_validation_error'

    def __init__(self, reason: ValidationReason, message: str):
        super().__init__('batch', reason, message)


class CodeSpaceExhaustedError(LinkRegistryError):
    """Raised when no free shortcode could be found within the retry budget."""

    error_code = 'app:code_space_exhausted_error'


class ConfigurationError(LinkRegistryError):
    """Base exception for all configuration errors."""

    error_code = 'config:configuration_error'


class MissingEnvironmentVariableError(ConfigurationError, KeyError):
    """Raised when a required environment variable is missing."""

    error_code = 'config:missing_environment_variable_error'


class BadConfigurationError(ConfigurationError):
    """Raised when the application is configured with invalid parameters."""

    error_code = 'config:bad_configuration_error'
