"""Shortcode generation and allocation utilities

Functions:
    generate_shortcode(length=6) -> str:
        Draw a random base62 shortcode.
    allocate_shortcode(is_taken, requested=None, length=6, attempts=10, max_length=20) -> str:
        Return a shortcode that `is_taken` reports as free.

Example:
    >>> from linkregistry.utils import generate_shortcode
    >>> len(generate_shortcode())
    6
    >>> allocate_shortcode(lambda code: False, requested='mycode')
    'mycode'
"""

import logging
import secrets
import string
from collections.abc import Callable

from beartype import beartype

from linkregistry.constants import CodeGeneration, Limits
from linkregistry.dao.exceptions import ShortLinkAlreadyExistsError
from linkregistry.exceptions import CodeSpaceExhaustedError


logger = logging.getLogger(__name__)

ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits
BASE = len(ALPHABET)  # 26 lowercase + 26 uppercase + 10 digits


@beartype
def generate_shortcode(length: int = CodeGeneration.LENGTH) -> str:
    """Draw `length` characters uniformly from the base62 alphabet.

    Raises:
        ValueError: If length is not positive.
    """
    if length < 1:
        raise ValueError(f'Shortcode length must be a positive integer (given value: {length}).')
    return ''.join(secrets.choice(ALPHABET) for _ in range(length))


@beartype
def allocate_shortcode(
    is_taken: Callable[[str], bool],
    requested: str | None = None,
    length: int = CodeGeneration.LENGTH,
    attempts: int = CodeGeneration.ATTEMPTS_PER_LENGTH,
    max_length: int = Limits.SHORTCODE_MAX_LENGTH,
) -> str:
    """Return a shortcode not reported as taken.

    A requested shortcode is checked exactly once and never replaced by a
    generated one. Otherwise random codes are drawn `attempts` times at the
    current length; when all of them collide, the length grows by one.

    NOTE: this is an availability pre-check. The store's insert() remains the
          only place where a collision is finally decided.

    Args:
        is_taken (Callable[[str], bool]):
            Occupancy check, usually `dao.exists`.
        requested (str | None):
            Caller-chosen shortcode, already validated.
        length (int):
            Initial length of generated codes.
        attempts (int):
            Random draws per length before widening.
        max_length (int):
            Longest length tried before giving up.

    Raises:
        ShortLinkAlreadyExistsError:
            If `requested` is taken.
        CodeSpaceExhaustedError:
            If no free code was found up to `max_length`.
    """
    if requested is not None:
        if is_taken(requested):
            raise ShortLinkAlreadyExistsError(f"Short link with code '{requested}' already exists.")
        return requested

    for current_length in range(length, max_length + 1):
        for _ in range(attempts):
            candidate = generate_shortcode(current_length)
            if not is_taken(candidate):
                return candidate
        logger.warning(
            'Shortcode space crowded, widening generated codes.',
            extra={'length': current_length, 'attempts': attempts},
        )

    raise CodeSpaceExhaustedError(f'No free shortcode found between {length} and {max_length} characters.')
