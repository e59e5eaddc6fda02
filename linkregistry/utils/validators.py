"""Validation of user-supplied link candidates

Every check is a pure function. Field rules are declared as ordered tables of
`Rule(check, reason, message)`; the first failing rule wins and raises a
ValidationError carrying the field name and the rule's reason.

Functions:
    validate_url(raw) -> str
        Normalize (add https:// when no scheme is given) and shape-check a URL.
    validate_shortcode(raw) -> str | None
        Check an optional custom shortcode. None means "generate one".
    validate_expiry(minutes, now=None) -> tuple[datetime, int]
        Resolve an optional TTL in minutes to an absolute expiry.
    validate_batch(candidates, max_size=5, now=None) -> BatchValidation
        Validate up to `max_size` candidates, reporting every problem per item.

Example:
    >>> validate_url('example.com/foo')
    'https://example.com/foo'
    >>> validate_shortcode('  ') is None
    True
    >>> validate_shortcode('admin')
    Traceback (most recent call last):
        ...
    linkregistry.exceptions.ValidationError: This shortcode is reserved
"""

import re
import urllib.parse
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, UTC
from typing import Any, NamedTuple

from linkregistry.constants import TTL, Limits, RESERVED_SHORTCODES
from linkregistry.exceptions import ValidationError, BatchValidationError, ValidationReason


class Rule(NamedTuple):
    check: Callable[[Any], bool]
    reason: ValidationReason
    message: str


# fmt: off
_URL_PATTERN = re.compile(
    r'^https?://'
    r'(?:[a-z\d](?:[a-z\d-]{0,61}[a-z\d])?\.)+'  # domain labels
    r'[a-z]{2,63}'                               # top-level domain
    r'(?::\d{1,5})?'                             # port
    r'(?:[/?#]\S*)?$',                           # path, query, fragment
    re.IGNORECASE,
)
# fmt: on
_SHORTCODE_PATTERN = re.compile(r'[A-Za-z0-9]+')


def _parses_as_url(url: str) -> bool:
    try:
        components = urllib.parse.urlsplit(url)
        port = components.port  # ValueError when out of range
    except ValueError:
        return False
    return components.scheme in {'http', 'https'} and bool(components.hostname) and port != 0


URL_LENGTH_RULES = (
    Rule(lambda url: len(url) <= Limits.URL_MAX_LENGTH, ValidationReason.TOO_LONG, f'URL is too long (max {Limits.URL_MAX_LENGTH} characters)'),
)

URL_SHAPE_RULES = (
    Rule(lambda url: _URL_PATTERN.match(url) is not None, ValidationReason.INVALID_FORMAT, 'Please enter a valid URL'),
    Rule(_parses_as_url, ValidationReason.INVALID_FORMAT, 'Please enter a valid URL'),
)

SHORTCODE_RULES = (
    Rule(lambda code: len(code) >= Limits.SHORTCODE_MIN_LENGTH, ValidationReason.TOO_SHORT, f'Shortcode must be at least {Limits.SHORTCODE_MIN_LENGTH} characters long'),
    Rule(lambda code: len(code) <= Limits.SHORTCODE_MAX_LENGTH, ValidationReason.TOO_LONG, f'Shortcode must be at most {Limits.SHORTCODE_MAX_LENGTH} characters long'),
    Rule(lambda code: _SHORTCODE_PATTERN.fullmatch(code) is not None, ValidationReason.INVALID_CHARS, 'Shortcode can only contain letters and numbers'),
    Rule(lambda code: code.lower() not in RESERVED_SHORTCODES, ValidationReason.RESERVED, 'This shortcode is reserved'),
)

EXPIRY_RULES = (
    Rule(lambda minutes: minutes >= TTL.MIN_MINUTES, ValidationReason.INVALID_EXPIRY, 'Expiry must be at least 1 minute'),
    Rule(lambda minutes: minutes <= TTL.MAX_MINUTES, ValidationReason.INVALID_EXPIRY, 'Expiry cannot exceed 1 year'),
)


def apply_rules(rules: tuple[Rule, ...], field_name: str, value: Any) -> None:
    """Raise a ValidationError for the first rule `value` fails"""
    for rule in rules:
        if not rule.check(value):
            raise ValidationError(field_name, rule.reason, rule.message)


def validate_url(raw: Any) -> str:
    """Validate and normalize a destination URL

    Raises:
        ValidationError: Required, TooLong or InvalidFormat.
    """
    if not isinstance(raw, str) or not raw.strip():
        raise ValidationError('url', ValidationReason.REQUIRED, 'URL is required')

    url = raw.strip()
    apply_rules(URL_LENGTH_RULES, 'url', url)

    if not url.lower().startswith(('http://', 'https://')):
        url = f'https://{url}'

    apply_rules(URL_SHAPE_RULES, 'url', url)
    return url


def validate_shortcode(raw: Any) -> str | None:
    """Validate an optional custom shortcode

    Returns:
        str | None: the trimmed shortcode, or None when absent/blank (auto-generate).

    Raises:
        ValidationError: TooShort, TooLong, InvalidChars or Reserved.
    """
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise ValidationError('shortcode', ValidationReason.INVALID_CHARS, 'Shortcode can only contain letters and numbers')

    code = raw.strip()
    if not code:
        return None

    apply_rules(SHORTCODE_RULES, 'shortcode', code)
    return code


def _parse_minutes(raw: Any) -> int:
    if isinstance(raw, bool):
        raise ValueError('booleans are not minutes')
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    if isinstance(raw, str):
        return int(raw.strip())
    raise ValueError(f'unsupported expiry value {raw!r}')


def validate_expiry(minutes: Any, now: datetime | None = None) -> tuple[datetime, int]:
    """Resolve an optional TTL (in minutes) to an absolute expiry moment

    Absent, None or blank values default to 30 minutes.

    Returns:
        tuple[datetime, int]: (expires_at, minutes)

    Raises:
        ValidationError: InvalidExpiry when unparsable or outside [1, 525600].

    Example:
        >>> expires_at, minutes = validate_expiry('45')
        >>> minutes
        45
    """
    now = now or datetime.now(UTC)

    if minutes is None or (isinstance(minutes, str) and not minutes.strip()):
        value = TTL.DEFAULT_MINUTES
    else:
        try:
            value = _parse_minutes(minutes)
        except ValueError:
            raise ValidationError('expiry', ValidationReason.INVALID_EXPIRY, 'Expiry must be a number') from None
        apply_rules(EXPIRY_RULES, 'expiry', value)

    return now + timedelta(minutes=value), value


@dataclass(frozen=True)
class LinkCandidate:
    target: str
    shortcode: str | None
    expires_at: datetime
    expiry_minutes: int
    index: int  # 1-based position in the submitted batch


@dataclass(frozen=True)
class ItemError:
    index: int  # 1-based position in the submitted batch
    field: str
    reason: ValidationReason | str
    message: str
    value: Any = field(default=None, compare=False, repr=False)  # rejected input, for the event log

    def to_dict(self) -> dict[str, Any]:
        return {'index': self.index, 'field': self.field, 'reason': str(self.reason), 'message': self.message}


@dataclass
class BatchValidation:
    valid_entries: list[LinkCandidate] = field(default_factory=list)
    errors: list[ItemError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


_FIELD_LABELS = {'url': '', 'shortcode': ' shortcode', 'expiry': ' expiry'}


def _item_error(index: int, error: ValidationError, value: Any) -> ItemError:
    label = _FIELD_LABELS.get(error.field, f' {error.field}')
    return ItemError(index, error.field, error.reason, f'URL {index}{label}: {error.message}', value=value)


def validate_batch(candidates: Any, max_size: int = Limits.BATCH_MAX_SIZE, now: datetime | None = None) -> BatchValidation:
    """Validate a batch of link candidates

    Each candidate is a mapping with a `url` and optional `shortcode` and
    `expiry` (minutes). Candidates are evaluated independently and never
    abort the batch. The second and later uses of the same explicit shortcode
    within the batch are rejected as DuplicateInBatch.

    Raises:
        BatchValidationError:
            If `candidates` is not a list, is empty, or holds more than `max_size` items.

    Example:
        >>> result = validate_batch([{'url': 'a.com', 'shortcode': 'abc'}, {'url': 'b.com', 'shortcode': 'abc'}])
        >>> [entry.index for entry in result.valid_entries]
        [1]
        >>> [(error.index, str(error.reason)) for error in result.errors]
        [(2, 'DuplicateInBatch')]
    """
    if not isinstance(candidates, (list, tuple)):
        raise BatchValidationError(ValidationReason.INVALID_FORMAT, 'Invalid input format')
    if not candidates:
        raise BatchValidationError(ValidationReason.REQUIRED, 'At least one URL is required')
    if len(candidates) > max_size:
        raise BatchValidationError(ValidationReason.TOO_LONG, f'Maximum {max_size} URLs allowed at once')

    now = now or datetime.now(UTC)
    result = BatchValidation()
    seen_shortcodes: set[str] = set()

    for index, candidate in enumerate(candidates, start=1):
        if not isinstance(candidate, Mapping):
            result.errors.append(_item_error(index, ValidationError('url', ValidationReason.INVALID_FORMAT, 'Invalid entry format'), candidate))
            continue

        item_errors: list[ItemError] = []
        target = shortcode = expiry = None

        try:
            target = validate_url(candidate.get('url'))
        except ValidationError as error:
            item_errors.append(_item_error(index, error, candidate.get('url')))

        try:
            shortcode = validate_shortcode(candidate.get('shortcode'))
        except ValidationError as error:
            item_errors.append(_item_error(index, error, candidate.get('shortcode')))
        else:
            if shortcode is not None and shortcode in seen_shortcodes:
                item_errors.append(
                    ItemError(index, 'shortcode', ValidationReason.DUPLICATE_IN_BATCH, f'URL {index}: Duplicate shortcode in batch', value=shortcode)
                )
            elif shortcode is not None:
                seen_shortcodes.add(shortcode)

        try:
            expiry = validate_expiry(candidate.get('expiry'), now=now)
        except ValidationError as error:
            item_errors.append(_item_error(index, error, candidate.get('expiry')))

        if item_errors:
            result.errors.extend(item_errors)
        else:
            expires_at, minutes = expiry
            result.valid_entries.append(LinkCandidate(target, shortcode, expires_at, minutes, index))

    return result
