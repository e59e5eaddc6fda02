"""Link registry facade

LinkRegistry wires the validators, code allocation, the store, click
recording, redirect resolution, sweeping and statistics behind the
operations the presentation layer calls.

Error policy:
    - Validation and duplicate-shortcode problems come back as per-item
      errors from add_links().
    - Storage failures are logged and degrade to empty/zero results on the
      read, sweep and clear paths; lookups degrade to "not found".
    - Event log problems never surface.

Example:
    >>> registry = LinkRegistry(ShortLinkMemoryDAO(), origin='https://sho.rt')
    >>> result = registry.add_links([{'url': 'example.com/foo', 'expiry': 60}])
    >>> link = result.created[0]
    >>> registry.short_url(link)
    'https://sho.rt/Xa91Qz'
    >>> registry.resolve(link.shortcode).status
    <RedirectStatus.VALID: 'Valid'>
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Any

from linkregistry.constants import CodeGeneration, Limits
from linkregistry.dao import ShortLinkBaseDAO, ShortLinkMemoryDAO, ShortLinkRedisDAO
from linkregistry.dao.exceptions import DataStoreError, ShortLinkAlreadyExistsError, ShortLinkNotFoundError
from linkregistry.eventlog import EventLog, build_event_log
from linkregistry.exceptions import BadConfigurationError, BatchValidationError, CodeSpaceExhaustedError, ValidationError
from linkregistry.models import ShortLinkModel, ClickEventModel, StatsSnapshot
from linkregistry.registry.clicks import ClickRecorder
from linkregistry.registry.resolver import Redirect, RedirectResolver
from linkregistry.registry.statistics import StatisticsAggregator
from linkregistry.registry.sweeper import ExpirySweeper
from linkregistry.utils.config import RegistrySettings, registry_settings
from linkregistry.utils.shortener import allocate_shortcode
from linkregistry.utils.validators import ItemError, LinkCandidate, validate_batch, validate_expiry, validate_shortcode, validate_url


logger = logging.getLogger(__name__)

# A generated code can still lose the insert race to a concurrent writer
GENERATED_INSERT_ATTEMPTS = 3

DUPLICATE_SHORTCODE = 'DuplicateShortcode'
STORAGE_FAILURE = 'StorageError'
CODE_SPACE_EXHAUSTED = 'CodeSpaceExhausted'


@dataclass
class AddLinksResult:
    created: list[ShortLinkModel] = field(default_factory=list)
    errors: list[ItemError] = field(default_factory=list)

    def to_dict(self, origin: str) -> dict[str, Any]:
        return {
            'created': [dict(link.to_dict(), short_url=link.short_url(origin)) for link in self.created],
            'errors': [error.to_dict() for error in self.errors],
        }


class LinkRegistry:
    def __init__(
        self,
        dao: ShortLinkBaseDAO,
        events: EventLog | None = None,
        origin: str = RegistrySettings.origin,
        code_length: int = CodeGeneration.LENGTH,
        batch_max_size: int = Limits.BATCH_MAX_SIZE,
    ):
        self.dao = dao
        self.events = events or EventLog()
        self.origin = origin
        self.code_length = code_length
        self.batch_max_size = batch_max_size

        self.recorder = ClickRecorder(dao, self.events)
        self.resolver = RedirectResolver(dao, self.recorder)
        self.sweeper = ExpirySweeper(dao, self.events)
        self.aggregator = StatisticsAggregator(dao)

    # -------------------------------
    # Write path
    # -------------------------------

    def add_links(self, batch: Any, now: datetime | None = None) -> AddLinksResult:
        """Validate a batch of candidates and store the valid ones.

        Every candidate is reported either in `created` (input order) or in
        `errors` (1-based index). A batch rejected as a whole yields a single
        error with index 0.
        """
        now = now or datetime.now(UTC)
        result = AddLinksResult()

        try:
            validation = validate_batch(batch, max_size=self.batch_max_size, now=now)
        except BatchValidationError as error:
            rejected = len(batch) if isinstance(batch, (list, tuple)) else batch
            self.events.validation_failed('batch', rejected, error.message)
            result.errors.append(ItemError(index=0, field='batch', reason=error.reason, message=error.message))
            return result

        for item_error in validation.errors:
            self.events.validation_failed(item_error.field, item_error.value, item_error.message)

        result.errors.extend(validation.errors)
        for candidate in validation.valid_entries:
            try:
                result.created.append(self._create(candidate, now))
            except ShortLinkAlreadyExistsError:
                result.errors.append(ItemError(candidate.index, 'shortcode', DUPLICATE_SHORTCODE, f'URL {candidate.index}: Shortcode already exists'))
            except CodeSpaceExhaustedError:
                logger.error('No free shortcode available.', extra={'index': candidate.index})
                result.errors.append(ItemError(candidate.index, 'shortcode', CODE_SPACE_EXHAUSTED, f'URL {candidate.index}: No shortcode available'))
            except DataStoreError as error:
                logger.exception('Failed to store short link.', extra={'index': candidate.index})
                self.events.error('storage', 'Failed to add URL', error)
                result.errors.append(ItemError(candidate.index, 'url', STORAGE_FAILURE, f'URL {candidate.index}: Failed to save'))

        result.errors.sort(key=lambda error: error.index)
        if result.errors:
            self.events.warn('storage', 'Some URLs failed to save', errorCount=len(result.errors))
        return result

    def add_link(self, url: str, shortcode: str | None = None, expiry: Any = None, now: datetime | None = None) -> ShortLinkModel:
        """Validate and store a single link.

        Raises:
            ValidationError: invalid url, shortcode or expiry.
            ShortLinkAlreadyExistsError: explicit shortcode already taken.
            CodeSpaceExhaustedError: no free generated shortcode.
            DataStoreError: storage failure.
        """
        now = now or datetime.now(UTC)
        try:
            target = validate_url(url)
            code = validate_shortcode(shortcode)
            expires_at, minutes = validate_expiry(expiry, now=now)
        except ValidationError as error:
            rejected = {'url': url, 'shortcode': shortcode, 'expiry': expiry}.get(error.field)
            self.events.validation_failed(error.field, rejected, error.message)
            raise
        return self._create(LinkCandidate(target, code, expires_at, minutes, index=1), now)

    def _create(self, candidate: LinkCandidate, now: datetime) -> ShortLinkModel:
        attempts = 1 if candidate.shortcode is not None else GENERATED_INSERT_ATTEMPTS
        for attempt in range(1, attempts + 1):
            shortcode = allocate_shortcode(self.dao.exists, requested=candidate.shortcode, length=self.code_length)
            short_link = ShortLinkModel(
                target=candidate.target,
                shortcode=shortcode,
                created_at=now,
                expires_at=candidate.expires_at,
                expiry_minutes=candidate.expiry_minutes,
                seq=self.dao.count(increment=True),
            )
            try:
                self.dao.insert(short_link)
            except ShortLinkAlreadyExistsError:
                if attempt == attempts:
                    raise
                logger.info('Generated shortcode taken concurrently, allocating another.', extra={'shortcode': shortcode})
                continue

            logger.info('Short link created.', extra={'shortcode': shortcode, 'expires_at': short_link.expires_at})
            self.events.url_shortened(short_link)
            return short_link

    # -------------------------------
    # Read path
    # -------------------------------

    def list_links(self) -> list[ShortLinkModel]:
        try:
            return self.dao.list_all()
        except DataStoreError as error:
            logger.exception('Failed to list short links.')
            self.events.error('storage', 'Failed to retrieve URLs from storage', error)
            return []

    def get_link(self, shortcode: str) -> ShortLinkModel:
        """Return a link, expired or not.

        Raises:
            ShortLinkNotFoundError: unknown shortcode, or the store could not be read.
        """
        try:
            return self.dao.get(shortcode)
        except DataStoreError as error:
            logger.exception('Failed to get short link.', extra={'shortcode': shortcode})
            self.events.error('storage', 'Failed to get URL by shortcode', error)
            raise ShortLinkNotFoundError(f"Short link with code '{shortcode}' not found.") from error

    def record_click(self, shortcode: str, click: ClickEventModel | None = None, now: datetime | None = None) -> ShortLinkModel:
        """Record a click on a live link.

        Raises:
            ShortLinkNotFoundError: unknown shortcode, or the store could not be written.
            ShortLinkExpiredError: link past its expiry.
        """
        try:
            return self.recorder.record(shortcode, click, now=now)
        except DataStoreError as error:
            logger.exception('Failed to record click.', extra={'shortcode': shortcode})
            self.events.error('storage', 'Failed to record click', error)
            raise ShortLinkNotFoundError(f"Short link with code '{shortcode}' not found.") from error

    def resolve(self, shortcode: str, user_agent: str = '', referrer: str = '', now: datetime | None = None) -> Redirect:
        return self.resolver.resolve(shortcode, user_agent=user_agent, referrer=referrer, now=now)

    def statistics(self, now: datetime | None = None) -> StatsSnapshot:
        try:
            return self.aggregator.snapshot(now=now)
        except DataStoreError as error:
            logger.exception('Failed to compute statistics.')
            self.events.error('storage', 'Failed to get statistics', error)
            return StatsSnapshot()

    def short_url(self, short_link: ShortLinkModel) -> str:
        return short_link.short_url(self.origin)

    # -------------------------------
    # Maintenance
    # -------------------------------

    def sweep(self, now: datetime | None = None) -> int:
        return self.sweeper.sweep(now=now)

    def clear_all(self) -> None:
        try:
            self.dao.clear()
        except DataStoreError as error:
            logger.exception('Failed to clear short links.')
            self.events.error('storage', 'Failed to clear data', error)
            return
        logger.info('All short links cleared.')
        self.events.info('storage', 'All data cleared')


def build_dao(app_config: dict, prefix: str | None = None) -> ShortLinkBaseDAO:
    """Create the store selected by a loaded configuration

    Example:
        >>> build_dao({'redis': {'host': 'localhost', 'port': 6379, 'db': 0}}, prefix='linkregistry:dev')
        <ShortLinkRedisDAO>
    """
    if 'redis' in app_config:
        redis_config = {f'redis_{k}': v for k, v in app_config['redis'].items()}
        return ShortLinkRedisDAO(**redis_config, prefix=prefix)
    if 'memory' in app_config:
        return ShortLinkMemoryDAO()
    raise BadConfigurationError(f'No supported backend in configuration (given sections: {sorted(app_config)}).')


def build_registry(app_config: dict, prefix: str | None = None, events: EventLog | None = None) -> LinkRegistry:
    settings = registry_settings(app_config)
    return LinkRegistry(
        build_dao(app_config, prefix=prefix),
        events=events or build_event_log(settings.event_log),
        origin=settings.origin,
        code_length=settings.code_length,
        batch_max_size=settings.batch_max_size,
    )
