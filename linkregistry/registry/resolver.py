"""Redirect resolution

A lookup starts in `Resolving` and ends in exactly one of:

    NOT_FOUND   shortcode unknown
    EXPIRED     shortcode known, now > expires_at
    VALID       shortcode live; carries the target and the time remaining

A VALID resolution records a click first. Click recording failures are
logged and never change the outcome. There is no retry state: resolving the
same shortcode again is a fresh evaluation.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, UTC
from enum import StrEnum

from linkregistry.dao.base import ShortLinkBaseDAO
from linkregistry.dao.exceptions import DAOError, DataStoreError, ShortLinkNotFoundError
from linkregistry.models import ShortLinkModel, ClickEventModel
from linkregistry.registry.clicks import ClickRecorder


logger = logging.getLogger(__name__)


class RedirectStatus(StrEnum):
    NOT_FOUND = 'NotFound'
    EXPIRED = 'Expired'
    VALID = 'Valid'


@dataclass(frozen=True)
class Redirect:
    status: RedirectStatus
    shortcode: str
    target: str | None = None
    time_remaining: timedelta | None = None
    link: ShortLinkModel | None = None


class RedirectResolver:
    def __init__(self, dao: ShortLinkBaseDAO, recorder: ClickRecorder):
        self.dao = dao
        self.recorder = recorder

    def resolve(self, shortcode: str, user_agent: str = '', referrer: str = '', now: datetime | None = None) -> Redirect:
        now = now or datetime.now(UTC)

        try:
            short_link = self.dao.get(shortcode)
        except ShortLinkNotFoundError:
            logger.info('Short link not found.', extra={'shortcode': shortcode, 'event': RedirectStatus.NOT_FOUND})
            return Redirect(RedirectStatus.NOT_FOUND, shortcode)
        except DataStoreError:
            logger.exception('Failed to read short link, treating as not found.', extra={'shortcode': shortcode})
            return Redirect(RedirectStatus.NOT_FOUND, shortcode)

        if short_link.is_expired(now):
            logger.info(
                'Short link expired.',
                extra={'shortcode': shortcode, 'event': RedirectStatus.EXPIRED, 'expires_at': short_link.expires_at},
            )
            return Redirect(RedirectStatus.EXPIRED, shortcode, link=short_link)

        click = ClickEventModel(timestamp=now, user_agent=user_agent or '', referrer=referrer or '')
        try:
            short_link = self.recorder.record(shortcode, click, now=now)
        except DAOError as error:
            logger.warning(
                'Failed to record click, redirecting anyway.',
                extra={'shortcode': shortcode, 'error': error.__class__.__name__},
            )

        logger.info('Short link resolved.', extra={'shortcode': shortcode, 'event': RedirectStatus.VALID})
        return Redirect(
            RedirectStatus.VALID,
            shortcode,
            target=short_link.target,
            time_remaining=short_link.time_remaining(now),
            link=short_link,
        )
