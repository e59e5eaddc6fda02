import logging
from datetime import datetime, UTC

from linkregistry.dao.base import ShortLinkBaseDAO
from linkregistry.dao.exceptions import ShortLinkExpiredError
from linkregistry.eventlog import EventLog
from linkregistry.models import ShortLinkModel, ClickEventModel


logger = logging.getLogger(__name__)


class ClickRecorder:
    """Record visits of short links through the store and report them."""

    def __init__(self, dao: ShortLinkBaseDAO, events: EventLog | None = None):
        self.dao = dao
        self.events = events or EventLog()

    def record(self, shortcode: str, click: ClickEventModel | None = None, now: datetime | None = None) -> ShortLinkModel:
        """Append a click to a live link.

        Raises:
            ShortLinkNotFoundError: unknown shortcode.
            ShortLinkExpiredError: link past its expiry, nothing recorded.
            DataStoreError: storage failure.
        """
        now = now or datetime.now(UTC)
        click = click or ClickEventModel(timestamp=now)

        try:
            short_link = self.dao.record_click(shortcode, click, now=now)
        except ShortLinkExpiredError:
            logger.info('Click on expired short link ignored.', extra={'shortcode': shortcode})
            self.events.warn('url-redirect', 'Attempted access to expired URL', shortcode=shortcode)
            raise

        logger.debug('Click recorded.', extra={'shortcode': shortcode, 'click_count': short_link.click_count})
        self.events.url_accessed(short_link, click)
        return short_link
