"""Abstract base class for ShortLink data access objects (DAOs).

This class establishes a consistent contract for all ShortLink DAO implementations,
regardless of the underlying storage mechanism (e.g., Redis, in-process memory).

Responsibilities:
    - Own shortcode uniqueness: `insert()` is the only write path for new links.
    - Provide lookup, listing, click recording and expiry purging.
    - Standardize error handling across multiple data store implementations.

Example:
    Typical usage with a datastore-specific implementation:

        >>> from linkregistry.dao import ShortLinkMemoryDAO
        >>> dao = ShortLinkMemoryDAO()
        >>> dao.insert(link)
        <ShortLinkMemoryDAO>
        >>> dao.get('a1b2c3').target
        'https://example.com/blog/article-123'
"""

from abc import ABC, abstractmethod
from datetime import datetime

from linkregistry.models import ShortLinkModel, ClickEventModel


class ShortLinkBaseDAO(ABC):
    """Interface for ShortLink data access objects (DAOs).

    Methods:
        insert(short_link: ShortLinkModel, **kwargs) -> ShortLinkBaseDAO:
            Atomically check shortcode availability and store a new link.
            Raises ShortLinkAlreadyExistsError if the shortcode is taken.

        get(shortcode: str, **kwargs) -> ShortLinkModel:
            Retrieve a link by shortcode, even past its expiry.
            Raises ShortLinkNotFoundError if the entry does not exist.

        exists(shortcode: str, **kwargs) -> bool:
            Check whether a shortcode is occupied (expired entries included).

        record_click(shortcode: str, click: ClickEventModel, now: datetime | None, **kwargs) -> ShortLinkModel:
            Append a click to a live link's history and bump its counter.
            Raises ShortLinkNotFoundError or ShortLinkExpiredError.

        delete_expired_before(now: datetime, **kwargs) -> int:
            Remove every link with expires_at < now, return how many.

        clear(**kwargs) -> None:
            Remove every link.

        list_all(**kwargs) -> list[ShortLinkModel]:
            Return every link in insertion order.

        count(increment: bool, **kwargs) -> int:
            Return (and optionally increment) the insertion counter.

    All methods raise DataStoreError on connection, read or write failure.
    """

    @abstractmethod
    def insert(self, short_link: ShortLinkModel, **kwargs) -> 'ShortLinkBaseDAO':
        """Insert a new ShortLinkModel into the data store.

        Args:
            short_link (ShortLinkModel):
                The link to be inserted.

            **kwargs:
                Additional keyword arguments, used by data store.

        Returns:
            ShortLinkBaseDAO: self (for method chaining)

        Raises:
            ShortLinkAlreadyExistsError:
                If a link with the same shortcode already exists.

            DataStoreError:
                If there is an error in the data store.
        """
        pass

    @abstractmethod
    def get(self, shortcode: str, **kwargs) -> ShortLinkModel:
        """Retrieve a ShortLinkModel from the data store by its shortcode.

        Raises:
            ShortLinkNotFoundError:
                If no link with the given shortcode exists.

            DataStoreError:
                If there is an error in the data store.
        """
        pass

    @abstractmethod
    def exists(self, shortcode: str, **kwargs) -> bool:
        pass

    @abstractmethod
    def record_click(self, shortcode: str, click: ClickEventModel, now: datetime | None = None, **kwargs) -> ShortLinkModel:
        """Record a click against a live link.

        Args:
            shortcode (str):
                Shortcode of the visited link.

            click (ClickEventModel):
                Visit details.

            now (datetime | None):
                Reference moment for the expiry check. Defaults to the current UTC time.

        Returns:
            ShortLinkModel: the updated link.

        Raises:
            ShortLinkNotFoundError:
                If no link with the given shortcode exists.

            ShortLinkExpiredError:
                If now > expires_at. Nothing is recorded in that case.

            DataStoreError:
                If there is an error in the data store.
        """
        pass

    @abstractmethod
    def delete_expired_before(self, now: datetime, **kwargs) -> int:
        pass

    @abstractmethod
    def clear(self, **kwargs) -> None:
        pass

    @abstractmethod
    def list_all(self, **kwargs) -> list[ShortLinkModel]:
        pass

    @abstractmethod
    def count(self, increment: bool = False, **kwargs) -> int:
        """Retrieve the current insertion counter value from the data store.

        Args:
            increment (bool):
                If True, increment the counter by 1 before returning the value.

        Returns:
            int: The current counter value.

        Raises:
            DataStoreError:
                If there is an error in the data store.
        """
        pass
