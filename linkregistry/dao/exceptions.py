"""Exceptions related to Data Access Objects (DAO) operations.

Classes:
    DAOError:
        Generic base class for DAO-related exceptions.

    ShortLinkNotFoundError:
        Raised when a ShortLinkModel is not found in the data store.

    ShortLinkAlreadyExistsError:
        Raised when attempting to insert a ShortLinkModel whose shortcode is taken.

    ShortLinkExpiredError:
        Raised when a click is recorded against a link past its expiry.

    DataStoreError:
        Raised when there is an error in the data store (e.g., connection issues, timeouts, OOM, etc.).

Example:
    >>> from linkregistry.dao.exceptions import ShortLinkNotFoundError
    >>> raise ShortLinkNotFoundError("Short link with code 'abc123' not found.")
    Traceback (most recent call last):
        ...
    linkregistry.dao.exceptions.ShortLinkNotFoundError: Short link with code 'abc123' not found.
"""

from linkregistry.exceptions import LinkRegistryError


class DAOError(LinkRegistryError):
    """Generic base class for DAO-related exceptions."""

    error_code = 'dao:dao_error'


class ShortLinkNotFoundError(DAOError):
    """Exception raised when a ShortLinkModel is not found in the data store."""

    error_code = 'dao:short_link_not_found'


class ShortLinkAlreadyExistsError(DAOError):
    """Exception raised when attempting to insert a ShortLinkModel whose shortcode already exists in the data store."""

    error_code = 'dao:short_link_already_exists'


class ShortLinkExpiredError(DAOError):
    """Exception raised when a click is recorded for a link past its expiry."""

    error_code = 'dao:short_link_expired'


class DataStoreError(DAOError):
    """Exception raised when there is an error in the data store.

    e.g. connection issues, timeouts, OOM, corrupted records, etc.
    """

    error_code = 'dao:data_store_error'
