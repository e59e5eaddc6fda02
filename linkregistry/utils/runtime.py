"""Runtime utilities

Functions:
    running_locally() -> bool:
        True if running in local SAM or a local shell, False otherwise.

Example:
    >>> from linkregistry.utils.runtime import running_locally
    >>> os.environ['APP_ENV'] = 'local'
    >>> running_locally()
    True
    >>> os.environ['APP_ENV'] = 'dev'
    >>> running_locally()
    False
"""

import os

from linkregistry.constants import ENV


def running_locally() -> bool:
    """Check if the code runs locally (sam local invoke or APP_ENV=local)

    Returns:
        bool: True if running locally, False otherwise.
    """
    env = os.getenv(ENV.App.APP_ENV, '').lower()
    return env == 'local' or os.getenv(ENV.App.AWS_SAM_LOCAL) == 'true'
