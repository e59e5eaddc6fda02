from unittest.mock import MagicMock

import pytest

from linkregistry.dao import ShortLinkMemoryDAO
from linkregistry.eventlog import EventLog


@pytest.fixture
def dao():
    return ShortLinkMemoryDAO()


@pytest.fixture
def events():
    return MagicMock(spec=EventLog)
