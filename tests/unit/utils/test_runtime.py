"""Unit tests for runtime utilities in runtime.py.

Test coverage includes:

1. running_locally() behavior
"""

import pytest

from linkregistry.constants import ENV
from linkregistry.utils.runtime import running_locally


@pytest.mark.parametrize(
    'app_env, sam_flag, expected',
    [
        ('local', None, True),
        ('LOCAL', None, True),
        ('dev', None, False),
        ('dev', 'true', True),
    ],
)
def test_running_locally(monkeypatch, app_env, sam_flag, expected):
    """running_locally() evaluates local execution correctly."""
    monkeypatch.setenv(ENV.App.APP_ENV, app_env)

    if sam_flag is None:
        monkeypatch.delenv(ENV.App.AWS_SAM_LOCAL, raising=False)
    else:
        monkeypatch.setenv(ENV.App.AWS_SAM_LOCAL, sam_flag)

    assert running_locally() is expected
