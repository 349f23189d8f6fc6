from datetime import datetime, timezone

import pytest

from vocab_srs.settings import default_settings


@pytest.fixture
def now():
    """A fixed review instant so due dates are reproducible."""
    return datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def settings():
    return default_settings()
