import time

import pytest


@pytest.fixture
def berlin_system_zone(monkeypatch):
    """Run the test with the process-wide local zone set to Central European time."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    # POSIX rule string, needs no tz database
    monkeypatch.setenv("TZ", "CET-1CEST,M3.5.0,M10.5.0/3")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()
