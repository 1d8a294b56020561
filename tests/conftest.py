import pytest

from gemini_export.config import Settings
from helpers import FakeSleep


@pytest.fixture
def settings():
    return Settings.from_dict()


@pytest.fixture
def fake_sleep():
    return FakeSleep()
