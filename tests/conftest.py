import sys
import os

# Add project root to sys.path so tests can import from all modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
# Test helpers (factories.py) live next to this file
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import pytest  # noqa: E402
from hypothesis import settings  # noqa: E402

from factories import RecordingObserver  # noqa: E402
from session.detection_session import DetectionSession  # noqa: E402

# CI profile: more examples for thorough testing
settings.register_profile("ci", max_examples=200)
# Dev profile: fewer examples for faster iteration
settings.register_profile("dev", max_examples=100)
# Default to dev profile
settings.load_profile("dev")


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture
def session(observer):
    """已启动、带记录观察者的检测会话"""
    s = DetectionSession(observer=observer)
    s.start()
    return s
