"""
Shared fixtures for the inbox sorter tests
"""

import dataclasses

import pytest

from orchestrator.config import SorterSettings
from orchestrator.errors import OracleUnavailable
from sources.base import ClassificationOracle


class FakeOracle(ClassificationOracle):
    """Returns a canned reply and records every request"""

    def __init__(self, reply: str = ""):
        self.reply = reply
        self.requests = []

    @property
    def name(self) -> str:
        return "FakeOracle"

    def classify(self, request_text: str) -> str:
        self.requests.append(request_text)
        return self.reply


class FailingOracle(ClassificationOracle):
    """Always fails like an unreachable service"""

    def __init__(self):
        self.calls = 0

    @property
    def name(self) -> str:
        return "FailingOracle"

    def classify(self, request_text: str) -> str:
        self.calls += 1
        raise OracleUnavailable("connection refused")


@pytest.fixture
def library(tmp_path):
    """Library root with Rock and Jazz folders; the root is the inbox"""
    root = tmp_path / "music"
    root.mkdir()
    (root / "Rock").mkdir()
    (root / "Jazz").mkdir()
    return root.resolve()


@pytest.fixture
def make_settings(library):
    """Factory for SorterSettings rooted at the library fixture"""
    def _make(**overrides):
        settings = SorterSettings(api_key="test-key", root=library, inbox=library)
        return dataclasses.replace(settings, **overrides)
    return _make


@pytest.fixture
def settings(make_settings):
    return make_settings()
