"""Pytest configuration and fixtures."""

import os
import re
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest

from scenewright.config import SceneWrightSettings, reset_settings, set_settings
from scenewright.models import Block, BlockType
from scenewright.storage import MemoryDocumentStore


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test")


@pytest.fixture(autouse=True)
def isolated_test_environment(tmp_path, monkeypatch):
    """Run every test with isolated settings and working directory.

    Prevents stray config files, .env files or SCENEWRIGHT_ variables from
    leaking into tests, and keeps any store file inside tmp_path.
    """
    for var in list(os.environ):
        if var.startswith("SCENEWRIGHT_"):
            monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)

    settings = SceneWrightSettings(
        store_path=tmp_path / "test_scenewright.db",
        identity="tester",
    )
    set_settings(settings)

    yield

    reset_settings()


@pytest.fixture
def fast_settings(tmp_path):
    """Settings with short timers for async persistence tests."""
    return SceneWrightSettings(
        store_path=tmp_path / "fast.db",
        identity="tester",
        autosave_delay_seconds=0.05,
        lock_ttl_seconds=60.0,
        conflict_window_seconds=5.0,
    )


@pytest.fixture
def memory_store():
    """Empty in-process document store."""
    return MemoryDocumentStore()


class FakeClock:
    """Settable clock returning aware UTC datetimes."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 5, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    """Deterministic wall clock for leases and conflict windows."""
    return FakeClock()


@pytest.fixture
def make_block() -> Callable[..., Block]:
    """Factory for blocks with readable ids."""
    counter = {"n": 0}

    def factory(block_type: BlockType, content: str = "", id: str | None = None):
        counter["n"] += 1
        return Block(id=id or f"b{counter['n']}", type=block_type, content=content)

    return factory


@pytest.fixture
def sample_document() -> list[Block]:
    """Two scenes with dialogue, a parenthetical and a transition."""
    return [
        Block(id="h1", type=BlockType.SCENE_HEADING, content="INT. KITCHEN - NIGHT"),
        Block(id="a1", type=BlockType.ACTION, content="Rain hammers the window."),
        Block(id="c1", type=BlockType.CHARACTER, content="MARA"),
        Block(id="p1", type=BlockType.PARENTHETICAL, content="(quietly)"),
        Block(id="d1", type=BlockType.DIALOGUE, content="We should go."),
        Block(id="c2", type=BlockType.CHARACTER, content="JONAH"),
        Block(id="d2", type=BlockType.DIALOGUE, content="Not yet."),
        Block(id="t1", type=BlockType.TRANSITION, content="CUT TO:"),
        Block(id="h2", type=BlockType.SCENE_HEADING, content="EXT. STREET - NIGHT"),
        Block(id="a2", type=BlockType.ACTION, content="They run."),
        Block(id="c3", type=BlockType.CHARACTER, content="Mara"),
        Block(id="d3", type=BlockType.DIALOGUE, content="Faster!"),
    ]


_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")


def strip_ansi_codes(text: str) -> str:
    """Strip ANSI escape sequences from CLI output."""
    return _ANSI_ESCAPE.sub("", text)


@pytest.fixture
def strip_ansi() -> Callable[[str], str]:
    """ANSI stripping helper for rich console output."""
    return strip_ansi_codes
