"""Shared fixtures for backup warden tests."""

from datetime import datetime

import pytest

from backup_warden.core.context import WardenContext
from backup_warden.core.models import WardenConfig


class FixedClock:
    """Clock returning a settable moment."""

    def __init__(self, moment: datetime):
        self.moment = moment

    def __call__(self) -> datetime:
        return self.moment


@pytest.fixture
def watch_dir(tmp_path):
    """Watch folder with a small nested tree."""
    d = tmp_path / "watch"
    (d / "docs" / "deep").mkdir(parents=True)
    (d / "notes.txt").write_text("first draft")
    (d / "docs" / "report.md").write_text("# Report\n")
    (d / "docs" / "deep" / "data.bin").write_bytes(bytes(range(256)))
    return d


@pytest.fixture
def clock():
    return FixedClock(datetime(2024, 1, 15, 14, 30))


@pytest.fixture
def make_context(watch_dir, tmp_path, clock):
    """Factory building a context for the watch folder and named locations."""

    def _make(*location_names, retention_days=30, **overrides):
        names = location_names or ("backup_a",)
        config = WardenConfig(
            watch_folder=str(watch_dir),
            backup_locations=tuple(str(tmp_path / name) for name in names),
            retention_days=retention_days,
            **overrides,
        )
        return WardenContext.from_config(config, clock=clock)

    return _make


def tree_contents(root):
    """Map of relative file path -> bytes for everything under root."""
    return {
        str(p.relative_to(root)): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }
