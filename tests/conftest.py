"""Shared fixtures for registry-retention tests."""

from datetime import datetime, timedelta, timezone

import pytest

from registry_retention.domain import Image, Tag

NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


def days_ago(days: int) -> datetime:
    return NOW - timedelta(days=days)


def make_tag(name, pushed_days=None, pulled_days=None, digests=None):
    """Build a Tag with push/pull times expressed in days before NOW."""
    return Tag(
        name=name,
        last_pushed=days_ago(pushed_days) if pushed_days is not None else None,
        last_pulled=days_ago(pulled_days) if pulled_days is not None else None,
        images=tuple(Image(digest=d) for d in (digests or [f"sha256:{name}"])),
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep tests away from the user's config file and CI inputs."""
    monkeypatch.setenv('HOME', str(tmp_path))
    monkeypatch.delenv('REGISTRY_RETENTION_CONFIG', raising=False)
    for name in ('REPOSITORY', 'USERNAME', 'PASSWORD', 'MATCH', 'RETENTION',
                 'MINIMUM', 'MULTIPLE', 'UNLESS', 'DRYRUN'):
        monkeypatch.delenv(f'INPUT_{name}', raising=False)
    return tmp_path


@pytest.fixture(name='make_tag')
def make_tag_fixture():
    return make_tag
