"""Tests for apt index throttling"""

import os

import pytest

from voono.apt import PackageCache
from voono.errors import CommandError

MTIME = 1_700_000_000


@pytest.fixture
def stamp(tmp_path):
    path = tmp_path / "update-success-stamp"
    path.touch()
    os.utime(path, (MTIME, MTIME))
    return path


def updates(runner):
    return runner.find("apt-get", "update")


def test_refresh_without_marker(runner, tmp_path):
    cache = PackageCache(runner, tmp_path / "missing-stamp")
    assert cache.is_stale()
    assert cache.update_once() is True
    assert len(updates(runner)) == 1


@pytest.mark.parametrize("age,refreshed", [(0, False), (1800, False), (3600, False), (3601, True), (86400, True)])
def test_refresh_boundary(runner, stamp, age, refreshed):
    cache = PackageCache(runner, stamp, clock=lambda: MTIME + age)
    assert cache.update_once() is refreshed
    assert len(updates(runner)) == (1 if refreshed else 0)


def test_refresh_at_most_once_per_run(runner, tmp_path):
    cache = PackageCache(runner, tmp_path / "missing-stamp")
    cache.update_once()
    cache.update_once()
    cache.update_once()
    assert len(updates(runner)) == 1


def test_refresh_failure_is_fatal(runner, tmp_path):
    runner.on("apt-get", "update", returncode=100, stderr="E: Could not get lock")
    cache = PackageCache(runner, tmp_path / "missing-stamp")
    with pytest.raises(CommandError) as exc:
        cache.update_once()
    assert exc.value.returncode == 100


def test_install_is_noninteractive(runner, stamp):
    cache = PackageCache(runner, stamp)
    cache.install("curl", "git")
    (command,) = runner.commands
    assert command.argv == ("apt-get", "-y", "install", "curl", "git")
    assert ("DEBIAN_FRONTEND", "noninteractive") in command.env


def test_install_failure_is_fatal_by_default(runner, stamp):
    runner.on("apt-get", "-y", "install", returncode=100)
    with pytest.raises(CommandError):
        PackageCache(runner, stamp).install("nginx")


def test_install_failure_can_be_tolerated(runner, stamp):
    runner.on("apt-get", "-y", "install", returncode=100)
    assert PackageCache(runner, stamp).install("docker-compose-plugin", tolerate=True) is False
