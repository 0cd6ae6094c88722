import os
from pathlib import Path

import pytest

from app.services.errors import InvalidPath, MissingKey
from app.services.key_resolver import KeyResolver

ROOT = Path("/data")


@pytest.fixture
def resolver():
    return KeyResolver(ROOT)


@pytest.mark.parametrize("key, expected", [
    ("images/logo.png", "/data/images/logo.png"),
    ("/images/logo.png", "/data/images/logo.png"),
    ("a//b", "/data/a/b"),
    ("a/./b", "/data/a/b"),
    ("a/b/../c", "/data/a/c"),
    (["a", "b", "c"], "/data/a/b/c"),
    (("x", "y.txt"), "/data/x/y.txt"),
])
def test_resolves_beneath_root(resolver, key, expected):
    assert resolver.resolve(key) == Path(expected)


def test_keys_that_collapse_to_root_are_accepted(resolver):
    assert resolver.resolve("/") == ROOT
    assert resolver.resolve("a/..") == ROOT


@pytest.mark.parametrize("key", [
    "../secret",
    "../../etc/passwd",
    "a/../../b",
    "a/b/../../../c",
    "//etc/passwd",
    "../data2/x",
    ["..", "etc", "passwd"],
    "a\x00b",
])
def test_traversal_is_rejected(resolver, key):
    with pytest.raises(InvalidPath) as exc_info:
        resolver.resolve(key)
    assert exc_info.value.message == "Invalid path"


@pytest.mark.parametrize("key", ["", [], [""]])
def test_empty_key_is_missing(resolver, key):
    with pytest.raises(MissingKey):
        resolver.resolve(key)


def test_resolution_does_not_touch_the_filesystem(resolver, monkeypatch):
    def forbidden(*args, **kwargs):
        raise AssertionError("filesystem accessed during resolution")

    monkeypatch.setattr(os, "stat", forbidden)
    monkeypatch.setattr(os, "lstat", forbidden)
    monkeypatch.setattr(os, "listdir", forbidden)

    assert resolver.resolve("a/b/c") == Path("/data/a/b/c")
    with pytest.raises(InvalidPath):
        resolver.resolve("../../etc/passwd")


def test_relative_root_is_made_absolute(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    resolver = KeyResolver(Path("uploads"))

    cwd = Path(os.getcwd())
    assert resolver.root == cwd / "uploads"
    assert resolver.resolve("a.txt") == cwd / "uploads" / "a.txt"
