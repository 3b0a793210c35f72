"""Tests for dependency closure resolution and lockfile verification."""

from dataclasses import replace
from importlib import metadata
from types import SimpleNamespace

import pytest

from telegoy.exceptions import IntegrityError, LockfileError
from telegoy.lock import (
    build_lockfile,
    check_integrity,
    closure_digest,
    diff_closures,
    read_project,
    resolve_closure,
    verify_lockfile,
)

_INSTALLED = {
    "python-telegram-bot": SimpleNamespace(
        version="21.6", requires=["httpx~=0.27", "aiolimiter; extra == 'rate-limiter'"]
    ),
    "httpx": SimpleNamespace(
        version="0.27.2", requires=["anyio", "certifi", "brotli; extra == 'brotli'"]
    ),
    "anyio": SimpleNamespace(version="4.6.0", requires=["idna>=2.8"]),
    "certifi": SimpleNamespace(version="2024.8.30", requires=None),
    "idna": SimpleNamespace(version="3.10", requires=[]),
    "structlog": SimpleNamespace(version="24.4.0", requires=[]),
    "aiolimiter": SimpleNamespace(version="1.1.0", requires=[]),
}


def _lookup(name):
    try:
        return _INSTALLED[name]
    except KeyError:
        raise metadata.PackageNotFoundError(name) from None


def test_resolve_closure_follows_transitive_requirements():
    closure = resolve_closure(
        ["python-telegram-bot>=21", "structlog"], lookup=_lookup
    )

    assert closure == {
        "anyio": "4.6.0",
        "certifi": "2024.8.30",
        "httpx": "0.27.2",
        "idna": "3.10",
        "python-telegram-bot": "21.6",
        "structlog": "24.4.0",
    }


def test_resolve_closure_follows_requested_extras():
    closure = resolve_closure(["python-telegram-bot[rate-limiter]"], lookup=_lookup)

    assert closure["aiolimiter"] == "1.1.0"


_OPTIONAL_INSTALLED = {
    "a": SimpleNamespace(version="1.0", requires=["c; extra == 'x'"]),
    "b": SimpleNamespace(version="1.0", requires=["a[x]"]),
    "c": SimpleNamespace(version="1.0", requires=[]),
}


def _lookup_optional(name):
    try:
        return _OPTIONAL_INSTALLED[name]
    except KeyError:
        raise metadata.PackageNotFoundError(name) from None


def test_resolve_closure_expands_extras_requested_later():
    forward = resolve_closure(["a", "b"], lookup=_lookup_optional)
    backward = resolve_closure(["b", "a"], lookup=_lookup_optional)

    assert forward == backward == {"a": "1.0", "b": "1.0", "c": "1.0"}


def test_resolve_closure_canonicalizes_names():
    closure = resolve_closure(["Python_Telegram.Bot"], lookup=_lookup_any_case)

    assert "python-telegram-bot" in closure


def _lookup_any_case(name):
    return _lookup(name.lower().replace("_", "-").replace(".", "-"))


def test_resolve_closure_missing_distribution():
    with pytest.raises(LockfileError, match="not installed: pydantic"):
        resolve_closure(["pydantic>=2"], lookup=_lookup)


def test_resolve_closure_rejects_unsatisfied_specifier():
    with pytest.raises(LockfileError, match="does not satisfy"):
        resolve_closure(["structlog>=25"], lookup=_lookup)


def test_closure_digest_is_order_independent_sri():
    a = closure_digest({"b": "2", "a": "1"})
    b = closure_digest({"a": "1", "b": "2"})

    assert a == b
    assert a.startswith("sha256-")
    assert a != closure_digest({"a": "1", "b": "3"})


def test_verify_accepts_matching_environment():
    closure = {"structlog": "24.4.0"}
    lockfile = build_lockfile(name="telegoy", requires=["structlog"], closure=closure)

    verify_lockfile(lockfile, requires=["structlog"], closure=dict(closure))


def test_verify_rejects_changed_dependency():
    lockfile = build_lockfile(
        name="telegoy", requires=["structlog"], closure={"structlog": "24.4.0"}
    )

    with pytest.raises(LockfileError, match="~ structlog 24.4.0 -> 25.1.0"):
        verify_lockfile(
            lockfile, requires=["structlog"], closure={"structlog": "25.1.0"}
        )


def test_verify_rejects_changed_declared_requirements():
    lockfile = build_lockfile(
        name="telegoy", requires=["structlog"], closure={"structlog": "24.4.0"}
    )

    with pytest.raises(LockfileError, match="Declared dependencies changed"):
        verify_lockfile(
            lockfile,
            requires=["structlog", "pydantic"],
            closure={"structlog": "24.4.0"},
        )


def test_corrupted_digest_fails_before_anything_else():
    lockfile = build_lockfile(
        name="telegoy", requires=["structlog"], closure={"structlog": "24.4.0"}
    )
    corrupted = replace(lockfile, digest="sha256-AAAA")

    with pytest.raises(IntegrityError):
        check_integrity(corrupted)
    # Even with a drifted environment the integrity failure wins.
    with pytest.raises(IntegrityError):
        verify_lockfile(corrupted, requires=[], closure={})


def test_diff_closures_lists_added_removed_changed():
    changes = diff_closures({"a": "1", "b": "1"}, {"b": "2", "c": "1"})

    assert changes == ["- a 1", "~ b 1 -> 2", "+ c 1"]


def test_read_project(tmp_path):
    pyproject = tmp_path / "pyproject.toml"
    pyproject.write_text(
        '[project]\nname = "telegoy"\ndependencies = ["structlog>=24"]\n',
        encoding="utf-8",
    )

    assert read_project(pyproject) == ("telegoy", ["structlog>=24"])


def test_read_project_without_project_table(tmp_path):
    pyproject = tmp_path / "pyproject.toml"
    pyproject.write_text("[tool.x]\n", encoding="utf-8")

    with pytest.raises(LockfileError, match="no \\[project\\] name"):
        read_project(pyproject)


def test_digest_covers_declared_requirements():
    lockfile = build_lockfile(
        name="telegoy", requires=["structlog"], closure={"structlog": "24.4.0"}
    )
    edited = replace(lockfile, requires=["structlog", "pydantic"])

    assert closure_digest(lockfile.closure, ["structlog"]) == lockfile.digest
    with pytest.raises(IntegrityError):
        check_integrity(edited)


def test_verify_rejects_lockfile_of_another_project():
    closure = {"structlog": "24.4.0"}
    lockfile = build_lockfile(name="other", requires=["structlog"], closure=closure)

    with pytest.raises(LockfileError, match="belongs to 'other'"):
        verify_lockfile(
            lockfile, requires=["structlog"], closure=dict(closure), name="telegoy"
        )
