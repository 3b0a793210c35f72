"""Lockfile parser and serializer."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from ..exceptions import LockfileError
from .model import LOCKFILE_VERSION, Lockfile


def serialize_lockfile(lockfile: Lockfile) -> str:
    payload = {
        "version": lockfile.version,
        "name": lockfile.name,
        "requires": sorted(lockfile.requires),
        "closure": dict(sorted(lockfile.closure.items())),
        "digest": lockfile.digest,
    }
    return json.dumps(payload, indent=2, sort_keys=True) + "\n"


def parse_lockfile(raw: str) -> Lockfile:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise LockfileError("Invalid lockfile JSON.", hint=str(exc)) from exc

    if not isinstance(payload, dict):
        raise LockfileError("Invalid lockfile payload type.")

    version = payload.get("version")
    if not isinstance(version, int) or isinstance(version, bool):
        raise LockfileError("Invalid lockfile `version` value.")
    if version != LOCKFILE_VERSION:
        raise LockfileError(
            f"Unsupported lockfile version {version}, expected {LOCKFILE_VERSION}.",
            hint="run `telegoy-lock generate`",
        )

    requires = payload.get("requires", [])
    if not isinstance(requires, list) or not all(isinstance(r, str) for r in requires):
        raise LockfileError("Invalid lockfile `requires` value.")

    return Lockfile(
        version=version,
        name=_required_str(payload, "name"),
        digest=_required_str(payload, "digest"),
        requires=list(requires),
        closure=_required_closure(payload, "closure"),
    )


def read_lockfile(path: str | Path) -> Lockfile:
    lock_path = Path(path)
    try:
        raw = lock_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise LockfileError(
            f"Lockfile does not exist: {lock_path}",
            hint="run `telegoy-lock generate`",
        ) from exc
    return parse_lockfile(raw)


def write_lockfile(lockfile: Lockfile, path: str | Path) -> Path:
    lock_path = Path(path)
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock_path.write_text(serialize_lockfile(lockfile), encoding="utf-8")
    return lock_path


def _required_str(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value:
        raise LockfileError(f"Invalid lockfile `{key}` value.")
    return value


def _required_closure(payload: dict[str, Any], key: str) -> dict[str, str]:
    value = payload.get(key)
    if not isinstance(value, dict):
        raise LockfileError(f"Invalid lockfile `{key}` value.")
    parsed: dict[str, str] = {}
    for name, version in value.items():
        if not isinstance(name, str) or not isinstance(version, str):
            raise LockfileError(f"Invalid lockfile `{key}` entry.")
        parsed[name] = version
    return parsed
