"""Dependency closure resolution, digests and verification."""

from __future__ import annotations

import base64
import hashlib
import json
import tomllib
from importlib import metadata
from pathlib import Path
from typing import Any, Callable, Iterable

from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name

from ..exceptions import IntegrityError, LockfileError
from .model import Lockfile

DIGEST_ALGORITHM = "sha256"

DistributionLookup = Callable[[str], Any]


def read_project(pyproject: str | Path) -> tuple[str, list[str]]:
    """Return ``(name, dependencies)`` from a pyproject ``[project]`` table."""
    path = Path(pyproject)
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise LockfileError(f"Project file does not exist: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise LockfileError(f"Invalid TOML in {path}", hint=str(exc)) from exc

    project = data.get("project")
    if not isinstance(project, dict) or not isinstance(project.get("name"), str):
        raise LockfileError(f"{path} has no [project] name.")
    dependencies = project.get("dependencies", [])
    if not isinstance(dependencies, list) or not all(
        isinstance(item, str) for item in dependencies
    ):
        raise LockfileError(f"{path} has an invalid [project].dependencies list.")
    return project["name"], list(dependencies)


def _parse_requirement(raw: str) -> Requirement:
    try:
        return Requirement(raw)
    except InvalidRequirement as exc:
        raise LockfileError(f"Invalid requirement: {raw!r}", hint=str(exc)) from exc


def _marker_applies(requirement: Requirement, extras: frozenset[str]) -> bool:
    if requirement.marker is None:
        return True
    return any(
        requirement.marker.evaluate({"extra": extra}) for extra in (extras or {""})
    )


def resolve_closure(
    requirements: Iterable[str],
    *,
    lookup: DistributionLookup = metadata.distribution,
) -> dict[str, str]:
    """Map every installed distribution reachable from ``requirements`` to its version.

    Requirements whose environment markers do not apply are not followed.
    A distribution reached again with extras it was not yet expanded for is
    walked again for those extras only, so the result does not depend on
    the order of ``requirements``.
    """
    closure: dict[str, str] = {}
    expanded: dict[str, frozenset[str]] = {}
    pending: list[tuple[Requirement, frozenset[str]]] = [
        (_parse_requirement(raw), frozenset()) for raw in requirements
    ]

    while pending:
        requirement, parent_extras = pending.pop()
        if not _marker_applies(requirement, parent_extras):
            continue

        name = canonicalize_name(requirement.name)
        try:
            dist = lookup(requirement.name)
        except metadata.PackageNotFoundError as exc:
            raise LockfileError(
                f"Required distribution is not installed: {requirement.name}",
                hint="install the project first, e.g. `pip install -e .`",
            ) from exc

        version = str(dist.version)
        if requirement.specifier and not requirement.specifier.contains(
            version, prereleases=True
        ):
            raise LockfileError(
                f"Installed {requirement.name} {version} does not satisfy "
                f"{requirement}"
            )

        requested_extras = frozenset(
            canonicalize_name(extra) for extra in requirement.extras
        )
        if name in closure:
            new_extras = requested_extras - expanded[name]
            if not new_extras:
                continue
        else:
            closure[name] = version
            new_extras = requested_extras
        expanded[name] = expanded.get(name, frozenset()) | requested_extras

        for child in dist.requires or []:
            pending.append((_parse_requirement(child), new_extras))

    return dict(sorted(closure.items()))


def closure_digest(closure: dict[str, str], requires: Iterable[str] = ()) -> str:
    """SRI style digest (``sha256-<base64>``) of the canonicalized closure.

    The declared ``requires`` are hashed with the closure, so editing either
    one by hand breaks the digest.
    """
    canonical = json.dumps(
        {"closure": closure, "requires": sorted(requires)},
        sort_keys=True,
        separators=(",", ":"),
    )
    raw = hashlib.new(DIGEST_ALGORITHM, canonical.encode("utf-8")).digest()
    return f"{DIGEST_ALGORITHM}-{base64.b64encode(raw).decode('ascii')}"


def build_lockfile(
    *, name: str, requires: list[str], closure: dict[str, str]
) -> Lockfile:
    return Lockfile(
        name=name,
        requires=sorted(requires),
        closure=dict(sorted(closure.items())),
        digest=closure_digest(closure, requires),
    )


def check_integrity(lockfile: Lockfile) -> None:
    """Fail if the recorded digest does not match the recorded contents."""
    expected = closure_digest(lockfile.closure, lockfile.requires)
    if lockfile.digest != expected:
        raise IntegrityError(
            "Lockfile digest does not match its contents.",
            hint=f"recorded {lockfile.digest}, computed {expected}",
        )


def diff_closures(
    locked: dict[str, str], current: dict[str, str]
) -> list[str]:
    """Human readable differences between two closures."""
    changes: list[str] = []
    for name in sorted(set(locked) | set(current)):
        before = locked.get(name)
        after = current.get(name)
        if before == after:
            continue
        if before is None:
            changes.append(f"+ {name} {after}")
        elif after is None:
            changes.append(f"- {name} {before}")
        else:
            changes.append(f"~ {name} {before} -> {after}")
    return changes


def verify_lockfile(
    lockfile: Lockfile,
    *,
    requires: list[str],
    closure: dict[str, str],
    name: str | None = None,
) -> None:
    """Reject a lockfile that is corrupted or no longer matches the project."""
    check_integrity(lockfile)

    if name is not None and canonicalize_name(name) != canonicalize_name(
        lockfile.name
    ):
        raise LockfileError(
            f"Lockfile belongs to {lockfile.name!r}, not {name!r}.",
            hint="run `telegoy-lock generate`",
        )

    if sorted(requires) != sorted(lockfile.requires):
        raise LockfileError(
            "Declared dependencies changed since the lockfile was generated.",
            hint="run `telegoy-lock generate`",
        )

    changes = diff_closures(lockfile.closure, closure)
    if changes:
        raise LockfileError(
            "Installed dependency closure differs from the lockfile: "
            + ", ".join(changes),
            hint="run `telegoy-lock generate`",
        )
