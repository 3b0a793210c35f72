"""Lockfile typed model."""

from __future__ import annotations

from dataclasses import dataclass, field

LOCKFILE_VERSION = 1


@dataclass(frozen=True)
class Lockfile:
    """Pinned dependency closure of one project."""

    name: str
    digest: str
    requires: list[str] = field(default_factory=list)
    closure: dict[str, str] = field(default_factory=dict)
    version: int = LOCKFILE_VERSION
