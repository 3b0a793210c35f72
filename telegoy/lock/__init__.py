"""Dependency closure lockfile."""

from .io import parse_lockfile, read_lockfile, serialize_lockfile, write_lockfile
from .model import Lockfile
from .resolve import (
    build_lockfile,
    check_integrity,
    closure_digest,
    diff_closures,
    read_project,
    resolve_closure,
    verify_lockfile,
)

__all__ = [
    "Lockfile",
    "build_lockfile",
    "check_integrity",
    "closure_digest",
    "diff_closures",
    "parse_lockfile",
    "read_lockfile",
    "read_project",
    "resolve_closure",
    "serialize_lockfile",
    "verify_lockfile",
    "write_lockfile",
]
