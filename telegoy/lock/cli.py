"""``telegoy-lock``: generate or verify the dependency closure lockfile."""

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

import structlog

from ..exceptions import LockfileError
from ..main import setup_logging
from .io import read_lockfile, serialize_lockfile, write_lockfile
from .resolve import (
    build_lockfile,
    check_integrity,
    read_project,
    resolve_closure,
    verify_lockfile,
)

DEFAULT_PYPROJECT = Path("pyproject.toml")
DEFAULT_LOCKFILE = Path("telegoy.lock")

logger = structlog.get_logger()


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="telegoy-lock",
        description="Pin and check the installed dependency closure",
    )
    parser.add_argument("command", choices=["generate", "verify"])
    parser.add_argument("--pyproject", type=Path, default=DEFAULT_PYPROJECT)
    parser.add_argument("--lockfile", type=Path, default=DEFAULT_LOCKFILE)
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def generate(pyproject: Path, lockfile_path: Path) -> bool:
    """Write the lockfile; return False when it was already up to date."""
    name, requires = read_project(pyproject)
    lockfile = build_lockfile(
        name=name, requires=requires, closure=resolve_closure(requires)
    )
    rendered = serialize_lockfile(lockfile)
    if (
        lockfile_path.is_file()
        and lockfile_path.read_text(encoding="utf-8") == rendered
    ):
        logger.info("Lockfile up to date", path=str(lockfile_path))
        return False

    write_lockfile(lockfile, lockfile_path)
    logger.info(
        "Lockfile written",
        path=str(lockfile_path),
        packages=len(lockfile.closure),
        digest=lockfile.digest,
    )
    return True


def verify(pyproject: Path, lockfile_path: Path) -> None:
    lockfile = read_lockfile(lockfile_path)
    # Integrity is checked before the environment is inspected.
    check_integrity(lockfile)
    name, requires = read_project(pyproject)
    verify_lockfile(
        lockfile, requires=requires, closure=resolve_closure(requires), name=name
    )
    logger.info("Lockfile verified", path=str(lockfile_path), digest=lockfile.digest)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(debug=args.debug)
    try:
        if args.command == "generate":
            generate(args.pyproject, args.lockfile)
        else:
            verify(args.pyproject, args.lockfile)
    except LockfileError as e:
        logger.error("Lockfile check failed", error=str(e))
        return 1
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
