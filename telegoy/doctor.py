"""``telegoy-doctor``: report whether the local environment can run uploads."""

import argparse
import shutil
import ssl
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from . import __version__
from .config.loader import load_config
from .config.settings import Settings
from .exceptions import ConfigurationError
from .main import setup_logging

MIN_PYTHON = (3, 11)


@dataclass(frozen=True)
class CheckResult:
    name: str
    ok: bool
    detail: str
    required: bool = True

    @property
    def label(self) -> str:
        if self.ok:
            return "ok"
        return "FAIL" if self.required else "warn"


def check_python(version_info: Sequence[int] = sys.version_info) -> CheckResult:
    current = tuple(version_info[:3])
    detail = ".".join(str(part) for part in current)
    return CheckResult("python", tuple(current[:2]) >= MIN_PYTHON, detail)


def check_tls() -> CheckResult:
    return CheckResult("tls", True, ssl.OPENSSL_VERSION)


def check_executable(name: str, executable: str, *, required: bool) -> CheckResult:
    resolved = shutil.which(executable)
    if resolved:
        return CheckResult(name, True, resolved, required=required)
    return CheckResult(
        name, False, f"{executable} not found on PATH", required=required
    )


def check_dotenv(path: Path = Path(".env")) -> CheckResult:
    detail = f"{path} loaded" if path.is_file() else f"{path} absent"
    return CheckResult("dotenv", True, detail, required=False)


def run_checks(
    settings: Optional[Settings], config_error: Optional[str] = None
) -> List[CheckResult]:
    """Run every environment check. ``settings`` is None when loading failed."""
    results = [check_python(), check_tls(), check_dotenv()]

    if settings is None:
        results.append(CheckResult("settings", False, config_error or "not loaded"))
        ffmpeg_path, ffprobe_path = "ffmpeg", "ffprobe"
    else:
        results.append(CheckResult("settings", True, "bot token configured"))
        mode = "local server" if settings.uses_local_server else "hosted"
        results.append(CheckResult("api", True, f"{settings.api_url} ({mode})"))
        results.append(
            CheckResult(
                "chat",
                settings.chat_id is not None,
                settings.chat_id or "no default chat, pass --chat-id",
                required=False,
            )
        )
        ffmpeg_path, ffprobe_path = settings.ffmpeg_path, settings.ffprobe_path

    # Videos upload without metadata or thumbnails when these are missing.
    results.append(check_executable("ffmpeg", ffmpeg_path, required=False))
    results.append(check_executable("ffprobe", ffprobe_path, required=False))
    return results


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="telegoy-doctor", description="Check the telegoy runtime environment"
    )
    parser.add_argument("--config-file", type=Path, help="Path to a TOML config file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)
    setup_logging(debug=args.debug)

    settings: Optional[Settings] = None
    config_error: Optional[str] = None
    try:
        settings = load_config(config_file=args.config_file)
    except ConfigurationError as e:
        config_error = str(e)

    results = run_checks(settings, config_error)
    print(f"telegoy {__version__}")
    for result in results:
        print(f"[{result.label:>4}] {result.name}: {result.detail}")
    return 0 if all(r.ok or not r.required for r in results) else 1


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
