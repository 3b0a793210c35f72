"""Exception hierarchy for telegoy."""


class TelegoyError(Exception):
    """Base error for all telegoy failures."""


class ConfigurationError(TelegoyError):
    """Settings are missing or invalid."""


class NoMediaError(TelegoyError):
    """None of the given files could be sent."""


class MediaToolError(TelegoyError):
    """An external media tool (ffmpeg/ffprobe) could not be run."""


class LockfileError(TelegoyError):
    """Lockfile is missing, malformed or out of date."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint

    def __str__(self) -> str:
        base = super().__str__()
        if self.hint:
            return f"{base} ({self.hint})"
        return base


class IntegrityError(LockfileError):
    """Lockfile digest does not match its own recorded closure."""
