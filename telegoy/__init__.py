"""telegoy.

A command-line uploader that posts local photos and videos to a Telegram
chat as a single album, through a local or hosted Bot API server.

Features:
- Environment, .env and TOML based configuration with Pydantic validation
- Sidecar caption files and a shared static caption
- ffprobe/ffmpeg video metadata and thumbnail extraction
- Dependency closure lockfile with fail-fast verification
"""

__version__ = "0.1.0"
__license__ = "MIT"

# Development status indicator
__status__ = "Active Development"
