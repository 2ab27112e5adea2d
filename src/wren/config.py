"""Application configuration.

AppConfig is a frozen dataclass and cannot change after creation.
"""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Engine configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, port=3000, template_dir="views")
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False

    # Templates
    template_dir: str | Path = "templates"
    autoescape: bool = True

    # Static files
    static_cache_control: str = "public, max-age=3600"

    # Logging
    log_level: str = "info"
