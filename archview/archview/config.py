from __future__ import annotations

"""Configuration handling for archview.

Settings live in a small JSON file (``~/.config/archview/config.json`` unless
``ARCHVIEW_CONFIG`` points elsewhere).  Besides the local server options and
the archive files to open on start, the only user preference stored is the
colour theme; ``None`` means the front-end follows the system preference.
"""

from dataclasses import asdict, dataclass, field
import json
import logging
import os
from pathlib import Path

THEMES = ("light", "dark")


def config_path() -> Path:
    override = os.environ.get("ARCHVIEW_CONFIG")
    if override:
        return Path(override)
    return Path.home() / ".config" / "archview" / "config.json"


@dataclass
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 5151


@dataclass
class ArchiveFiles:
    """Archive files opened on start when no ``--archive`` is given."""

    messages: str | None = None
    server: str | None = None


@dataclass
class AppConfig:
    server: ServerConfig = field(default_factory=ServerConfig)
    archive: ArchiveFiles = field(default_factory=ArchiveFiles)
    theme: str | None = None


def load_config(path: Path | None = None) -> AppConfig:
    path = path or config_path()
    if not path.exists():
        return AppConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        logging.warning("Invalid JSON in %s, using defaults", path)
        return AppConfig()
    if not isinstance(data, dict):
        logging.warning("Expected an object in %s, using defaults", path)
        return AppConfig()
    theme = data.get("theme")
    if theme not in THEMES:
        theme = None
    try:
        return AppConfig(
            server=ServerConfig(**data.get("server", {})),
            archive=ArchiveFiles(**data.get("archive", {})),
            theme=theme,
        )
    except TypeError as exc:
        logging.warning("Unexpected keys in %s (%s), using defaults", path, exc)
        return AppConfig()


def save_config(cfg: AppConfig, path: Path | None = None) -> None:
    path = path or config_path()
    data = {
        "server": asdict(cfg.server),
        "archive": asdict(cfg.archive),
        "theme": cfg.theme,
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    try:
        path.chmod(0o600)
    except OSError as exc:  # pragma: no cover - platform dependent
        logging.warning("Unable to set permissions on %s: %s", path, exc)


def set_theme(theme: str | None, path: Path | None = None) -> AppConfig:
    """Persist the preferred theme and return the updated configuration."""
    if theme is not None and theme not in THEMES:
        raise ValueError(f"Unknown theme {theme!r}")
    cfg = load_config(path)
    cfg.theme = theme
    save_config(cfg, path)
    return cfg
