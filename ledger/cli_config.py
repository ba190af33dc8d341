"""Configuration file management for the manage.py CLI."""

from pathlib import Path

import yaml

CONFIG_FILENAME = ".ledger.yaml"
USER_CONFIG_DIR = Path.home() / ".ledger"

VALID_KEYS = {"base_url", "api_key"}


def find_config() -> Path | None:
    """Find config file (project first, then user).

    Returns:
        Path to config file if found, None otherwise.
    """
    project_config = Path(CONFIG_FILENAME)
    if project_config.exists():
        return project_config

    user_config = USER_CONFIG_DIR / "config.yaml"
    if user_config.exists():
        return user_config

    return None


def load_config(path: Path | None = None) -> dict:
    """Load config from file.

    Returns:
        Config dictionary, or empty dict if no config found.
    """
    if path is None:
        path = find_config()
    if path is None or not path.exists():
        return {}
    with open(path) as f:
        return yaml.safe_load(f) or {}


def save_config(config: dict, path: Path | None = None) -> Path:
    """Save config to file.

    Args:
        config: Config dictionary to save.
        path: Path to save to. Defaults to project config file.

    Returns:
        Path where config was saved.
    """
    if path is None:
        path = Path(CONFIG_FILENAME)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.safe_dump(config, f, default_flow_style=False)
    return path


def get_default_config() -> dict:
    return {
        "base_url": "http://localhost:8000",
        "api_key": "",
    }
