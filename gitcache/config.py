"""Application settings: default cache locations, shared cache root and lock timeout"""

import configparser
import logging
import os
import platform
from typing import Optional, Any

from pathlib import Path

APP_NAME = "gitcache"

logger = logging.getLogger(__name__)

_home = os.path.expanduser("~")

xdg_config_home = os.environ.get("XDG_CONFIG_HOME") or os.path.join(_home, ".config")
xdg_cache_home = os.environ.get("XDG_CACHE_HOME") or os.path.join(_home, ".cache")


default_cfg = {
    "dirs": {
        "local_cache": os.path.join(xdg_cache_home, APP_NAME),
        "shared_root": "/var/cache",
    },
    "lock": {"timeout": "600"},
}

if platform.system() == "Darwin":
    # macOS
    config_dir = Path("~/Library/Application Support/gitcache").expanduser()
else:
    # Linux or others
    config_dir = Path(os.path.join(xdg_config_home, APP_NAME))


def get_config_file() -> Path:
    override = os.environ.get("GITCACHE_CONFIG")
    if override:
        return Path(override).expanduser()
    return config_dir / f"{APP_NAME}.cfg"


class ConfigAccessor:
    """
    A dict-like accessor for the gitcache settings file.

    Missing sections or keys fall back to the supplied default, so a missing
    settings file simply means "use the built-in defaults".

    Usage:
        config = ConfigAccessor()
        value = config.get('dirs', 'shared_root', default='/var/cache')
    """

    def __init__(self, config_path: Optional[Path] = None):
        if config_path is None:
            self.config_path = get_config_file()
        else:
            self.config_path = config_path

        self.config = configparser.ConfigParser()
        if self.config_path.exists():
            self.config.read(self.config_path)

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """
        Get a configuration value from the specified section and key.

        Args:
            section: The configuration section
            key: The configuration key
            default: Value to return if the section or key doesn't exist

        Returns:
            The configuration value if it exists, otherwise the default value
        """
        try:
            return self.config[section][key]
        except (KeyError, configparser.NoSectionError, configparser.NoOptionError):
            return default


# Create a global config accessor instance
config = ConfigAccessor()


def get_local_cache_dir() -> Path:
    """
    Get the default directory for a per-user cache.

    Returns:
        Absolute path (defaults to $XDG_CACHE_HOME/gitcache)
    """
    value = config.get("dirs", "local_cache", default_cfg["dirs"]["local_cache"])
    return Path(value).expanduser().absolute()


def get_shared_root() -> Path:
    """
    Get the root under which caches are considered shared between users.

    Returns:
        Absolute path (defaults to /var/cache)
    """
    value = config.get("dirs", "shared_root", default_cfg["dirs"]["shared_root"])
    return Path(value).expanduser().absolute()


def get_shared_cache_dir() -> Path:
    """Default location of a shared cache: <shared_root>/gitcache."""
    return get_shared_root() / APP_NAME


def get_lock_timeout() -> float:
    value = config.get("lock", "timeout", default_cfg["lock"]["timeout"])
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Invalid lock timeout {value!r}, using default")
        return float(default_cfg["lock"]["timeout"])
