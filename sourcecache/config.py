"""Configuration for the local source cache"""

import configparser
import logging
import os
import platform
from typing import Optional, Any

from pathlib import Path

from sourcecache.errors import ApplicationPathNotFoundError

APP_NAME = "sourcecache"

logger = logging.getLogger(__name__)

_home = os.path.expanduser("~")

xdg_config_home = os.environ.get("XDG_CONFIG_HOME") or os.path.join(_home, ".config")

default_cfg = {"dirs": {"cache_root": ""}}

if platform.system() == "Darwin":
    # macOS
    config_dir = Path("~/Library/Application Support/sourcecache").expanduser()
else:
    # Linux or others
    config_dir = Path(os.path.join(xdg_config_home, APP_NAME))


def get_config_file():
    return config_dir / f"{APP_NAME}.cfg"


def init_dirs():
    """Initialize the configuration directory.

    Fails gracefully if the directory cannot be created (e.g., read-only filesystem).
    """
    try:
        os.makedirs(config_dir, exist_ok=True)
    except OSError as e:
        logger.warning(
            f"Could not create config directory {config_dir}: {e}. "
            "Using in-memory configuration only."
        )


class ConfigAccessor:
    """
    A dict-like accessor for configuration files.

    Missing sections or keys are handled gracefully.

    Usage:
        config = ConfigAccessor()
        value = config.get('dirs', 'cache_root', default='')
    """

    def __init__(self, config_path: Optional[Path] = None):
        if config_path is None:
            self.config_path = get_config_file()
            init_dirs()
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

    def set(self, section: str, key: str, value: str) -> None:
        if not self.config.has_section(section):
            self.config.add_section(section)

        self.config[section][key] = value

    def save(self) -> None:
        """
        Save the current configuration to the config file.

        Fails gracefully if the file cannot be written (e.g., read-only filesystem).
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w") as configfile:
                self.config.write(configfile)
        except (OSError, IOError) as e:
            logger.warning(
                f"Could not save configuration to {self.config_path}: {e}. "
                "Configuration changes will not persist."
            )

    def sections(self) -> list:
        return self.config.sections()

    def options(self, section: str) -> list:
        """
        Get all options (keys) in a section.

        Returns:
            List of options in the section or empty list if section doesn't exist
        """
        try:
            return self.config.options(section)
        except configparser.NoSectionError:
            return []


# Create a global config accessor instance
config = ConfigAccessor()


def _platform_cache_base() -> Path:
    system = platform.system()
    if system == "Windows":
        local_app_data = os.environ.get("LOCALAPPDATA")
        if local_app_data:
            return Path(local_app_data) / APP_NAME / "cache"

    try:
        home = Path.home()
    except RuntimeError as e:
        raise ApplicationPathNotFoundError(str(e))

    if system == "Darwin":
        return home / "Library" / "Caches" / APP_NAME
    if system == "Windows":
        return home / "AppData" / "Local" / APP_NAME / "cache"

    xdg_cache_home = os.environ.get("XDG_CACHE_HOME")
    if xdg_cache_home:
        return Path(xdg_cache_home) / APP_NAME
    return home / ".cache" / APP_NAME


def get_cache_base() -> Path:
    """
    Get the per-application cache directory.

    The `[dirs] cache_root` option of the config file takes precedence over the
    platform default (XDG_CACHE_HOME or ~/.cache on Linux, ~/Library/Caches on
    macOS, %LOCALAPPDATA% on Windows).

    Raises:
        ApplicationPathNotFoundError: if no cache directory can be determined
    """
    configured = config.get("dirs", "cache_root", default_cfg["dirs"]["cache_root"])
    if configured:
        return Path(configured).expanduser()
    return _platform_cache_base()
