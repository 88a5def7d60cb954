import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import jobdaemon.settings as default_settings

log = logging.getLogger(__name__)

_TRUE_STRINGS = ('true', '1', 't', 'yes', 'y')


def coerce_value(original_value: Any, value: Any) -> Any:
    """
    Coerces a new value to the type of the setting's default value.

    :param original_value: The current (default) value of the setting.
    :param value: The incoming value, usually a string from the console or JSON.
    :return: The converted value.
    :raises ValueError: If the value cannot be converted.
    """
    if isinstance(original_value, bool):
        if isinstance(value, bool):
            return value
        return str(value).lower() in _TRUE_STRINGS
    if isinstance(original_value, Path):
        return Path(value)
    if original_value is not None:
        try:
            return type(original_value)(value)
        except TypeError as e:
            raise ValueError(str(e)) from e
    return value


class DaemonSettings:
    """
    Merges default settings with JSON and explicit overrides.

    This class provides a unified, attribute-based access point for the
    configuration of one daemon. It follows a clear precedence:
    1. Base values from `settings.py` (which already honours the environment).
    2. Overrides from `overrides.json` for settings in `MODIFIABLE_SETTINGS`.
    3. Explicit overrides passed by the caller (any known setting).
    """

    def __init__(self, overrides: Optional[Dict[str, Any]] = None, overrides_path: Optional[Path] = None) -> None:
        """
        Initializes the settings object by loading defaults and overrides.

        :param overrides: Explicit setting values, keyed by setting name.
        :param overrides_path: Alternative location of the overrides JSON file.
        """
        self._config: Dict[str, Any] = {}
        self._load_defaults()
        if overrides_path is not None:
            self._config["OVERRIDES_JSON_PATH"] = Path(overrides_path)
        self._load_overrides_from_file()
        for key, value in (overrides or {}).items():
            self.set(key, value)
        self.validate()

    def _load_defaults(self) -> None:
        """Loads all uppercase attributes from settings.py as the baseline."""
        for key in dir(default_settings):
            if key.isupper():
                self._config[key] = getattr(default_settings, key)

    def _load_overrides_from_file(self) -> None:
        """
        Loads and applies settings from the `overrides.json` file.

        Only keys explicitly listed in `MODIFIABLE_SETTINGS` are applied.
        """
        overrides_path = Path(self._config["OVERRIDES_JSON_PATH"])
        if not overrides_path.exists():
            return

        try:
            with overrides_path.open('r') as f:
                overrides = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            log.error(f"Failed to load or parse overrides file '{overrides_path}': {e}")
            return

        log.info(f"Loading runtime configuration overrides from {overrides_path}")
        for key, value in overrides.items():
            if key not in self._config:
                log.warning(f"Override setting '{key}' not found in default settings. Ignoring.")
                continue
            if key not in self._config["MODIFIABLE_SETTINGS"]:
                log.warning(f"Attempted to override non-modifiable setting '{key}'. Ignoring.")
                continue
            try:
                self._config[key] = coerce_value(self._config[key], value)
                log.debug(f"Overridden setting: {key} = {value}")
            except ValueError as e:
                log.error(f"Could not convert override '{key}' = '{value}': {e}")

    def set(self, key: str, value: Any) -> None:
        """
        Sets a single known setting, coercing it to the default's type.

        :raises ValueError: If the key is unknown or the value cannot be converted.
        """
        key = key.upper()
        if key not in self._config:
            raise ValueError(f"Unknown setting '{key}'.")
        try:
            self._config[key] = coerce_value(self._config[key], value)
        except ValueError as e:
            raise ValueError(f"Could not convert value '{value}' for key '{key}'. Error: {e}") from e

    def validate(self) -> None:
        """Checks scheduler limits; raises ValueError on the first violation."""
        if self.MAX_CHILD_PROCESSES < 1:
            raise ValueError(f"MAX_CHILD_PROCESSES must be at least 1, got {self.MAX_CHILD_PROCESSES}.")
        if self.SLEEP_INTERVAL < 0:
            raise ValueError(f"SLEEP_INTERVAL cannot be negative, got {self.SLEEP_INTERVAL}.")
        if self.WAIT_INTERVAL <= 0:
            raise ValueError(f"WAIT_INTERVAL must be positive, got {self.WAIT_INTERVAL}.")
        if self.MEMORY_LIMIT <= 0:
            raise ValueError(f"MEMORY_LIMIT must be positive, got {self.MEMORY_LIMIT}.")

    def get(self, item: str, default: Any = None) -> Any:
        """Provides dictionary-like access to settings with a default value."""
        return self._config.get(item, default)

    def __getattr__(self, name: str) -> Any:
        """Allows attribute access to settings, raising an AttributeError if not found."""
        config = self.__dict__.get("_config", {})
        if name in config:
            return config[name]
        raise AttributeError(f"'{self.__class__.__name__}' object has no attribute '{name}'")

    def get_all_settings(self) -> Dict[str, Any]:
        """Returns the entire configuration dictionary."""
        return dict(self._config)
