"""Client configuration for the RequireJS language server."""

import logging
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Mapping, Optional

from requirenav.cache import DEFAULT_CACHE_SIZE

logger = logging.getLogger("requirenav")

# Section name used by the client for workspace/configuration
CONFIG_SECTION = "requireModuleSupport"

_CLIENT_KEYS = {
    "modulePath": "module_path",
    "configFile": "config_file",
    "pluginExtensions": "plugin_extensions",
    "onlyNavigateToFile": "only_navigate_to_file",
    "cacheSize": "cache_size",
    "logTiming": "log_timing",
    "logLevel": "log_level",
}


@dataclass
class Settings:
    """
    Settings read from the ``requireModuleSupport`` client section.

    Attributes:
        module_path: Module root, relative to the workspace root.
        config_file: Optional RequireJS configuration file, relative to the
            workspace root.
        plugin_extensions: File extension appended per loader plugin, e.g.
            ``{"text": ".html"}``.
        only_navigate_to_file: Open the target file without searching for
            the selected symbol.
        cache_size: Capacity of each parsed-module cache.
        log_timing: Log how long each definition query takes.
        log_level: Name of the logging level for the server logger.
    """

    module_path: str = ""
    config_file: Optional[str] = None
    plugin_extensions: Dict[str, str] = field(default_factory=dict)
    only_navigate_to_file: bool = False
    cache_size: int = DEFAULT_CACHE_SIZE
    log_timing: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_client(cls, options: Optional[Any]) -> "Settings":
        """
        Build settings from client options.

        Accepts either the section itself or a mapping containing it under
        ``requireModuleSupport``. Values of the wrong type are ignored.
        """
        settings = cls()
        if not isinstance(options, Mapping) or not options:
            return settings
        if isinstance(options.get(CONFIG_SECTION), Mapping):
            options = options[CONFIG_SECTION]

        defaults = {f.name: f.default for f in fields(cls)}
        for key, value in options.items():
            attribute = _CLIENT_KEYS.get(key, key)
            if attribute not in defaults:
                logger.debug("Ignoring unknown setting: %s", key)
                continue
            if value is None and attribute != "config_file":
                continue
            if not _has_expected_type(attribute, value):
                logger.warning("Invalid value for setting %s: %r", key, value)
                continue
            setattr(settings, attribute, value)
        return settings


def _has_expected_type(attribute: str, value: Any) -> bool:
    if attribute in ("module_path", "log_level"):
        return isinstance(value, str)
    if attribute == "config_file":
        return value is None or isinstance(value, str)
    if attribute == "plugin_extensions":
        return isinstance(value, Mapping) and all(
            isinstance(k, str) and isinstance(v, str) for k, v in value.items()
        )
    if attribute in ("only_navigate_to_file", "log_timing"):
        return isinstance(value, bool)
    if attribute == "cache_size":
        return isinstance(value, int) and not isinstance(value, bool) and value > 0
    return True
