"""Settings management for dory.

The settings file is YAML rooted at a ``dory`` key. Whatever the user has
written is merged over the compiled-in defaults on every read, so new
default keys show up without touching the user's file.
"""

import copy
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from dory.core.constants import CONFIG_FILE
from dory.core.exceptions import DoryError, SettingsNotFoundError, SettingsParseError
from dory.core.logger import logger
from dory.utils.file_utils import atomic_write

DEFAULT_SETTINGS_YAML = """\
dory:
  # resolv sends lookups for the domains below to nameserver:port.
  # dnsmasq is what normally listens there, so turning dnsmasq off
  # while resolv stays on leaves those lookups unanswered.
  debug: false
  dnsmasq:
    enabled: true
    domains:
      - domain: docker     # '#' matches every domain
        address: 127.0.0.1
    container_name: dory_dnsmasq
  nginx_proxy:
    enabled: true
    ssl_certs_dir: ''  # empty uses the proxy image's certs
    container_name: dory_dinghy_http_proxy
  resolv:
    enabled: true
    nameserver: 127.0.0.1
    port: 19323  # macOS only; resolv.conf has no port field
"""


def default_settings() -> Dict[str, Any]:
    """Return a fresh copy of the compiled-in default settings."""
    return yaml.safe_load(DEFAULT_SETTINGS_YAML)


def deep_merge(defaults: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge ``override`` over ``defaults`` without mutating either.

    Mappings are merged recursively and any other value set in the override
    wins, lists included (they are replaced as a whole). Keys that only
    exist in the override are kept.
    """
    merged = copy.deepcopy(defaults)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _normalize_domains(settings: Dict[str, Any], defaults: Dict[str, Any]) -> None:
    """Make sure dnsmasq.domains is a non-empty list of complete entries."""
    default_domains: List[Dict[str, str]] = defaults["dory"]["dnsmasq"]["domains"]
    dnsmasq = settings.setdefault("dory", {}).setdefault("dnsmasq", {})
    domains = dnsmasq.get("domains")

    if not isinstance(domains, list) or not domains:
        logger.warning("No dnsmasq domains configured, falling back to the defaults")
        dnsmasq["domains"] = copy.deepcopy(default_domains)
        return

    normalized = []
    for index, entry in enumerate(domains):
        if not isinstance(entry, dict):
            logger.warning(f"Ignoring malformed dnsmasq domain entry: {entry!r}")
            continue
        fallback = default_domains[index] if index < len(default_domains) else default_domains[0]
        for key in ("domain", "address"):
            if not entry.get(key):
                entry[key] = fallback[key]
        normalized.append(entry)

    dnsmasq["domains"] = normalized or copy.deepcopy(default_domains)


class Config:
    """Loads, merges, persists and upgrades the dory settings file."""

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """Initialize configuration.

        Args:
            config_path: Path to the settings file. If None, uses ~/.dory.yml
                (or DORY_CONFIG_FILE).
        """
        self.config_path = Path(config_path or CONFIG_FILE)

    def _path(self, path: Optional[Union[str, Path]]) -> Path:
        return Path(path) if path is not None else self.config_path

    @staticmethod
    def default_settings() -> Dict[str, Any]:
        """Get the compiled-in default settings."""
        return default_settings()

    def load(self, path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
        """Read the settings file without merging defaults.

        Args:
            path: File to read. Defaults to the configured settings path.

        Returns:
            The decoded document. An empty file decodes to {}.

        Raises:
            SettingsNotFoundError: If the file does not exist
            SettingsParseError: If the file is not a YAML mapping
        """
        path = self._path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except FileNotFoundError as e:
            raise SettingsNotFoundError(f"Settings file not found: {path}") from e
        except yaml.YAMLError as e:
            raise SettingsParseError(f"Could not parse settings file {path}: {e}") from e
        except UnicodeDecodeError as e:
            raise SettingsParseError(f"Settings file {path} is not valid UTF-8: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise SettingsParseError(
                f"Settings file {path} must contain a mapping, got {type(data).__name__}"
            )
        return data

    def settings(self, path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
        """Get the effective settings: the file merged over the defaults.

        A missing file means defaults only. Nothing is written back.
        """
        defaults = default_settings()
        try:
            user_settings = self.load(path)
        except SettingsNotFoundError:
            logger.debug(f"No settings file at {self._path(path)}, using defaults")
            user_settings = {}

        if user_settings.get("dory", {}) is None:
            user_settings["dory"] = {}

        merged = deep_merge(defaults, user_settings)
        for section in ("dory", "dnsmasq", "nginx_proxy", "resolv"):
            value = merged if section == "dory" else merged["dory"]
            if not isinstance(value.get(section), dict):
                name = section if section == "dory" else f"dory.{section}"
                raise SettingsParseError(f"'{name}' in {self._path(path)} must be a mapping")

        _normalize_domains(merged, defaults)
        return merged

    def write_settings(
        self,
        settings: Union[Dict[str, Any], str],
        path: Optional[Union[str, Path]] = None,
        is_yaml: bool = False,
    ) -> bool:
        """Persist settings verbatim, without merging.

        Args:
            settings: A decoded document, or a raw YAML string when is_yaml is True
            path: Destination file. Defaults to the configured settings path.
            is_yaml: Whether settings is already serialized

        Returns:
            True if the file was written, False otherwise
        """
        path = self._path(path)
        if is_yaml:
            content = settings
        else:
            content = yaml.safe_dump(settings, default_flow_style=False, sort_keys=False)
        return atomic_write(str(path), content)

    def write_default_settings_file(self, path: Optional[Union[str, Path]] = None) -> bool:
        """Overwrite the settings file with the defaults, comments included."""
        path = self._path(path)
        logger.info(f"Writing default settings to {path}")
        return self.write_settings(DEFAULT_SETTINGS_YAML, path, is_yaml=True)

    def needs_upgrade(self, path: Optional[Union[str, Path]] = None) -> bool:
        """Check whether the file still uses the single domain/address layout.

        Raises:
            SettingsParseError: If the file is malformed
        """
        try:
            data = self.load(path)
        except SettingsNotFoundError:
            return False

        dory = data.get("dory") or {}
        if not isinstance(dory, dict):
            raise SettingsParseError(f"'dory' in {self._path(path)} must be a mapping")
        dnsmasq = dory.get("dnsmasq") or {}
        if not isinstance(dnsmasq, dict):
            raise SettingsParseError(f"'dory.dnsmasq' in {self._path(path)} must be a mapping")
        return ("domain" in dnsmasq or "address" in dnsmasq) and "domains" not in dnsmasq

    def upgrade_settings_file(self, path: Optional[Union[str, Path]] = None) -> bool:
        """Migrate a legacy settings file in place.

        The singular dnsmasq domain/address pair becomes a one-element
        domains list, then the document is merged over the defaults and
        written back. Safe to call repeatedly.

        Returns:
            True if the file was rewritten, False if it was already current
        """
        path = self._path(path)
        if not self.needs_upgrade(path):
            return False

        logger.info(f"Upgrading settings file {path} to the domains list format")
        data = self.load(path)
        defaults = default_settings()
        default_domain = defaults["dory"]["dnsmasq"]["domains"][0]

        dnsmasq = data["dory"]["dnsmasq"]
        dnsmasq["domains"] = [
            {
                "domain": dnsmasq.pop("domain", None) or default_domain["domain"],
                "address": dnsmasq.pop("address", None) or default_domain["address"],
            }
        ]

        upgraded = deep_merge(defaults, data)
        if not self.write_settings(upgraded, path):
            raise DoryError(f"Could not write upgraded settings to {path}")
        return True

    def debug(self, path: Optional[Union[str, Path]] = None) -> bool:
        """Whether debug mode is on. Never raises; unreadable settings mean False."""
        try:
            return bool(self.settings(path)["dory"].get("debug", False))
        except (DoryError, OSError) as e:
            logger.debug(f"Could not read debug flag: {e}")
            return False
