"""Shared resolver logic."""
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from dory.core.constants import DEFAULT_NAMESERVER, DEFAULT_RESOLV_PORT, FILE_COMMENT
from dory.utils import file_utils
from dory.utils.platform_utils import Platform

# Spaces are wildcards so hand-edited markers still match
MARKER_RE = re.compile(r"added.by.dory")


class ResolvBase(ABC):
    """
    Installs and removes dory's nameserver entry for one OS family.

    Write failures come back as False so the caller can retry with
    use_sudo=True instead of handling exceptions.
    """

    platform: Optional[Platform] = None

    def __init__(self, use_sudo: bool = False):
        self.use_sudo = use_sudo

    # --- settings ---
    @staticmethod
    def _resolv_settings(settings: Dict[str, Any]) -> Dict[str, Any]:
        return (settings.get("dory") or {}).get("resolv") or {}

    @staticmethod
    def nameserver(settings: Dict[str, Any]) -> str:
        return str(ResolvBase._resolv_settings(settings).get("nameserver") or DEFAULT_NAMESERVER)

    @staticmethod
    def port(settings: Dict[str, Any]) -> int:
        return int(ResolvBase._resolv_settings(settings).get("port") or DEFAULT_RESOLV_PORT)

    @staticmethod
    def domains(settings: Dict[str, Any]) -> List[Dict[str, str]]:
        return ((settings.get("dory") or {}).get("dnsmasq") or {}).get("domains") or []

    @staticmethod
    def file_comment() -> str:
        return FILE_COMMENT

    def file_nameserver_line(self, settings: Dict[str, Any]) -> str:
        return f"nameserver {self.nameserver(settings)}"

    def nameserver_line_re(self, settings: Dict[str, Any]) -> "re.Pattern":
        return re.compile(
            rf"^[ \t]*nameserver[ \t]+{re.escape(self.nameserver(settings))}[ \t]*(#.*)?$",
            re.MULTILINE,
        )

    # --- file operations honouring use_sudo ---
    @staticmethod
    def _read_file(path: str) -> Optional[str]:
        return file_utils.read_text(path)

    def _write_file(self, path: str, contents: str) -> bool:
        if self.use_sudo:
            return file_utils.privileged_write(path, contents)
        return file_utils.atomic_write(path, contents)

    def _ensure_directory(self, directory: str) -> bool:
        if self.use_sudo:
            return file_utils.privileged_ensure_directory(directory)
        return file_utils.ensure_directory(directory)

    def _remove_file(self, path: str) -> bool:
        if self.use_sudo:
            return file_utils.privileged_remove_file(path)
        return file_utils.remove_file(path)

    # --- strategy interface ---
    @abstractmethod
    def resolv_files(self, settings: Dict[str, Any]) -> List[str]:
        """Files this strategy writes for the given settings."""

    @abstractmethod
    def contents_has_our_nameserver(self, contents: str, settings: Dict[str, Any]) -> bool:
        """Whether a blob of resolver text already carries our entry."""

    @abstractmethod
    def has_our_nameserver(self, settings: Dict[str, Any]) -> bool:
        """Whether the live resolver configuration carries our entry."""

    @abstractmethod
    def configure(self, settings: Dict[str, Any]) -> bool:
        """Install our entry. Idempotent."""

    @abstractmethod
    def clean(self, settings: Dict[str, Any]) -> bool:
        """Remove the entries we installed. Idempotent."""
