"""macOS resolver configuration through /etc/resolver."""
import os
import re
from typing import Any, Dict, List, Optional

from dory.core.constants import MACOS_RESOLV_DIR
from dory.core.logger import logger
from dory.resolv.base import MARKER_RE, ResolvBase
from dory.utils.platform_utils import Platform


class MacosResolv(ResolvBase):
    """
    One resolver file per domain.

    macOS consults /etc/resolver/<domain> for lookups under <domain>, and
    unlike resolv.conf those files accept a port directive.
    """

    platform = Platform.MACOS

    def __init__(self, use_sudo: bool = False, resolv_dir: Optional[str] = None):
        super().__init__(use_sudo=use_sudo)
        self.resolv_dir = resolv_dir or MACOS_RESOLV_DIR

    def resolv_file_names(self, settings: Dict[str, Any]) -> List[str]:
        names = []
        for entry in self.domains(settings):
            name = str(entry.get("domain") or "")
            if not name:
                continue
            # Must stay a plain file name inside resolv_dir
            if "/" in name or os.sep in name or ".." in name or name == ".":
                logger.warning(f"Skipping domain {name!r}, it is not a valid resolver file name")
                continue
            names.append(name)
        return names

    def resolv_files(self, settings: Dict[str, Any]) -> List[str]:
        return [os.path.join(self.resolv_dir, name) for name in self.resolv_file_names(settings)]

    def resolv_contents(self, settings: Dict[str, Any]) -> str:
        return (
            f"{self.file_comment()}\n"
            f"{self.file_nameserver_line(settings)}\n"
            f"port {self.port(settings)}\n"
        )

    def contents_has_our_nameserver(self, contents: str, settings: Dict[str, Any]) -> bool:
        if not contents:
            return False
        if MARKER_RE.search(contents):
            return True
        port_re = re.compile(rf"^[ \t]*port[ \t]+{self.port(settings)}\b", re.MULTILINE)
        return bool(self.nameserver_line_re(settings).search(contents) and port_re.search(contents))

    def has_our_nameserver(self, settings: Dict[str, Any]) -> bool:
        files = self.resolv_files(settings)
        return bool(files) and all(
            self.contents_has_our_nameserver(self._read_file(filename) or "", settings)
            for filename in files
        )

    def configure(self, settings: Dict[str, Any]) -> bool:
        """
        Write a resolver file for every configured domain.

        Files that already hold exactly our contents are left alone.

        Returns:
            True if every file is in place, False if a write failed
        """
        if not os.path.isdir(self.resolv_dir):
            logger.info(f"Creating resolver directory {self.resolv_dir}")
            if not self._ensure_directory(self.resolv_dir):
                return False

        contents = self.resolv_contents(settings)
        for filename in self.resolv_files(settings):
            if self._read_file(filename) == contents:
                logger.debug(f"{filename} already points at our nameserver")
                continue
            logger.debug(f"Writing {filename}")
            if not self._write_file(filename, contents):
                logger.warning(f"Could not write {filename}")
                return False

        return self.has_our_nameserver(settings)

    def clean(self, settings: Dict[str, Any]) -> bool:
        """
        Delete the resolver files we wrote.

        Files for our domains that were not written by us are kept.

        Returns:
            True if none of our files remain, False if a delete failed
        """
        for filename in self.resolv_files(settings):
            contents = self._read_file(filename)
            if not contents:
                continue
            if not self.contents_has_our_nameserver(contents, settings):
                logger.warning(f"Leaving {filename} alone, it was not written by dory")
                continue
            logger.debug(f"Removing {filename}")
            if not self._remove_file(filename):
                logger.warning(f"Could not remove {filename}")
                return False

        return not any(
            self.contents_has_our_nameserver(self._read_file(filename) or "", settings)
            for filename in self.resolv_files(settings)
        )
