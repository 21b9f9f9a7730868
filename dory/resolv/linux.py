"""Linux resolver configuration through a shared resolv.conf-style file.

Known limitation: two dory processes editing the file at the same time
can interleave between the read and the rename. The file has no locking
convention, so none is attempted.
"""
import os
import re
import shutil
from typing import Any, Dict, List, Optional

from dory.core.constants import FILE_COMMENT_END, LINUX_RESOLV_FILE, UBUNTU_RESOLVCONF_HEAD
from dory.core.logger import logger
from dory.resolv.base import MARKER_RE, ResolvBase
from dory.utils.platform_utils import Platform
from dory.utils.process_utils import ProcessUtils

NAMESERVER_LINE_RE = re.compile(r"^\s*nameserver\b")
BLOCK_START_RE = re.compile(r"^\s*#\s*added.by.dory\s*$")
BLOCK_END_RE = re.compile(r"^\s*#\s*end.added.by.dory\s*$")


class LinuxResolv(ResolvBase):
    """
    Marker-bounded nameserver block in a single shared file.

    The block goes right before the first existing nameserver line so our
    nameserver is asked first. resolv.conf has no port field, so only the
    nameserver address is compared.
    """

    def __init__(self, use_sudo: bool = False, resolv_file: Optional[str] = None):
        super().__init__(use_sudo=use_sudo)
        self._resolv_file = resolv_file

    def resolv_file(self) -> str:
        # Follow symlinks (e.g. to systemd-resolved's stub) so the rename
        # replaces the real file rather than the link
        return os.path.realpath(self._resolv_file or LINUX_RESOLV_FILE)

    def resolv_files(self, settings: Optional[Dict[str, Any]] = None) -> List[str]:
        return [self.resolv_file()]

    def nameserver_contents(self, settings: Dict[str, Any]) -> str:
        return f"{self.file_comment()}\n{self.file_nameserver_line(settings)}\n{FILE_COMMENT_END}\n"

    def contents_has_our_nameserver(self, contents: str, settings: Dict[str, Any]) -> bool:
        if not contents:
            return False
        return bool(MARKER_RE.search(contents) or self.nameserver_line_re(settings).search(contents))

    def has_our_nameserver(self, settings: Dict[str, Any]) -> bool:
        return self.contents_has_our_nameserver(self._read_file(self.resolv_file()) or "", settings)

    def add_nameserver(self, contents: str, settings: Dict[str, Any]) -> str:
        """Return contents with our block inserted; other lines are untouched."""
        lines = contents.splitlines(keepends=True)
        block = self.nameserver_contents(settings).splitlines(keepends=True)

        for index, line in enumerate(lines):
            if NAMESERVER_LINE_RE.match(line):
                return "".join(lines[:index] + block + lines[index:])

        if contents and not contents.endswith("\n"):
            contents += "\n"
        return contents + "".join(block)

    @staticmethod
    def remove_nameserver(contents: str) -> str:
        """
        Return contents with every dory block removed.

        A block missing its end marker is removed through the next
        nameserver line. Stray end markers and single lines tagged inline
        with the marker are dropped too.
        """
        lines = contents.splitlines(keepends=True)
        kept = []
        index = 0
        while index < len(lines):
            line = lines[index]
            if BLOCK_START_RE.match(line):
                end = None
                for probe in range(index + 1, len(lines)):
                    if BLOCK_END_RE.match(lines[probe]):
                        end = probe
                        break
                    if BLOCK_START_RE.match(lines[probe]):
                        break
                if end is None:
                    end = index
                    for probe in range(index + 1, len(lines)):
                        if NAMESERVER_LINE_RE.match(lines[probe]):
                            end = probe
                            break
                index = end + 1
                continue
            if BLOCK_END_RE.match(line) or (MARKER_RE.search(line) and not line.lstrip().startswith("#")):
                index += 1
                continue
            kept.append(line)
            index += 1
        return "".join(kept)

    def after_write(self) -> None:
        """Hook for distributions that regenerate resolv.conf from other files."""

    def configure(self, settings: Dict[str, Any]) -> bool:
        path = self.resolv_file()
        contents = self._read_file(path)
        if contents is None:
            return False

        if self.contents_has_our_nameserver(contents, settings):
            logger.debug(f"{path} already has our nameserver")
            return True

        logger.debug(f"Adding {self.file_nameserver_line(settings)} to {path}")
        if not self._write_file(path, self.add_nameserver(contents, settings)):
            logger.warning(f"Could not write {path}")
            return False
        self.after_write()
        return self.has_our_nameserver(settings)

    def clean(self, settings: Dict[str, Any]) -> bool:
        path = self.resolv_file()
        contents = self._read_file(path)
        if contents is None:
            return False

        if not MARKER_RE.search(contents):
            logger.debug(f"No dory entries in {path}")
            return True

        logger.debug(f"Removing dory entries from {path}")
        if not self._write_file(path, self.remove_nameserver(contents)):
            logger.warning(f"Could not write {path}")
            return False
        self.after_write()
        return not MARKER_RE.search(self._read_file(path) or "")


class UbuntuResolv(LinuxResolv):
    """
    Ubuntu with resolvconf regenerates /etc/resolv.conf, so the block goes
    into resolvconf's head file and `resolvconf -u` is run afterwards.
    Without resolvconf this behaves like plain LinuxResolv.
    """

    platform = Platform.UBUNTU

    def __init__(
        self,
        use_sudo: bool = False,
        resolv_file: Optional[str] = None,
        resolvconf_head: Optional[str] = None,
    ):
        super().__init__(use_sudo=use_sudo, resolv_file=resolv_file)
        self.resolvconf_head = resolvconf_head or UBUNTU_RESOLVCONF_HEAD

    def uses_resolvconf(self) -> bool:
        return self._resolv_file is None and os.path.exists(self.resolvconf_head)

    def resolv_file(self) -> str:
        if self.uses_resolvconf():
            return self.resolvconf_head
        return super().resolv_file()

    def after_write(self) -> None:
        if not self.uses_resolvconf():
            return
        if not shutil.which("resolvconf"):
            logger.warning("resolvconf head file exists but resolvconf is not installed")
            return
        result = ProcessUtils.run_command(["resolvconf", "-u"], use_sudo=self.use_sudo)
        if not result.success:
            logger.warning(f"resolvconf -u failed: {result.stderr.strip()}")


class FedoraResolv(LinuxResolv):
    platform = Platform.FEDORA


class ArchResolv(LinuxResolv):
    platform = Platform.ARCH
