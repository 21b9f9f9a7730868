"""Platform detection utilities."""
import os
import platform
from enum import Enum
from typing import Dict, Set

FEDORA_RELEASE_FILE = "/etc/fedora-release"
ARCH_RELEASE_FILE = "/etc/arch-release"


class Platform(Enum):
    """Operating system families dory knows how to configure."""
    MACOS = "macos"
    UBUNTU = "ubuntu"
    FEDORA = "fedora"
    ARCH = "arch"
    UNKNOWN = "unknown"


class PlatformUtils:
    """Utility class for platform detection."""

    @staticmethod
    def get_platform() -> Platform:
        """
        Detect the current operating system family.

        Returns:
            Platform enum value. Platform.UNKNOWN when nothing matches;
            callers treat that as unsupported.
        """
        system = platform.system()
        if system == "Darwin":
            return Platform.MACOS
        elif system == "Linux":
            return PlatformUtils.get_linux_distro()
        else:
            return Platform.UNKNOWN

    @staticmethod
    def read_os_release() -> Dict[str, str]:
        """
        Read /etc/os-release (or /usr/lib/os-release).

        Returns:
            Mapping of os-release fields, empty if neither file is readable
        """
        try:
            return platform.freedesktop_os_release()
        except OSError:
            return {}

    @staticmethod
    def _distro_ids(os_release: Dict[str, str]) -> Set[str]:
        ids = {os_release.get("ID", "").strip().lower()}
        ids.update(os_release.get("ID_LIKE", "").lower().split())
        ids.discard("")
        return ids

    @staticmethod
    def get_linux_distro() -> Platform:
        """
        Map the running Linux distribution onto a Platform.

        Derivatives are matched through ID_LIKE, so Linux Mint reports
        Platform.UBUNTU and Manjaro reports Platform.ARCH.
        """
        ids = PlatformUtils._distro_ids(PlatformUtils.read_os_release())

        if "ubuntu" in ids:
            return Platform.UBUNTU
        elif "fedora" in ids or os.path.exists(FEDORA_RELEASE_FILE):
            return Platform.FEDORA
        elif "arch" in ids or os.path.exists(ARCH_RELEASE_FILE):
            return Platform.ARCH
        else:
            return Platform.UNKNOWN

    @staticmethod
    def is_macos() -> bool:
        return PlatformUtils.get_platform() == Platform.MACOS

    @staticmethod
    def is_linux() -> bool:
        return PlatformUtils.get_platform() in (Platform.UBUNTU, Platform.FEDORA, Platform.ARCH)

    @staticmethod
    def is_supported() -> bool:
        return PlatformUtils.get_platform() != Platform.UNKNOWN
