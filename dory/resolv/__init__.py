"""Per-platform resolver strategies."""
from typing import Dict, Optional, Type

from dory.core.exceptions import UnsupportedPlatformError
from dory.resolv.base import ResolvBase
from dory.resolv.linux import ArchResolv, FedoraResolv, LinuxResolv, UbuntuResolv
from dory.resolv.macos import MacosResolv
from dory.utils.platform_utils import Platform, PlatformUtils

RESOLVERS: Dict[Platform, Type[ResolvBase]] = {
    Platform.MACOS: MacosResolv,
    Platform.UBUNTU: UbuntuResolv,
    Platform.FEDORA: FedoraResolv,
    Platform.ARCH: ArchResolv,
}


def get_resolver(platform: Optional[Platform] = None, use_sudo: bool = False) -> ResolvBase:
    """
    Build the resolver strategy for a platform.

    Args:
        platform: Target platform. Detected when None.
        use_sudo: Perform writes through sudo

    Raises:
        UnsupportedPlatformError: If no strategy exists for the platform
    """
    platform = platform or PlatformUtils.get_platform()
    resolver_cls = RESOLVERS.get(platform)
    if resolver_cls is None:
        raise UnsupportedPlatformError(
            f"Unsupported platform '{platform.value}': dory can configure macOS, Ubuntu, Fedora and Arch"
        )
    return resolver_cls(use_sudo=use_sudo)


__all__ = [
    "RESOLVERS",
    "ArchResolv",
    "FedoraResolv",
    "LinuxResolv",
    "MacosResolv",
    "ResolvBase",
    "UbuntuResolv",
    "get_resolver",
]
