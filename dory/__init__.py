"""dory - local development DNS for your containers."""

from dory.core.constants import APP_VERSION

__version__ = APP_VERSION
__description__ = "Keeps dory settings current and points the host resolver at a local nameserver"

from dory.core.config import Config  # noqa: E402
from dory.resolv import get_resolver  # noqa: E402

__all__ = ["Config", "get_resolver", "__version__"]
