import os
import tempfile
from pathlib import Path

# Load environment variables from .env file
from dotenv import load_dotenv

# Load .env from project root
_project_root = Path(__file__).parent.parent.parent
load_dotenv(_project_root / ".env")

# Application version from environment
APP_VERSION = os.getenv("APP_VERSION", "1.0.0")

# Settings file
CONFIG_FILE = os.getenv("DORY_CONFIG_FILE", os.path.join(os.path.expanduser("~"), ".dory.yml"))

# Resolver locations
MACOS_RESOLV_DIR = os.getenv("DORY_MACOS_RESOLV_DIR", "/etc/resolver")
LINUX_RESOLV_FILE = os.getenv("DORY_LINUX_RESOLV_FILE", "/etc/resolv.conf")
UBUNTU_RESOLVCONF_HEAD = os.getenv("DORY_UBUNTU_RESOLVCONF_HEAD", "/etc/resolvconf/resolv.conf.d/head")

# Marker written into every resolver entry we author
FILE_COMMENT = "# added by dory"
FILE_COMMENT_END = "# end added by dory"

DEFAULT_NAMESERVER = "127.0.0.1"
DEFAULT_RESOLV_PORT = 19323

# Temporary directory (cross-platform)
TMPDIR = os.path.join(os.environ.get("TMPDIR", tempfile.gettempdir()), "dory")

# Log files
LOG_FILE = os.path.join(TMPDIR, "dory.log")
