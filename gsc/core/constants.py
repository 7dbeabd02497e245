"""
Project constants definitions
"""

# ============================================================
# Server
# ============================================================

DEFAULT_ENDPOINT = "http://localhost:9090"
DEFAULT_TIMEOUT = 30

# ============================================================
# Login State
# ============================================================

DOTFILE_ENV_VAR = "GSC_LOGIN"
DEFAULT_DOTFILE = "~/.gsclogin"

# ============================================================
# Configuration
# ============================================================

DEFAULT_CONFIG_PATH = "~/.config/gsc/config.toml"
ENV_PREFIX = "GSC_"

# ============================================================
# Transfer Defaults
# ============================================================

DEFAULT_PARALLEL = 1
CHUNK_SIZE = 64 * 1024  # 64KB

# ============================================================
# Project Layout
# ============================================================

SOURCE_DIR = "src"
TEST_DIR = "test"
RESOURCE_DIR = "Resources"
