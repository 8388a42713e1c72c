"""
Project constants definitions
"""

# ============================================================
# Checkpoint
# ============================================================

CHECKPOINT_FILE = ".rdeploy-revision"
CHECKPOINT_TMP_SUFFIX = ".tmp"

# ============================================================
# Ignore Rules
# ============================================================

IGNORE_FILE_NAME = ".gitignore"
VCS_METADATA_DIR = ".git"

# ============================================================
# Git File Modes
# ============================================================

GIT_MODE_EXECUTABLE = "100755"
GIT_MODE_SYMLINK = "120000"
GIT_MODE_SUBMODULE = "160000"

# ============================================================
# Transfer
# ============================================================

REMOTE_STAGING_DIR = "/tmp"
ARCHIVE_PREFIX = "rdeploy-"
ARCHIVE_SUFFIX = ".tar.gz"
DELETE_BATCH_SIZE = 200

# ============================================================
# Default Values
# ============================================================

DEFAULT_SSH_PORT = 22
DEFAULT_SSH_TIMEOUT = 10
DEFAULT_REVISION = "HEAD"
DEFAULT_COMMAND_TIMEOUT = 300
DEFAULT_GIT_TIMEOUT = 120

# ============================================================
# SSH Config
# ============================================================

SSH_CONFIG_PATH = "~/.ssh/config"

# ============================================================
# Environment
# ============================================================

ENV_PREFIX = "RDEPLOY_"
