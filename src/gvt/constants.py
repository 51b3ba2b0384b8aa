"""Constants for gvt."""

# Repository marker directory
GVT_DIR = ".gvt"

# Pointer and metadata files (inside GVT_DIR)
LATEST_FILE = ".latest"
ACTIVE_FILE = ".active"
LOCK_FILE = ".lock"
CONFIG_FILE = "config.yaml"

# Message record (inside each generation directory)
MESSAGE_FILE = ".message"

# Names that belong to the repository itself and never to a snapshot
INTERNAL_PATTERNS = [
    GVT_DIR,
    f"{GVT_DIR}.*",
    LATEST_FILE,
    ACTIVE_FILE,
    MESSAGE_FILE,
]

# Project-level ignore file
IGNORE_FILE = ".gvtignore"

INIT_MESSAGE = "GVT initialized."

# Version
GVT_VERSION = "0.1.0"
