"""
cryptstr configuration

Module-level settings, each overridable through the environment:

    CRYPTSTR_HOME         directory for the log file (default ~/.cryptstr)
    CRYPTSTR_LOG_LEVEL    level name for the CLI log file (default ERROR)
    CRYPTSTR_DEFAULT_KEY  XOR key used when a manifest entry names none
"""
import os
from pathlib import Path

APP_NAME = "cryptstr"
APP_VERSION = "0.1.0"

CONFIG_DIR = Path(os.environ.get("CRYPTSTR_HOME") or Path.home() / ".cryptstr")
LOG_FILE = CONFIG_DIR / "cryptstr.log"
LOG_LEVEL = os.environ.get("CRYPTSTR_LOG_LEVEL", "ERROR").upper()

DEFAULT_XOR_KEY = int(os.environ.get("CRYPTSTR_DEFAULT_KEY", "0x1337"), 0)

# Literal manifests
MANIFEST_SUFFIX = ".cryptstr"
GENERATED_HEADER = "# Generated by cryptstr from {source}. Do not edit."
LOCK_TIMEOUT = 10  # seconds to wait for the output lock
LOCK_DIR = CONFIG_DIR / "locks"
# literals shorter than this are skipped by the artifact scan
LEAK_SCAN_MIN_LENGTH = 4
