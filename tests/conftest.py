"""
cryptstr test configuration

Shared fixtures for pytest.
"""

import os
import sys
import tempfile
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

# keep the CLI log file out of the user's home directory
os.environ.setdefault("CRYPTSTR_HOME", tempfile.mkdtemp(prefix="cryptstr-test-"))


@pytest.fixture
def manifest_text():
    return """# test manifest
group protocol {
    [FIRST_MARKER = "FIRST CRYPTED STRING"]:xor,0x1337;
    [SECOND_MARKER(21) = "SECOND CRYPTED STRING"]:xor;
}

group binary {
    [ELF_MAGIC = b"\\x7fELF"]:keystream;
    [SESSION_LABEL = "internal-session-label"]:keystream;
}
"""


@pytest.fixture
def manifest_file(tmp_path, manifest_text):
    path = tmp_path / "literals.cryptstr"
    path.write_text(manifest_text, encoding="utf-8")
    return path
