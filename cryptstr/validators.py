import keyword
from typing import List, Optional

KNOWN_TRANSFORMS = ("xor", "keystream")


class KeyValidator:
    def __init__(self):
        self.max_xor_key = 0xFFFF

    def check_xor_key(self, key) -> Optional[str]:
        if isinstance(key, bool) or not isinstance(key, int):
            return "XOR key must be an integer"
        if key <= 0:
            return "XOR key must be positive"
        if key > self.max_xor_key:
            return f"XOR key must not exceed {self.max_xor_key:#x}"
        if not key & 0xFF:
            return "XOR key must have a non-zero low byte, bytes literals keep only 8 bits"
        return None

    def check_keystream_key(self, key, size: int) -> Optional[str]:
        if not isinstance(key, (bytes, bytearray)):
            return "Keystream key must be bytes"
        if len(key) != size:
            return f"Keystream key must be {size} bytes, got {len(key)}"
        return None

    def validate_xor_key(self, key):
        self._raise_on(self.check_xor_key(key))

    def validate_keystream_key(self, key, size: int):
        self._raise_on(self.check_keystream_key(key, size))

    def validate_keystream_nonce(self, nonce, size: int):
        if not isinstance(nonce, (bytes, bytearray)) or len(nonce) != size:
            raise ValueError(f"Keystream nonce must be {size} bytes")

    @staticmethod
    def _raise_on(message: Optional[str]):
        if message is not None:
            raise ValueError(message)


class EntryValidator:
    """Checks the names and options found in a literal manifest."""

    def check_identifier(self, name: str) -> Optional[str]:
        if not name.isidentifier():
            return f"'{name}' is not a valid Python identifier"
        if keyword.iskeyword(name):
            return f"'{name}' is a Python keyword"
        if name.startswith("_"):
            return f"'{name}' must not start with an underscore"
        return None

    def check_options(self, options: List[str]) -> Optional[str]:
        if not options:
            return "An entry needs a transform"
        if options[0].lower() not in KNOWN_TRANSFORMS:
            return f"Unknown transform '{options[0]}'. Allowed: {', '.join(KNOWN_TRANSFORMS)}"
        return None
