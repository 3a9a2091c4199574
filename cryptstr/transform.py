"""
Per-character transforms.

A transform is any callable of the form::

    transform(source, length, index) -> element

where ``source`` is the element tuple of a FixedString. It must be pure: the
result for ``index`` depends only on the arguments, so elements can be
computed in any order.
"""
import functools
from typing import Callable, List

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms

from cryptstr import config
from cryptstr.ctstr import FixedString, MAX_ORDINAL, ordinal, to_element
from cryptstr.validators import KeyValidator

KEYSTREAM_KEY_SIZE = 32
KEYSTREAM_NONCE = bytes(16)


class Transform:
    """
    Base class for transforms.

    ``involutory`` transforms are their own inverse, so the same object
    obfuscates and restores. Other transforms must override inverse().
    """

    involutory = False

    def __call__(self, source, length: int, index: int):
        raise NotImplementedError

    def inverse(self) -> "Transform":
        if self.involutory:
            return self
        raise NotImplementedError(f"{type(self).__name__} does not provide an inverse")


def _char_type_of(source) -> type:
    # transforms only ever see element tuples, so peek at an element
    return str if source and isinstance(source[0], str) else bytes


def apply_transform(transform: Callable, source) -> FixedString:
    """
    Apply ``transform`` to every element of ``source`` and return a new
    FixedString of the same length and character type.
    """
    if not isinstance(source, FixedString):
        source = FixedString(source)
    elements = source.get()
    length = len(elements)
    values = [transform(elements, length, i) for i in range(length)]
    return FixedString(values, length, source.char_type)


class XorTransform(Transform):
    """A standard XOR functor for obfuscation."""

    involutory = True

    def __init__(self, key: int):
        KeyValidator().validate_xor_key(key)
        self.key = key

    def __call__(self, source, length, index):
        element = source[index]
        char_type = _char_type_of(source)
        value = ordinal(char_type, element) ^ self.key
        if char_type is bytes:
            # bytes keep only the low 8 bits, like a char-width store
            value &= MAX_ORDINAL[bytes]
        return to_element(char_type, value)

    def __eq__(self, other):
        if not isinstance(other, XorTransform):
            return NotImplemented
        return self.key == other.key

    def __hash__(self):
        return hash((XorTransform, self.key))

    def __repr__(self):
        return f"XorTransform({self.key:#x})"


@functools.lru_cache(maxsize=256)
def _keystream(key: bytes, nonce: bytes, nbytes: int) -> bytes:
    encryptor = Cipher(algorithms.ChaCha20(key, nonce), mode=None).encryptor()
    return encryptor.update(bytes(nbytes)) + encryptor.finalize()


class KeystreamTransform(Transform):
    """
    XOR against a ChaCha20 keystream, so equal characters at different
    positions obfuscate differently.

    One keystream byte covers a bytes element, two cover a str element.
    Keystreams are cached per length.
    """

    involutory = True

    def __init__(self, key: bytes, nonce: bytes = KEYSTREAM_NONCE):
        validator = KeyValidator()
        validator.validate_keystream_key(key, KEYSTREAM_KEY_SIZE)
        validator.validate_keystream_nonce(nonce, len(KEYSTREAM_NONCE))
        self.key = bytes(key)
        self.nonce = bytes(nonce)

    def __call__(self, source, length, index):
        char_type = _char_type_of(source)
        if char_type is bytes:
            stream = _keystream(self.key, self.nonce, length)
            return source[index] ^ stream[index]
        stream = _keystream(self.key, self.nonce, length * 2)
        mask = int.from_bytes(stream[index * 2:index * 2 + 2], "little")
        return to_element(str, ord(source[index]) ^ mask)

    def __eq__(self, other):
        if not isinstance(other, KeystreamTransform):
            return NotImplemented
        return (self.key, self.nonce) == (other.key, other.nonce)

    def __hash__(self):
        return hash((KeystreamTransform, self.key, self.nonce))

    def __repr__(self):
        return "KeystreamTransform(<key>)"


def transform_from_options(options: List[str], key_factory=None) -> Transform:
    """
    Build a transform from a manifest option list.

        ["xor"]                -> XorTransform(default key)
        ["xor", "0x1337"]      -> XorTransform(0x1337)
        ["keystream"]          -> KeystreamTransform(key_factory())
        ["keystream", "<hex>"] -> KeystreamTransform(bytes.fromhex(...))
    """
    if not options:
        raise ValueError("no transform given")
    name, params = options[0].lower(), options[1:]
    if name == "xor":
        if len(params) > 1:
            raise ValueError("xor takes at most one parameter (the key)")
        key = int(params[0], 0) if params else config.DEFAULT_XOR_KEY
        return XorTransform(key)
    if name == "keystream":
        if len(params) > 1:
            raise ValueError("keystream takes at most one parameter (the hex key)")
        if params:
            key = bytes.fromhex(params[0])
        else:
            if key_factory is None:
                raise ValueError("keystream needs a key or a key factory")
            key = key_factory()
        return KeystreamTransform(key)
    raise ValueError(f"unknown transform: {options[0]}")
