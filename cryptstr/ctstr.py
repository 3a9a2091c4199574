"""
Fixed-length string container.

A FixedString is built once, usually while a module is imported, and never
changes afterwards. Its length is part of its identity: every construction
path checks the element count against the declared length, and every indexed
access is range-checked.

Two character types exist, mirroring the element types of the literals they
are built from:

    str    elements are one-character strings, ordinals are code points
    bytes  elements are ints in 0..255
"""
import operator
from typing import Iterable, Optional, Tuple

from cryptstr.errors import OutOfRange, SizeMismatch

CHAR_TYPES = (str, bytes)

MAX_ORDINAL = {str: 0x10FFFF, bytes: 0xFF}

# per-element layout used by buffers holding decoded data
ITEMSIZE = {str: 4, bytes: 1}
BUFFER_FORMAT = {str: "I", bytes: "B"}


def check_char_type(char_type):
    if char_type not in CHAR_TYPES:
        raise TypeError(f"unsupported character type: {char_type!r}")
    return char_type


def ordinal(char_type, element) -> int:
    """Return the integer value of a single element."""
    if char_type is str:
        return ord(element)
    return element


def to_element(char_type, value: int):
    """Inverse of ordinal()."""
    if not 0 <= value <= MAX_ORDINAL[char_type]:
        raise ValueError(f"ordinal {value:#x} outside the {char_type.__name__} range")
    if char_type is str:
        return chr(value)
    return value


def _validate_element(char_type, element):
    if char_type is str:
        if not isinstance(element, str) or len(element) != 1:
            raise TypeError(f"str elements must be single characters, got {element!r}")
    else:
        if isinstance(element, bool) or not isinstance(element, int):
            raise TypeError(f"bytes elements must be ints, got {element!r}")
        if not 0 <= element <= 0xFF:
            raise ValueError(f"byte value {element} outside 0..255")
    return element


class FixedString:
    """
    An immutable, length-checked sequence of characters.

    Construction accepts a ``str``, a ``bytes``/``bytearray`` literal,
    another FixedString (copy construction) or an iterable of elements
    together with an explicit ``char_type``. When ``length`` is given the
    source must supply exactly that many elements, otherwise SizeMismatch is
    raised and no value is created.
    """

    __slots__ = ("_char_type", "_elements")

    def __init__(self, source, length: Optional[int] = None, char_type=None):
        if isinstance(source, FixedString):
            if char_type is not None and char_type is not source.char_type:
                raise TypeError("cannot change the character type of a FixedString")
            char_type = source.char_type
            elements = source.get()
        elif isinstance(source, str):
            if char_type not in (None, str):
                raise TypeError("a str literal yields a str FixedString")
            char_type = str
            elements = tuple(source)
        elif isinstance(source, (bytes, bytearray)):
            if char_type not in (None, bytes):
                raise TypeError("a bytes literal yields a bytes FixedString")
            char_type = bytes
            elements = tuple(source)
        else:
            if char_type is None:
                raise TypeError("char_type is required when building from elements")
            check_char_type(char_type)
            elements = tuple(_validate_element(char_type, e) for e in source)

        if length is not None and length != len(elements):
            raise SizeMismatch(length, len(elements))

        object.__setattr__(self, "_char_type", char_type)
        object.__setattr__(self, "_elements", elements)

    @classmethod
    def from_ordinals(cls, ordinals: Iterable[int], char_type, length: Optional[int] = None):
        check_char_type(char_type)
        return cls([to_element(char_type, o) for o in ordinals], length, char_type)

    @property
    def char_type(self):
        return self._char_type

    def get(self) -> Tuple:
        """Read-only access to the backing elements."""
        return self._elements

    def ordinals(self) -> Tuple[int, ...]:
        return tuple(ordinal(self._char_type, e) for e in self._elements)

    def size(self) -> int:
        return len(self._elements)

    def __len__(self):
        return len(self._elements)

    def at(self, index):
        index = operator.index(index)
        if not 0 <= index < len(self._elements):
            raise OutOfRange(index, len(self._elements))
        return self._elements[index]

    def __getitem__(self, index):
        if isinstance(index, slice):
            raise TypeError("FixedString does not support slicing")
        return self.at(index)

    def __iter__(self):
        return iter(self._elements)

    def __eq__(self, other):
        if isinstance(other, (str, bytes, bytearray)):
            other = FixedString(other)
        elif not isinstance(other, FixedString):
            return NotImplemented
        # different sizes never compare equal
        if len(other) != len(self):
            return False
        return self._elements == other._elements

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self):
        return hash((self._char_type, self._elements))

    def __setattr__(self, name, value):
        raise AttributeError("FixedString is immutable")

    def __delattr__(self, name):
        raise AttributeError("FixedString is immutable")

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __reduce__(self):
        return (self.__class__, (self._elements, None, self._char_type))

    def __repr__(self):
        # never shows content
        return f"FixedString(size={len(self._elements)}, char_type={self._char_type.__name__})"


def make_fixed_string(source, length: Optional[int] = None, char_type=None) -> FixedString:
    return FixedString(source, length, char_type)
