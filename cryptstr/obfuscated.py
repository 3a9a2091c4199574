"""
Obfuscated string holder.

An ObfuscatedString keeps only the transformed data and the transform that
restores it. The plaintext is recovered by decode(), which hands it out as a
SecureView; nothing else in the holder ever contains plaintext.
"""
import logging
from typing import Callable, Iterable, Optional

from cryptstr.ctstr import BUFFER_FORMAT, ITEMSIZE, FixedString, ordinal
from cryptstr.memory import default_allocator
from cryptstr.secure_view import SecureView
from cryptstr.transform import apply_transform

logger = logging.getLogger(__name__)


def inverse_of(transform: Callable) -> Callable:
    """
    Return the callable that undoes ``transform``.

    Plain callables are taken to be self-inverse. Transform objects answer
    through their inverse() method.
    """
    if getattr(transform, "involutory", True):
        return transform
    inverse = getattr(transform, "inverse", None)
    if inverse is None:
        raise TypeError(f"{type(transform).__name__} is not involutory and has no inverse()")
    try:
        return inverse()
    except NotImplementedError as exc:
        raise TypeError(str(exc)) from exc


class ObfuscatedString:
    """
    An obfuscated string instance which can only be read via a SecureView.

    ``cipher`` is the already transformed data. Use crypt() to build one
    from plaintext.
    """

    __slots__ = ("_data", "_transform", "_inverse")

    def __init__(self, transform: Callable, cipher, length: Optional[int] = None):
        data = FixedString(cipher, length)
        object.__setattr__(self, "_inverse", inverse_of(transform))
        object.__setattr__(self, "_transform", transform)
        object.__setattr__(self, "_data", data)

    @classmethod
    def from_ordinals(cls, transform: Callable, ordinals: Iterable[int], char_type,
                      length: Optional[int] = None) -> "ObfuscatedString":
        return cls(transform, FixedString.from_ordinals(ordinals, char_type, length))

    @property
    def transform(self) -> Callable:
        return self._transform

    @property
    def char_type(self):
        return self._data.char_type

    def size(self) -> int:
        return self._data.size()

    def __len__(self):
        return self._data.size()

    def cipher_view(self) -> FixedString:
        """The stored obfuscated data, for comparisons without decoding."""
        return self._data

    def decode(self) -> SecureView:
        """
        Restore the plaintext into a new SecureView.

        The plaintext is first written to a temporary buffer from the zeroing
        allocator, copied into the view's own buffer, and the temporary is
        wiped before returning. Every call yields an independent view.
        """
        data = self._data
        char_type = data.char_type
        size = data.size()
        source = data.get()
        with default_allocator.scoped(size, ITEMSIZE[char_type]) as raw:
            codes = memoryview(raw).cast(BUFFER_FORMAT[char_type])
            try:
                for i in range(size):
                    codes[i] = ordinal(char_type, self._inverse(source, size, i))
            finally:
                codes.release()
            view = SecureView._from_buffer(char_type, raw, size)
        logger.debug("decoded ObfuscatedString of size %d", size)
        return view

    def __setattr__(self, name, value):
        raise AttributeError("ObfuscatedString is immutable")

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __reduce__(self):
        return (self.__class__, (self._transform, self._data))

    def __eq__(self, other):
        if not isinstance(other, ObfuscatedString):
            return NotImplemented
        return self._data == other._data and self._transform == other._transform

    def __hash__(self):
        return hash(self._data)

    def __repr__(self):
        return f"ObfuscatedString(size={self.size()}, transform={self._transform!r})"


def crypt(transform: Callable, plaintext, length: Optional[int] = None) -> ObfuscatedString:
    """
    Construct an ObfuscatedString from an unobfuscated source.

    ``plaintext`` is a ``str``/``bytes`` literal or a FixedString. When
    ``length`` is given it must match the plaintext, else SizeMismatch.
    """
    source = FixedString(plaintext, length)
    return ObfuscatedString(transform, apply_transform(transform, source), length)
