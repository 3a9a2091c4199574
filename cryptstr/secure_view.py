"""
A view into a decoded ObfuscatedString.

The decoded elements live in a single ``bytearray`` owned by exactly one
SecureView. On destruction the buffer is zeroed through memzero() before the
reference is dropped. Destruction happens when a ``with`` block exits
(also on exceptions), on dispose(), or when the object is collected.

Copies are refused: a SecureView can not be copied, deep-copied, pickled,
converted to ``bytes`` or re-targeted by attribute assignment. Ownership can
only be transferred with SecureView.move(), which leaves the source inert.
"""
import hmac
import logging
import operator
from enum import Enum

from cryptstr.ctstr import BUFFER_FORMAT, ITEMSIZE, FixedString, ordinal, to_element
from cryptstr.errors import DuplicationError, OutOfRange, ViewReleasedError
from cryptstr.memory import default_allocator, memzero

logger = logging.getLogger(__name__)


class ViewState(Enum):
    ACTIVE = "active"
    MOVED = "moved"
    DESTROYED = "destroyed"


def _set(view, name, value):
    object.__setattr__(view, name, value)


class SecureView:
    __slots__ = ("_char_type", "_buffer", "_codes", "_size", "_state", "__weakref__")

    def __init__(self, source: FixedString):
        # only allowed constructor is from a FixedString
        if isinstance(source, SecureView):
            raise DuplicationError("copy construction")
        if not isinstance(source, FixedString):
            raise DuplicationError(f"construction from {type(source).__name__}")
        char_type = source.char_type
        self._adopt(char_type, bytearray(len(source) * ITEMSIZE[char_type]), len(source))
        codes = self._codes
        for i, element in enumerate(source.get()):
            codes[i] = ordinal(char_type, element)

    @classmethod
    def _from_buffer(cls, char_type, buffer: bytearray, size: int) -> "SecureView":
        """Copy an already encoded buffer into a freshly owned one."""
        view = cls.__new__(cls)
        view._adopt(char_type, bytearray(buffer), size)
        return view

    @classmethod
    def move(cls, other: "SecureView") -> "SecureView":
        """Transfer ownership of ``other``'s buffer into a new view."""
        if not isinstance(other, SecureView):
            raise TypeError(f"can only move from a SecureView, not {type(other).__name__}")
        other._ensure_active()
        view = cls.__new__(cls)
        _set(view, "_char_type", other._char_type)
        _set(view, "_buffer", other._buffer)
        _set(view, "_codes", other._codes)
        _set(view, "_size", other._size)
        _set(view, "_state", ViewState.ACTIVE)
        _set(other, "_buffer", None)
        _set(other, "_codes", None)
        _set(other, "_state", ViewState.MOVED)
        return view

    def _adopt(self, char_type, buffer: bytearray, size: int):
        _set(self, "_char_type", char_type)
        _set(self, "_buffer", buffer)
        _set(self, "_codes", memoryview(buffer).cast(BUFFER_FORMAT[char_type]))
        _set(self, "_size", size)
        _set(self, "_state", ViewState.ACTIVE)

    def _ensure_active(self):
        if self._state is not ViewState.ACTIVE:
            raise ViewReleasedError(self._state)

    # Lifecycle

    @property
    def state(self) -> ViewState:
        return self._state

    def dispose(self):
        """Zero and release the buffer. Safe to call more than once."""
        state = getattr(self, "_state", None)
        if state is None:
            return
        if state is ViewState.ACTIVE:
            try:
                memzero(self._buffer, self._size * ITEMSIZE[self._char_type])
            finally:
                self._codes.release()
                _set(self, "_codes", None)
                _set(self, "_buffer", None)
            logger.debug("wiped SecureView of size %d", self._size)
        _set(self, "_state", ViewState.DESTROYED)

    def __enter__(self):
        self._ensure_active()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.dispose()
        return False

    def __del__(self):
        self.dispose()

    # Read accessors

    @property
    def char_type(self):
        return self._char_type

    def size(self) -> int:
        return self._size if self._state is ViewState.ACTIVE else 0

    def __len__(self):
        return self.size()

    def at(self, index):
        self._ensure_active()
        index = operator.index(index)
        if not 0 <= index < self._size:
            raise OutOfRange(index, self._size)
        return to_element(self._char_type, self._codes[index])

    def __getitem__(self, index):
        if isinstance(index, slice):
            raise TypeError("SecureView does not support slicing")
        return self.at(index)

    def __iter__(self):
        for index in range(self.size()):
            yield self.at(index)

    def __eq__(self, other):
        self._ensure_active()
        if isinstance(other, SecureView):
            other._ensure_active()
            if other._char_type is not self._char_type or other._size != self._size:
                return False
            return hmac.compare_digest(self._buffer, other._buffer)
        if isinstance(other, (str, bytes, bytearray)):
            other = FixedString(other)
        elif not isinstance(other, FixedString):
            return NotImplemented
        if other.char_type is not self._char_type or len(other) != self._size:
            return False
        itemsize = ITEMSIZE[self._char_type]
        with default_allocator.scoped(self._size, itemsize) as scratch:
            codes = memoryview(scratch).cast(BUFFER_FORMAT[self._char_type])
            try:
                for i, element in enumerate(other.get()):
                    codes[i] = ordinal(self._char_type, element)
            finally:
                codes.release()
            return hmac.compare_digest(self._buffer, scratch)

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    __hash__ = None

    def render(self, sink):
        """
        Write the decoded content to ``sink``.

        Text views write one character at a time to a text sink, bytes views
        hand the owned buffer to a binary sink in a single write.
        """
        self._ensure_active()
        if self._char_type is bytes:
            sink.write(self._buffer)
        else:
            for code in self._codes:
                sink.write(chr(code))
        return sink

    def __str__(self):
        return "[PROTECTED]"

    def __repr__(self):
        return f"<SecureView size={self.size()} state={self._state.value}>"

    # Disallowed behavior

    def __bytes__(self):
        raise DuplicationError("conversion to bytes")

    def __copy__(self):
        raise DuplicationError("copy")

    def __deepcopy__(self, memo):
        raise DuplicationError("deepcopy")

    def __reduce_ex__(self, protocol):
        raise DuplicationError("pickling")

    def __setattr__(self, name, value):
        raise DuplicationError("move assignment")

    def __delattr__(self, name):
        raise DuplicationError("move assignment")
