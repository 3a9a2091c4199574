"""
Volatile memory routines.

Every write goes through ``ctypes.memset`` on the buffer address and is
performed whether or not anything reads the buffer afterwards.

You should not call them in tight loops.
"""
import ctypes
import logging
from contextlib import contextmanager

logger = logging.getLogger(__name__)


def _nbytes(buffer) -> int:
    with memoryview(buffer) as view:
        return view.nbytes


def memset(buffer, value: int, length: int = None) -> None:
    """Set ``length`` bytes of a writable buffer to ``value``."""
    if buffer is None:
        return
    if length is None:
        length = _nbytes(buffer)
    if length <= 0:
        return
    target = (ctypes.c_char * length).from_buffer(buffer)
    try:
        ctypes.memset(ctypes.addressof(target), value & 0xFF, length)
    finally:
        del target


def memzero(buffer, length: int = None) -> None:
    """Set ``length`` bytes of a writable buffer (all of it by default) to zero."""
    memset(buffer, 0, length)


class ZeroingAllocator:
    """
    Hands out plain ``bytearray`` buffers and zeroes them on deallocation.

    Used for every temporary that holds decoded data, so the plaintext never
    sits in a buffer nobody wipes.
    """

    def allocate(self, count: int, itemsize: int = 1) -> bytearray:
        # MemoryError propagates unchanged
        return bytearray(count * itemsize)

    def deallocate(self, buffer: bytearray) -> None:
        memzero(buffer)
        logger.debug("deallocated %d zeroed bytes", len(buffer))

    @contextmanager
    def scoped(self, count: int, itemsize: int = 1):
        buffer = self.allocate(count, itemsize)
        try:
            yield buffer
        finally:
            self.deallocate(buffer)


default_allocator = ZeroingAllocator()
