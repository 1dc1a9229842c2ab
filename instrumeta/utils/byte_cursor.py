# instrumeta/utils/byte_cursor.py
import struct


class OutOfBoundsError(IndexError):
    """A read or seek would leave the underlying buffer."""


class ByteCursor:
    """
    Read-only cursor over an in-memory buffer.

    Every read is checked against the buffer length before any bytes are
    touched, so a truncated or hostile length field can never index past the
    end of the data.
    """

    def __init__(self, data: bytes, offset: int = 0):
        self._data = memoryview(data)
        self._offset = 0
        self.seek(offset)

    @property
    def offset(self) -> int:
        return self._offset

    def __len__(self) -> int:
        return len(self._data)

    def remaining(self) -> int:
        return len(self._data) - self._offset

    def can_read(self, size: int) -> bool:
        return 0 <= size <= self.remaining()

    def seek(self, offset: int) -> None:
        if offset < 0 or offset > len(self._data):
            raise OutOfBoundsError(
                f"offset {offset} outside buffer of {len(self._data)} bytes"
            )
        self._offset = offset

    def skip(self, size: int) -> None:
        self.seek(self._checked_end(size))

    def read(self, size: int) -> bytes:
        end = self._checked_end(size)
        chunk = self._data[self._offset:end].tobytes()
        self._offset = end
        return chunk

    def peek(self, size: int) -> bytes:
        end = self._checked_end(size)
        return self._data[self._offset:end].tobytes()

    def read_u16(self, byteorder: str = "<") -> int:
        return struct.unpack(byteorder + "H", self.read(2))[0]

    def read_u32(self, byteorder: str = "<") -> int:
        return struct.unpack(byteorder + "I", self.read(4))[0]

    def read_u64(self, byteorder: str = "<") -> int:
        return struct.unpack(byteorder + "Q", self.read(8))[0]

    def read_u64_le(self) -> int:
        return self.read_u64("<")

    def slice(self, offset: int, size: int) -> bytes:
        """Return ``size`` bytes starting at absolute ``offset`` without moving."""
        if offset < 0 or size < 0 or offset + size > len(self._data):
            raise OutOfBoundsError(
                f"range [{offset}, {offset + size}) outside buffer of "
                f"{len(self._data)} bytes"
            )
        return self._data[offset:offset + size].tobytes()

    def _checked_end(self, size: int) -> int:
        if size < 0:
            raise OutOfBoundsError(f"negative read size {size}")
        end = self._offset + size
        if end > len(self._data):
            raise OutOfBoundsError(
                f"read of {size} bytes at offset {self._offset} exceeds buffer "
                f"of {len(self._data)} bytes"
            )
        return end
