from __future__ import annotations

import struct
from typing import Optional

_U8 = struct.Struct("<B")
_U16 = struct.Struct("<H")
_I16 = struct.Struct("<h")
_U32 = struct.Struct("<I")
_I32 = struct.Struct("<i")


class ByteReader:
    """
    Forward-only cursor over an immutable buffer.
    Every read returns ``None`` instead of raising when the buffer is too short,
    and a failed read does not move the cursor.
    """

    def __init__(self, data: bytes):
        self._data = bytes(data)
        self._offset = 0

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    @property
    def at_end(self) -> bool:
        return self._offset >= len(self._data)

    def _read(self, fmt: struct.Struct) -> Optional[int]:
        if self.remaining < fmt.size:
            return None
        (value,) = fmt.unpack_from(self._data, self._offset)
        self._offset += fmt.size
        return value

    def read_u8(self) -> Optional[int]:
        return self._read(_U8)

    def read_u16(self) -> Optional[int]:
        return self._read(_U16)

    def read_i16(self) -> Optional[int]:
        return self._read(_I16)

    def read_u32(self) -> Optional[int]:
        return self._read(_U32)

    def read_i32(self) -> Optional[int]:
        return self._read(_I32)

    def read_checksum_byte(self) -> Optional[int]:
        # trailing integrity byte; the algorithm behind it is unknown so it is not checked
        return self._read(_U8)
