# -*- coding: utf-8 -*-
#
# GPL License and Copyright Notice ============================================
#  This file is part of EMEVD Bash.
#
#  EMEVD Bash is free software: you can redistribute it and/or
#  modify it under the terms of the GNU General Public License
#  as published by the Free Software Foundation, either version 3
#  of the License, or (at your option) any later version.
#
#  EMEVD Bash is distributed in the hope that it will be useful,
#  but WITHOUT ANY WARRANTY; without even the implied warranty of
#  MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
#  GNU General Public License for more details.
#
#  You should have received a copy of the GNU General Public License
#  along with EMEVD Bash.  If not, see <https://www.gnu.org/licenses/>.
#
#  Wrye Bash copyright (C) 2005-2009 Wrye, 2010-2024 Wrye Bash Team
#  https://github.com/wrye-bash
#
# =============================================================================
"""Houses the low-level classes for reading and writing bytes in event
scripts: a bounds-checked reader, a writer that can reserve fields and fill
them in later, and the WidthCodec that hides the difference between 32-bit
and 64-bit natural words from everything above it."""
from __future__ import annotations

import io
import os
from contextlib import contextmanager

from .bolt import struct_error, structs_cache
from .exception import FieldOverflowError, StateError, TruncatedError, \
    UnexpectedValueError

#------------------------------------------------------------------------------
# Reading ---------------------------------------------------------------------
class EmevdReader(object):
    """Wrapper around an event script in read mode. Requires a seekable
    stream. Will throw a TruncatedError if a read operation fails to return
    the correct size or a seek would leave the stream."""

    def __init__(self, in_name, ins, ins_size=None):
        self.in_name = in_name
        self.ins = ins
        #--Get ins size
        if ins_size is None:
            curPos = ins.tell()
            ins.seek(0, os.SEEK_END)
            ins_size = ins.tell()
            ins.seek(curPos)
        self.size = ins_size

    @classmethod
    def from_bytes(cls, in_name, data: bytes):
        """Boilerplate for creating an EmevdReader over in-memory data."""
        return cls(in_name, io.BytesIO(data), len(data))

    #--I/O Stream -----------------------------------------
    def seek(self, offset, whence=os.SEEK_SET, *debug_strs):
        """File seek."""
        if whence == os.SEEK_CUR:
            newPos = self.ins.tell() + offset
        elif whence == os.SEEK_END:
            newPos = self.size + offset
        else:
            newPos = offset
        if newPos < 0 or newPos > self.size:
            raise TruncatedError(self.in_name, debug_strs, newPos, self.size)
        self.ins.seek(offset, whence)

    def tell(self):
        """File tell."""
        return self.ins.tell()

    @contextmanager
    def stepping_into(self, offset, *debug_strs):
        """Moves to the absolute position offset for the duration of the with
        block, then moves back to where we were - even if reading inside the
        block raised. Nest these freely."""
        prev_pos = self.ins.tell()
        self.seek(offset, os.SEEK_SET, *debug_strs)
        try:
            yield self
        finally:
            self.ins.seek(prev_pos)

    #--Read/Unpack ----------------------------------------
    def read(self, size, *debug_strs):
        """Read exactly size bytes from file."""
        endPos = self.ins.tell() + size
        if size < 0 or endPos > self.size:
            raise TruncatedError(self.in_name, debug_strs, endPos, self.size)
        return self.ins.read(size)

    def unpack(self, struct_unpacker, size, *debug_strs):
        """Read size bytes from the file and unpack according to format of
        struct_unpacker."""
        endPos = self.ins.tell() + size
        if endPos > self.size:
            raise TruncatedError(self.in_name, debug_strs, endPos, self.size)
        return struct_unpacker(self.ins.read(size))

    def unpack_one(self, fmt_str, *debug_strs):
        """Read and unpack a single value of the specified format."""
        fmt_struct = structs_cache[fmt_str]
        return self.unpack(fmt_struct.unpack, fmt_struct.size, *debug_strs)[0]

    def assert_value(self, fmt_str, expected, *debug_strs):
        """Read a single value and raise an UnexpectedValueError if it is not
        the expected one. Returns the value."""
        actual = self.unpack_one(fmt_str, *debug_strs)
        if actual != expected:
            raise UnexpectedValueError(self.in_name, debug_strs, expected,
                                       actual)
        return actual

    def __repr__(self):
        return f'{type(self).__name__}({self.in_name})'

#------------------------------------------------------------------------------
# Writing ---------------------------------------------------------------------
class EmevdWriter(object):
    """Output stream for event scripts. Fields whose values are not known yet
    can be reserved by name and filled in once they are - the same name may
    be reserved several times, filling it writes every slot."""

    def __init__(self, out_name=None):
        self.out_name = out_name
        self._out = io.BytesIO()
        # name -> list of (position, format string)
        self._reservations: dict[str, list[tuple[int, str]]] = {}

    def tell(self):
        return self._out.tell()

    def write(self, data: bytes):
        self._out.write(data)

    def pack(self, fmt_str, value, *debug_strs):
        """Pack a single value, refusing to silently truncate it."""
        try:
            packed = structs_cache[fmt_str].pack(value)
        except (struct_error, OverflowError):
            raise FieldOverflowError(self.out_name, debug_strs, value,
                                     fmt_str) from None
        self._out.write(packed)

    def reserve(self, res_name, fmt_str):
        """Write a placeholder for a field of the specified format and
        remember where it went."""
        self._reservations.setdefault(res_name, []).append(
            (self._out.tell(), fmt_str))
        self._out.write(b'\x00' * structs_cache[fmt_str].size)

    def fill(self, res_name, value):
        """Back-patch every slot reserved under res_name with value. The
        write position is left untouched."""
        try:
            res_slots = self._reservations.pop(res_name)
        except KeyError:
            raise StateError(f'No open reservation named {res_name!r}')
        end_pos = self._out.tell()
        try:
            for slot_pos, fmt_str in res_slots:
                self._out.seek(slot_pos)
                self.pack(fmt_str, value, res_name)
        finally:
            self._out.seek(end_pos)

    def getvalue(self) -> bytes:
        if self._reservations:
            raise StateError(f'Reservations were never filled: '
                             f'{", ".join(sorted(self._reservations))}')
        return self._out.getvalue()

#------------------------------------------------------------------------------
# Natural words ---------------------------------------------------------------
class WidthCodec(object):
    """Reads and writes the natural word of a variant - 32 bits for Alpha, 64
    bits for Beta and Gamma. Nothing else should have to care about that."""
    __slots__ = ('natural_width', '_uint_fmt', '_sint_fmt')

    def __init__(self, variant):
        self.natural_width = variant.natural_width
        if variant.is_wide:
            self._uint_fmt, self._sint_fmt = '<Q', '<q'
        else:
            self._uint_fmt, self._sint_fmt = '<I', '<i'

    def read_natural(self, ins: EmevdReader, *debug_strs) -> int:
        return ins.unpack_one(self._uint_fmt, *debug_strs)

    def read_natural_signed(self, ins: EmevdReader, *debug_strs) -> int:
        return ins.unpack_one(self._sint_fmt, *debug_strs)

    def read_zero(self, ins: EmevdReader, *debug_strs):
        """Check that the next natural word is exactly zero."""
        ins.assert_value(self._uint_fmt, 0, *debug_strs)

    def read_expected(self, ins: EmevdReader, expected: int, *debug_strs):
        """Check that the next natural word holds expected. Negative expected
        values are compared against the signed interpretation."""
        ins.assert_value(self._sint_fmt if expected < 0 else self._uint_fmt,
                         expected, *debug_strs)

    def write_natural(self, out: EmevdWriter, value: int, *debug_strs):
        out.pack(self._uint_fmt, value, *debug_strs)

    def write_natural_signed(self, out: EmevdWriter, value: int, *debug_strs):
        out.pack(self._sint_fmt, value, *debug_strs)

    def reserve_natural(self, out: EmevdWriter, res_name: str):
        out.reserve(res_name, self._uint_fmt)

    def fill_natural(self, out: EmevdWriter, res_name: str, value: int):
        out.fill(res_name, value)

    def __repr__(self):
        return f'WidthCodec({self.natural_width * 8}-bit)'
