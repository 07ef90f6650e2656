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
"""Instruction argument blobs. A blob is a packed C struct whose fields are
described by the schema: each field is aligned to its own width, relative to
the start of the blob, and there is no trailing padding."""
from __future__ import annotations

from collections.abc import Sequence

from .bolt import struct_error, structs_cache
from .exception import ArgumentError, FieldOverflowError, TruncatedError, \
    UnsupportedArgTypeError
from .schema import ArgDescriptor, ArgType, ArgValue

def align_up(position: int, alignment: int) -> int:
    """Round position up to the next multiple of alignment."""
    return position + (-position % alignment)

class ArgumentBlobCodec(object):
    """Decodes and encodes the argument blob of a single instruction,
    according to a list of argument descriptors."""
    __slots__ = ('in_name',)

    def __init__(self, in_name=None):
        self.in_name = in_name

    def _arg_type(self, arg_desc: ArgDescriptor) -> ArgType:
        try:
            return ArgType(arg_desc.arg_type)
        except ValueError:
            raise UnsupportedArgTypeError(self.in_name,
                                          arg_desc.arg_type) from None

    def _walk(self, arg_descs: Sequence[ArgDescriptor]):
        """Yield (position, type) for each descriptor in order, then the
        total length as (length, None)."""
        blob_pos = 0
        for arg_desc in arg_descs:
            arg_type = self._arg_type(arg_desc)
            blob_pos = align_up(blob_pos, arg_type.size)
            yield blob_pos, arg_type
            blob_pos += arg_type.size
        yield blob_pos, None

    def blob_length(self, arg_descs: Sequence[ArgDescriptor]) -> int:
        """The length of a blob laid out according to arg_descs, derived
        purely from the descriptors."""
        *_fields, (total_len, _none) = self._walk(arg_descs)
        return total_len

    def decode_args(self, blob: bytes, arg_descs: Sequence[ArgDescriptor],
                    *debug_strs) -> list[ArgValue]:
        """Decode blob into one typed value per descriptor. Bytes past the
        last field are ignored."""
        decoded = []
        for blob_pos, arg_type in self._walk(arg_descs):
            if arg_type is None: break
            end_pos = blob_pos + arg_type.size
            if end_pos > len(blob):
                raise TruncatedError(self.in_name, debug_strs, end_pos,
                                     len(blob))
            decoded.append(ArgValue(arg_type, structs_cache[
                arg_type.fmt_str].unpack_from(blob, blob_pos)[0]))
        return decoded

    def encode_args(self, arg_values: Sequence[ArgValue],
                    arg_descs: Sequence[ArgDescriptor], *debug_strs) -> bytes:
        """Encode arg_values into a blob, zero-filling alignment gaps. The
        values must match the descriptors one to one, type included."""
        if len(arg_values) != len(arg_descs):
            raise ArgumentError(f'{".".join(map(str, debug_strs))}: Expected '
                                f'{len(arg_descs)} arguments, but got '
                                f'{len(arg_values)}')
        out_data = bytearray()
        for (blob_pos, arg_type), arg_val in zip(self._walk(arg_descs),
                                                 arg_values):
            if arg_val.arg_type != arg_type:
                raise ArgumentError(f'{".".join(map(str, debug_strs))}: '
                                    f'Argument {arg_val!r} does not match '
                                    f'schema type {arg_type.name}')
            out_data += b'\x00' * (blob_pos - len(out_data))
            try:
                out_data += structs_cache[arg_type.fmt_str].pack(
                    arg_val.value)
            except (struct_error, OverflowError):
                raise FieldOverflowError(self.in_name, debug_strs,
                    arg_val.value, arg_type.fmt_str) from None
        return bytes(out_data)
