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
"""The small fixed-size records of an event script: layers, parameters and
linked files. None of them hold references to other records."""
from __future__ import annotations

from dataclasses import dataclass

from .binary import EmevdReader, EmevdWriter, WidthCodec
from .bolt import decoder, encode
from .exception import ArgumentError, DanglingReferenceError, \
    TruncatedError

# Linked file names live in the string data as NUL-terminated UTF-16LE
linked_file_encoding = u'UTF-16LE'
_str_terminator = b'\x00\x00'

#------------------------------------------------------------------------------
@dataclass(slots=True, frozen=True)
class Layer:
    """An event layer. Instructions refer to layers by offset into the layer
    table, but two layers with the same number are interchangeable."""
    layer_number: int

    # Trailing constants: zero, minus one, one
    _layer_tag = 2
    _validation_triplet = (0, -1, 1)

    @classmethod
    def load_layer(cls, ins: EmevdReader, width_codec: WidthCodec):
        ins.assert_value('<I', cls._layer_tag, u'LAYER', u'tag')
        layer_num = ins.unpack_one('<I', u'LAYER', u'layer_number')
        for expected in cls._validation_triplet:
            width_codec.read_expected(ins, expected, u'LAYER', u'trailer')
        return cls(layer_num)

    def dump_layer(self, out: EmevdWriter, width_codec: WidthCodec):
        out.pack('<I', self._layer_tag, u'LAYER', u'tag')
        out.pack('<I', self.layer_number, u'LAYER', u'layer_number')
        for trailing_val in self._validation_triplet:
            width_codec.write_natural_signed(out, trailing_val, u'LAYER',
                                             u'trailer')

#------------------------------------------------------------------------------
@dataclass(slots=True)
class Parameter:
    """A parameter substitution: when the owning event is initialized with
    arguments, length bytes starting at source_start_byte of those arguments
    replace the bytes starting at destination_start_byte in the arguments of
    instruction number instruction_number. We only store it."""
    instruction_number: int
    destination_start_byte: int
    source_start_byte: int
    length: int

    @classmethod
    def load_parameter(cls, ins: EmevdReader, width_codec: WidthCodec,
                       has_trailing_zero: bool):
        read_w = width_codec.read_natural
        param = cls(read_w(ins, u'PARAM', u'instruction_number'),
                    read_w(ins, u'PARAM', u'destination_start_byte'),
                    read_w(ins, u'PARAM', u'source_start_byte'),
                    read_w(ins, u'PARAM', u'length'))
        if has_trailing_zero:
            ins.assert_value('<I', 0, u'PARAM', u'padding')
        return param

    def dump_parameter(self, out: EmevdWriter, width_codec: WidthCodec,
                       has_trailing_zero: bool):
        write_w = width_codec.write_natural
        write_w(out, self.instruction_number, u'PARAM', u'instruction_number')
        write_w(out, self.destination_start_byte, u'PARAM',
                u'destination_start_byte')
        write_w(out, self.source_start_byte, u'PARAM', u'source_start_byte')
        write_w(out, self.length, u'PARAM', u'length')
        if has_trailing_zero:
            out.pack('<I', 0, u'PARAM', u'padding')

#------------------------------------------------------------------------------
@dataclass(slots=True)
class LinkedFile:
    """Another event script this one links against. Only the resolved name
    is kept, the offset into the string data is recomputed on write."""
    file_name: str

    @classmethod
    def load_linked_file(cls, ins: EmevdReader, width_codec: WidthCodec,
                         str_offset: int, str_length: int):
        """Read a linked file record and resolve its name from the string
        data, which starts at str_offset and is str_length bytes long."""
        name_offset = width_codec.read_natural(ins, u'LINKED_FILE', u'offset')
        if name_offset >= str_length:
            raise DanglingReferenceError(ins.in_name,
                (u'LINKED_FILE', u'offset'), name_offset, str_length)
        with ins.stepping_into(str_offset + name_offset, u'STRINGS'):
            raw_name = ins.read(str_length - name_offset, u'STRINGS')
        return cls(decoder(_cut_at_terminator(raw_name, ins.in_name,
            str_offset + name_offset), linked_file_encoding))

    def dump_linked_file(self, out: EmevdWriter, width_codec: WidthCodec,
                         pools):
        """Write this record, appending the name to the string data pool. The
        name may not contain NUL characters, those would end it early."""
        if u'\x00' in self.file_name:
            raise ArgumentError(f'Linked file name '
                                f'{self.file_name!r} contains a NUL '
                                f'character')
        width_codec.write_natural(out, pools.add_string(
            encode(self.file_name, firstEncoding=linked_file_encoding) +
            _str_terminator), u'LINKED_FILE', u'offset')

def _cut_at_terminator(raw_str: bytes, in_name, str_pos: int) -> bytes:
    """Return raw_str up to (excluding) the first NUL code unit. Only whole
    code units count, so the search advances in steps of two bytes."""
    for unit_pos in range(0, len(raw_str) - 1, 2):
        if raw_str[unit_pos:unit_pos + 2] == _str_terminator:
            return raw_str[:unit_pos]
    raise TruncatedError(in_name, (u'STRINGS', u'terminator'),
                         str_pos + len(raw_str), str_pos + len(raw_str))
