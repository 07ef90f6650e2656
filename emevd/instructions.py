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
"""Instructions and their codec. An instruction record only holds ids and
offsets - its arguments live in the shared argument data and its layer in
the layer table, so both are resolved while reading the record."""
from __future__ import annotations

from dataclasses import dataclass, field

from .arguments import ArgumentBlobCodec
from .binary import EmevdReader, EmevdWriter, WidthCodec
from .exception import DanglingReferenceError, UnknownInstructionError
from .schema import ArgValue
from .tables import Layer

@dataclass(slots=True)
class Instruction:
    """A single instruction of an event. class_id and instruction_id select
    the argument layout from the schema."""
    class_id: int
    instruction_id: int
    arguments: list[ArgValue] = field(default_factory=list)
    layer: Layer | None = None

    @property
    def ins_key(self) -> str:
        """The conventional bank[index] notation, e.g. 2000[00]."""
        return f'{self.class_id}[{self.instruction_id:02d}]'

class InstructionCodec(object):
    """Reads and writes instruction records for one variant, using schema to
    interpret the argument blobs."""
    __slots__ = ('variant', 'width_codec', 'schema', 'blob_codec', 'in_name')
    # Layer offset meaning 'no layer'
    _no_layer = -1

    def __init__(self, variant, width_codec: WidthCodec, schema,
                 in_name=None):
        self.variant = variant
        self.width_codec = width_codec
        self.schema = schema
        self.blob_codec = ArgumentBlobCodec(in_name)
        self.in_name = in_name

    def _arg_descriptors(self, class_id, instruction_id):
        arg_descs = self.schema.arguments_for(class_id, instruction_id)
        if arg_descs is None:
            raise UnknownInstructionError(self.in_name, class_id,
                                          instruction_id)
        return arg_descs

    # Reading -----------------------------------------------------------------
    def load_instruction(self, ins: EmevdReader, emevd_header) -> Instruction:
        """Read one instruction record at the current position. emevd_header
        supplies the position and size of the argument data and the layer
        table."""
        class_id = ins.unpack_one('<I', u'INSTRUCTION', u'class_id')
        instruction_id = ins.unpack_one('<I', u'INSTRUCTION',
                                        u'instruction_id')
        arg_length = self.width_codec.read_natural(ins, u'INSTRUCTION',
                                                   u'arg_length')
        arg_offset = ins.unpack_one('<I', u'INSTRUCTION', u'arg_offset')
        if self.variant.is_wide:
            ins.assert_value('<I', 0, u'INSTRUCTION', u'padding')
        if self.variant.has_wide_layer_ref:
            layer_offset = ins.unpack_one('<q', u'INSTRUCTION',
                                          u'layer_offset')
        else:
            layer_offset = ins.unpack_one('<i', u'INSTRUCTION',
                                          u'layer_offset')
            ins.assert_value('<I', 0, u'INSTRUCTION', u'padding')
        arg_descs = self._arg_descriptors(class_id, instruction_id)
        ins_key = f'{class_id}[{instruction_id:02d}]'
        if arg_offset + arg_length > emevd_header.arg_length:
            raise DanglingReferenceError(self.in_name, (ins_key, u'arguments'),
                arg_offset + arg_length, emevd_header.arg_length)
        with ins.stepping_into(emevd_header.arg_offset + arg_offset, ins_key,
                               u'arguments'):
            arg_blob = ins.read(arg_length, ins_key, u'arguments')
        ins_args = self.blob_codec.decode_args(arg_blob, arg_descs, ins_key,
                                               u'arguments')
        if layer_offset == self._no_layer:
            ins_layer = None
        else:
            ins_layer = self._load_layer(ins, layer_offset, emevd_header,
                                         ins_key)
        return Instruction(class_id, instruction_id, ins_args, ins_layer)

    def _load_layer(self, ins: EmevdReader, layer_offset: int, emevd_header,
                    ins_key: str) -> Layer:
        layer_size = self.variant.layer_size
        layer_index, misalignment = divmod(layer_offset, layer_size)
        if (layer_offset < 0 or misalignment or
                layer_index >= emevd_header.layer_count):
            raise DanglingReferenceError(self.in_name, (ins_key, u'layer'),
                layer_offset, emevd_header.layer_count * layer_size)
        with ins.stepping_into(emevd_header.layer_offset + layer_offset,
                               ins_key, u'layer'):
            return Layer.load_layer(ins, self.width_codec)

    # Writing -----------------------------------------------------------------
    def dump_instruction(self, out: EmevdWriter, instruction: Instruction,
                         pools):
        """Write one instruction record, appending its argument blob and (if
        needed) its layer to pools."""
        ins_key = instruction.ins_key
        arg_descs = self._arg_descriptors(instruction.class_id,
                                          instruction.instruction_id)
        # The stored length is always the one derived from the schema, never
        # whatever the blob was originally read with
        arg_blob = self.blob_codec.encode_args(instruction.arguments,
                                               arg_descs, ins_key)
        blob_offset = pools.add_arg_blob(arg_blob)
        out.pack('<I', instruction.class_id, ins_key, u'class_id')
        out.pack('<I', instruction.instruction_id, ins_key,
                 u'instruction_id')
        self.width_codec.write_natural(out, len(arg_blob), ins_key,
                                       u'arg_length')
        out.pack('<I', blob_offset, ins_key, u'arg_offset')
        if self.variant.is_wide:
            out.pack('<I', 0, ins_key, u'padding')
        if instruction.layer is None:
            layer_offset = self._no_layer
        else:
            layer_offset = pools.add_layer(
                instruction.layer) * self.variant.layer_size
        if self.variant.has_wide_layer_ref:
            out.pack('<q', layer_offset, ins_key, u'layer_offset')
        else:
            out.pack('<i', layer_offset, ins_key, u'layer_offset')
            out.pack('<I', 0, ins_key, u'padding')
