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
"""Event script documents. The file is a header followed by seven tables that
only refer to each other via offsets:

  events -> instructions, parameters
  instructions -> argument data, layers
  linked files -> string data

Reading resolves all offsets into plain Python objects. Writing recomputes
every offset from scratch: the header is written as placeholders first,
then the tables are streamed out (events filling the write pools as they
go), and finally the placeholders are back-patched."""
from __future__ import annotations

import io
import os
import warnings
from dataclasses import dataclass, field

from .binary import EmevdReader, EmevdWriter, WidthCodec
from .bolt import deprint
from .events import Event, EventAssembler
from .exception import BadMagicError, LayerOffsetWarning, UnknownVariantError
from .instructions import InstructionCodec
from .pools import WritePools
from .tables import Layer, LinkedFile, Parameter
from .variants import Variant

#------------------------------------------------------------------------------
# Header
class EmevdHeader(object):
    """The fixed-size header. All table offsets in here are absolute file
    positions."""
    emevd_magic = b'EVD\x00'
    __slots__ = ('variant', 'file_size', 'event_count', 'event_offset',
                 'instruction_count', 'instruction_offset', 'layer_offset',
                 'layer_count', 'parameter_count', 'parameter_offset',
                 'linked_file_count', 'linked_file_offset', 'arg_length',
                 'arg_offset', 'string_length', 'string_offset')
    # The natural words following the variant tags, in file order. None is a
    # reserved zero. The layer table offset really is stored twice
    _header_words = ('file_size', 'event_count', 'event_offset',
                     'instruction_count', 'instruction_offset', None,
                     'layer_offset', 'layer_count', 'layer_offset',
                     'parameter_count', 'parameter_offset',
                     'linked_file_count', 'linked_file_offset', 'arg_length',
                     'arg_offset', 'string_length', 'string_offset')

    def __init__(self, variant: Variant):
        self.variant = variant
        for hdr_attr in self.__slots__[1:]:
            setattr(self, hdr_attr, 0)

    @classmethod
    def load_header(cls, ins: EmevdReader):
        """Read and validate the header at the start of ins."""
        magic_len = len(cls.emevd_magic)
        actual_magic = ins.read(min(magic_len, ins.size), u'HEADER', u'magic')
        if actual_magic != cls.emevd_magic:
            raise BadMagicError(ins.in_name, actual_magic, cls.emevd_magic)
        variant_tags = (ins.unpack_one('<I', u'HEADER', u'tag1'),
                        ins.unpack_one('<I', u'HEADER', u'tag2'))
        variant = Variant.from_tags(*variant_tags)
        if variant is None:
            raise UnknownVariantError(ins.in_name, variant_tags)
        emevd_header = cls(variant)
        width_codec = WidthCodec(variant)
        seen_words = set()
        for hdr_attr in cls._header_words:
            if hdr_attr is None:
                width_codec.read_zero(ins, u'HEADER', u'reserved')
                continue
            hdr_val = width_codec.read_natural(ins, u'HEADER', hdr_attr)
            if hdr_attr in seen_words:
                emevd_header._check_duplicate(ins, hdr_attr, hdr_val)
                continue
            seen_words.add(hdr_attr)
            setattr(emevd_header, hdr_attr, hdr_val)
        if variant.has_trailing_header_zero:
            width_codec.read_zero(ins, u'HEADER', u'reserved')
        return emevd_header

    def _check_duplicate(self, ins: EmevdReader, hdr_attr: str, hdr_val: int):
        """A repeated header word should match the first copy. If it doesn't,
        complain but keep using the first copy."""
        first_val = getattr(self, hdr_attr)
        if hdr_val != first_val:
            msg = (f'{hdr_attr} inconsistent: first copy is {first_val}, '
                   f'second copy is {hdr_val}. Using {first_val}.')
            deprint(f'{ins.in_name or "Unknown File"}: {msg}')
            warnings.warn(msg, category=LayerOffsetWarning, stacklevel=4)

    @classmethod
    def reserve_header(cls, out: EmevdWriter, variant: Variant,
                       width_codec: WidthCodec):
        """Write the magic and variant tags, and placeholders for every
        header word. Each placeholder is reserved under its attribute
        name."""
        out.write(cls.emevd_magic)
        for variant_tag in variant.value:
            out.pack('<I', variant_tag, u'HEADER', u'tag')
        for hdr_attr in cls._header_words:
            if hdr_attr is None:
                width_codec.write_natural(out, 0, u'HEADER', u'reserved')
            else:
                width_codec.reserve_natural(out, hdr_attr)
        if variant.has_trailing_header_zero:
            width_codec.write_natural(out, 0, u'HEADER', u'reserved')

    def __repr__(self):
        return (f'<EmevdHeader: {self.variant.name}, {self.event_count} '
                f'events, {self.instruction_count} instructions>')

#------------------------------------------------------------------------------
# Document
@dataclass(slots=True)
class Document:
    """A whole event script."""
    variant: Variant
    events: list[Event] = field(default_factory=list)
    linked_files: list[LinkedFile] = field(default_factory=list)

    def get_event(self, event_id: int) -> Event | None:
        """Return the first event with the specified id, or None."""
        for evt in self.events:
            if evt.event_id == event_id:
                return evt
        return None

    def dump_to_log(self, log):
        """Dumps a human-readable listing of this document into the specified
        log.

        :param log: A bolt.Log instance to write to."""
        log.setHeader(f'Event Script ({self.variant.name.title()})')
        log('=' * 40)
        log(f'Events: {len(self.events)}')
        log(f'Linked files: {len(self.linked_files)}')
        for linked_file in self.linked_files:
            log(f'  - {linked_file.file_name}')
        for evt in self.events:
            log.setHeader(f'Event {evt.event_id} '
                          f'({evt.bonfire_handler.name.title()})')
            log(f'  {len(evt.instructions)} instructions, '
                f'{len(evt.parameters)} parameters')
            for ins_index, instruction in enumerate(evt.instructions):
                args_str = ', '.join(f'{a.value!r}'
                                     for a in instruction.arguments)
                layer_str = (f' [layer {instruction.layer.layer_number}]'
                             if instruction.layer is not None else '')
                log(f'  {ins_index:4d}: {instruction.ins_key}({args_str})'
                    f'{layer_str}')
            for param in evt.parameters:
                log(f'  X{param.source_start_byte}_{param.length} -> '
                    f'instruction {param.instruction_number}, byte '
                    f'{param.destination_start_byte}')

#------------------------------------------------------------------------------
# Codec
class DocumentCodec(object):
    """Reads and writes whole documents, using schema to interpret
    instruction arguments."""
    __slots__ = ('schema', 'in_name')

    def __init__(self, schema, in_name=None):
        self.schema = schema
        self.in_name = in_name

    # Reading -----------------------------------------------------------------
    def load_document(self, ins: EmevdReader) -> Document:
        """Decode the document in ins. Raises the first EmevdFormatError
        encountered, in read order."""
        emevd_header = EmevdHeader.load_header(ins)
        variant = emevd_header.variant
        if emevd_header.file_size != ins.size:
            deprint(f'{self.in_name or "Unknown File"}: header claims '
                    f'{emevd_header.file_size} bytes, but file has '
                    f'{ins.size} bytes')
        width_codec = WidthCodec(variant)
        ins_codec = InstructionCodec(variant, width_codec, self.schema,
                                     self.in_name)
        # Instructions resolve their arguments and layers by stepping into
        # those sections, so they can go first
        ins.seek(emevd_header.instruction_offset, os.SEEK_SET,
                 u'INSTRUCTIONS')
        instructions = [ins_codec.load_instruction(ins, emevd_header)
                        for _x in range(emevd_header.instruction_count)]
        ins.seek(emevd_header.layer_offset, os.SEEK_SET, u'LAYERS')
        for _x in range(emevd_header.layer_count):
            Layer.load_layer(ins, width_codec)
        self._check_span(ins, emevd_header.arg_offset,
                         emevd_header.arg_length, u'ARGS')
        ins.seek(emevd_header.parameter_offset, os.SEEK_SET, u'PARAMS')
        parameters = [Parameter.load_parameter(ins, width_codec,
                          variant.has_param_trailing_zero)
                      for _x in range(emevd_header.parameter_count)]
        ins.seek(emevd_header.linked_file_offset, os.SEEK_SET,
                 u'LINKED_FILES')
        linked_files = [LinkedFile.load_linked_file(ins, width_codec,
                            emevd_header.string_offset,
                            emevd_header.string_length)
                        for _x in range(emevd_header.linked_file_count)]
        self._check_span(ins, emevd_header.string_offset,
                         emevd_header.string_length, u'STRINGS')
        assembler = EventAssembler(variant, width_codec, self.in_name)
        ins.seek(emevd_header.event_offset, os.SEEK_SET, u'EVENTS')
        events = [assembler.load_event(ins, instructions, parameters)
                  for _x in range(emevd_header.event_count)]
        return Document(variant, events, linked_files)

    @staticmethod
    def _check_span(ins: EmevdReader, span_offset: int, span_length: int,
                    *debug_strs):
        """Check that a raw data section lies entirely inside the file."""
        ins.seek(span_offset, os.SEEK_SET, *debug_strs)
        ins.seek(span_length, os.SEEK_CUR, *debug_strs)

    # Writing -----------------------------------------------------------------
    def dump_document(self, document: Document) -> bytes:
        """Encode document, returning the bytes of the complete file."""
        variant = document.variant
        width_codec = WidthCodec(variant)
        pools = WritePools()
        out = EmevdWriter(self.in_name)
        EmevdHeader.reserve_header(out, variant, width_codec)
        def _start_section(offset_attr, size_attr, section_size):
            width_codec.fill_natural(out, offset_attr, out.tell())
            width_codec.fill_natural(out, size_attr, section_size)
        #--Events
        _start_section(u'event_offset', u'event_count', len(document.events))
        assembler = EventAssembler(variant, width_codec, self.in_name)
        for evt in document.events:
            assembler.dump_event(out, evt, pools)
        #--Instructions, filling the layer and argument pools
        _start_section(u'instruction_offset', u'instruction_count',
                       len(pools.instructions))
        ins_codec = InstructionCodec(variant, width_codec, self.schema,
                                     self.in_name)
        for instruction in pools.instructions:
            ins_codec.dump_instruction(out, instruction, pools)
        #--Layers
        _start_section(u'layer_offset', u'layer_count', len(pools.layers))
        for layer in pools.layers:
            layer.dump_layer(out, width_codec)
        #--Argument data
        _start_section(u'arg_offset', u'arg_length', len(pools.arg_data))
        out.write(pools.arg_data)
        #--Parameters
        _start_section(u'parameter_offset', u'parameter_count',
                       len(pools.parameters))
        for param in pools.parameters:
            param.dump_parameter(out, width_codec,
                                 variant.has_param_trailing_zero)
        #--Linked files, filling the string pool
        _start_section(u'linked_file_offset', u'linked_file_count',
                       len(document.linked_files))
        for linked_file in document.linked_files:
            linked_file.dump_linked_file(out, width_codec, pools)
        #--String data
        _start_section(u'string_offset', u'string_length',
                       len(pools.string_data))
        out.write(pools.string_data)
        width_codec.fill_natural(out, u'file_size', out.tell())
        return out.getvalue()

#------------------------------------------------------------------------------
# Convenience API
def is_emevd(emevd_data: bytes) -> bool:
    """Return True if emevd_data starts with the event script magic. Does not
    check anything else."""
    return bytes(emevd_data[:len(EmevdHeader.emevd_magic)]) == \
        EmevdHeader.emevd_magic

def load_document(emevd_data, schema, in_name=None) -> Document:
    """Decode an event script from bytes or from a seekable binary stream.

    :param emevd_data: The raw file contents, or a seekable stream.
    :param schema: The instruction schema for the file's variant.
    :param in_name: Name of the file, used in error messages."""
    if isinstance(emevd_data, (bytes, bytearray, memoryview)):
        ins = EmevdReader.from_bytes(in_name, bytes(emevd_data))
    else:
        ins = EmevdReader(in_name, emevd_data)
    return DocumentCodec(schema, in_name).load_document(ins)

def dump_document(document: Document, schema, out_name=None) -> bytes:
    """Encode document into the bytes of an event script file."""
    return DocumentCodec(schema, out_name).dump_document(document)

def write_document(document: Document, schema, out: io.RawIOBase,
                   out_name=None):
    """Encode document and write it to the binary stream out."""
    out.write(dump_document(document, schema, out_name))
