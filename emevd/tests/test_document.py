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
import io
import struct

import pytest

from . import arg, make_document, make_schema
from ..binary import EmevdReader
from ..bolt import LogFile
from ..document import Document, EmevdHeader, dump_document, is_emevd, \
    load_document, write_document
from ..events import BonfireHandler, Event
from ..exception import ArgumentError, BadMagicError, \
    DanglingReferenceError, EmevdFormatError, FieldOverflowError, \
    LayerOffsetWarning, TruncatedError, UnexpectedValueError, \
    UnknownInstructionError, UnknownVariantError
from ..instructions import Instruction
from ..schema import ArgType, InstructionSchema
from ..tables import LinkedFile, Parameter
from ..variants import Variant

# Expected section offsets for make_document, as (events, instructions,
# layers, argument data, parameters, linked files, strings, end of file)
_expected_offsets = {
    Variant.ALPHA: (84, 168, 264, 284, 308, 328, 332, 368),
    Variant.BETA: (148, 292, 420, 452, 476, 508, 516, 552),
    Variant.GAMMA: (148, 292, 420, 452, 476, 508, 516, 552),
}
# Where the first event record's bonfire handler lives in make_document's
# output
_bonfire_pos = {Variant.ALPHA: 84 + 20, Variant.BETA: 148 + 40,
                Variant.GAMMA: 148 + 40}

def _read_header(raw_data):
    return EmevdHeader.load_header(EmevdReader.from_bytes(None, raw_data))

def _header_word_pos(variant, word_index):
    return 12 + word_index * variant.natural_width

def _patch(raw_data, fmt_str, pos, value):
    patched = bytearray(raw_data)
    struct.pack_into(fmt_str, patched, pos, value)
    return bytes(patched)

@pytest.fixture(params=list(Variant), ids=lambda v: v.name)
def variant(request):
    return request.param

@pytest.fixture
def schema():
    return make_schema()

class TestRoundtrip(object):
    def test_roundtrip(self, variant, schema):
        document = make_document(variant)
        raw_data = dump_document(document, schema)
        assert load_document(raw_data, schema) == document

    def test_reencode_identical(self, variant, schema):
        raw_data = dump_document(make_document(variant), schema)
        assert dump_document(load_document(raw_data, schema),
                             schema) == raw_data

    def test_empty_document(self, variant, schema):
        raw_data = dump_document(Document(variant), schema)
        assert len(raw_data) == variant.header_size
        assert load_document(raw_data, schema) == Document(variant)

    def test_load_from_stream(self, variant, schema):
        raw_data = dump_document(make_document(variant), schema)
        stream = io.BytesIO(raw_data)
        assert load_document(stream, schema, u'test.emevd') == \
               make_document(variant)

    def test_roundtrip_many_records(self, variant, schema):
        """Events with zero, one and several instructions and parameters."""
        delay = Instruction(2000, 0, [arg(ArgType.INT32, -2),
                                      arg(ArgType.UINT32, 7),
                                      arg(ArgType.FLOAT32, 0.1)])
        document = Document(variant, [
            Event(0),
            Event(1, BonfireHandler.RESTART, [delay],
                  [Parameter(0, 0, 0, 4)]),
            Event(2, BonfireHandler.END,
                  [delay, Instruction(1000, 3), delay],
                  [Parameter(0, 0, 0, 4), Parameter(0, 4, 4, 4),
                   Parameter(2, 8, 8, 4)]),
            Event(3, parameters=[Parameter(0, 0, 0, 1)]),
        ])
        raw_data = dump_document(document, schema)
        assert load_document(raw_data, schema) == document
        emevd_header = _read_header(raw_data)
        assert emevd_header.instruction_count == 4
        assert emevd_header.parameter_count == 5

    def test_write_document(self, variant, schema):
        out = io.BytesIO()
        write_document(make_document(variant), schema, out)
        assert out.getvalue() == dump_document(make_document(variant),
                                               schema)

    def test_variant_tags(self, variant, schema):
        raw_data = dump_document(Document(variant), schema)
        assert raw_data[:4] == b'EVD\x00'
        assert struct.unpack_from('<2I', raw_data, 4) == variant.value

class TestOffsets(object):
    def test_section_offsets(self, variant, schema):
        raw_data = dump_document(make_document(variant), schema)
        emevd_header = _read_header(raw_data)
        assert (emevd_header.event_offset, emevd_header.instruction_offset,
                emevd_header.layer_offset, emevd_header.arg_offset,
                emevd_header.parameter_offset,
                emevd_header.linked_file_offset, emevd_header.string_offset,
                emevd_header.file_size) == _expected_offsets[variant]
        assert emevd_header.file_size == len(raw_data)

    def test_section_counts(self, variant, schema):
        emevd_header = _read_header(dump_document(make_document(variant),
                                                  schema))
        assert (emevd_header.event_count, emevd_header.instruction_count,
                emevd_header.layer_count, emevd_header.parameter_count,
                emevd_header.linked_file_count) == (3, 4, 1, 1, 1)
        # Blobs of 12, 1, 8 and 0 bytes, each starting on a 4 byte boundary
        assert emevd_header.arg_length == 24
        assert emevd_header.string_length == len(
            u'common_func.emevd') * 2 + 2

    def test_both_layer_offsets(self, variant, schema):
        raw_data = dump_document(make_document(variant), schema)
        natural_fmt = '<Q' if variant.is_wide else '<I'
        first_copy = struct.unpack_from(natural_fmt, raw_data,
                                        _header_word_pos(variant, 6))[0]
        second_copy = struct.unpack_from(natural_fmt, raw_data,
                                         _header_word_pos(variant, 8))[0]
        assert first_copy == second_copy == _expected_offsets[variant][2]

    def test_reserved_header_words(self, variant, schema):
        raw_data = dump_document(make_document(variant), schema)
        natural_fmt = '<Q' if variant.is_wide else '<I'
        assert struct.unpack_from(natural_fmt, raw_data,
                                  _header_word_pos(variant, 5))[0] == 0
        if variant is Variant.ALPHA:
            assert raw_data[80:84] == b'\x00\x00\x00\x00'

    def test_event_param_sentinel(self, schema):
        beta_data = dump_document(make_document(Variant.BETA), schema)
        # The first event has no parameters
        assert beta_data[148 + 32:148 + 40] == \
               b'\xff\xff\xff\xff\x00\x00\x00\x00'
        gamma_data = dump_document(make_document(Variant.GAMMA), schema)
        assert struct.unpack_from('<q', gamma_data, 148 + 32)[0] == -1
        alpha_data = dump_document(make_document(Variant.ALPHA), schema)
        assert struct.unpack_from('<i', alpha_data, 84 + 16)[0] == -1

    def test_layers_deduplicated(self, variant, schema):
        raw_data = dump_document(make_document(variant), schema)
        document = load_document(raw_data, schema)
        layered = [i for e in document.events for i in e.instructions
                   if i.layer is not None]
        assert len(layered) == 2
        assert layered[0].layer == layered[1].layer
        assert _read_header(raw_data).layer_count == 1

class TestHeaderErrors(object):
    def test_bad_magic(self, schema):
        raw_data = dump_document(make_document(Variant.ALPHA), schema)
        with pytest.raises(BadMagicError):
            load_document(b'EVX\x00' + raw_data[4:], schema)
        with pytest.raises(BadMagicError):
            load_document(b'EV', schema)
        with pytest.raises(BadMagicError):
            load_document(b'', schema)

    def test_unknown_variant(self, schema):
        raw_data = b'EVD\x00' + struct.pack('<2I', 0xFF00, 0xCD) + \
                   b'\x00' * 136
        with pytest.raises(UnknownVariantError):
            load_document(raw_data, schema)

    def test_truncated(self, variant, schema):
        raw_data = dump_document(make_document(variant), schema)
        with pytest.raises(TruncatedError):
            load_document(raw_data[:variant.header_size - 1], schema)
        with pytest.raises(TruncatedError):
            load_document(raw_data[:-1], schema)

    def test_reserved_word_checked(self, variant, schema):
        raw_data = dump_document(make_document(variant), schema)
        natural_fmt = '<Q' if variant.is_wide else '<I'
        with pytest.raises(UnexpectedValueError):
            load_document(_patch(raw_data, natural_fmt,
                                 _header_word_pos(variant, 5), 1), schema)

    def test_layer_offset_mismatch(self, variant, schema):
        raw_data = dump_document(make_document(variant), schema)
        natural_fmt = '<Q' if variant.is_wide else '<I'
        patched = _patch(raw_data, natural_fmt, _header_word_pos(variant, 8),
                         999)
        with pytest.warns(LayerOffsetWarning):
            document = load_document(patched, schema, u'test.emevd')
        assert document == make_document(variant)

    def test_file_size_mismatch(self, variant, schema, capsys):
        raw_data = dump_document(make_document(variant), schema)
        natural_fmt = '<Q' if variant.is_wide else '<I'
        patched = _patch(raw_data, natural_fmt, _header_word_pos(variant, 0),
                         len(raw_data) + 4)
        assert load_document(patched, schema) == make_document(variant)
        assert u'bytes, but file has' in capsys.readouterr().out

class TestRecordErrors(object):
    def test_bad_bonfire_handler(self, variant, schema):
        raw_data = dump_document(make_document(variant), schema)
        with pytest.raises(UnexpectedValueError) as exc_info:
            load_document(_patch(raw_data, '<I', _bonfire_pos[variant], 3),
                          schema)
        assert exc_info.value.actual == 3

    def test_bad_layer_constant(self, schema):
        raw_data = dump_document(make_document(Variant.ALPHA), schema)
        # Layer triplet (0, -1, 1) turned into (0, -1, 2)
        with pytest.raises(UnexpectedValueError):
            load_document(_patch(raw_data, '<I', 264 + 16, 2), schema)

    def test_dangling_instruction_range(self, schema):
        raw_data = dump_document(make_document(Variant.ALPHA), schema)
        # First event claims ten instructions
        with pytest.raises(DanglingReferenceError):
            load_document(_patch(raw_data, '<I', 84 + 4, 10), schema)

    def test_dangling_linked_file(self, schema):
        raw_data = dump_document(make_document(Variant.GAMMA), schema)
        with pytest.raises(DanglingReferenceError):
            load_document(_patch(raw_data, '<Q', 508, 36), schema)

    def test_unknown_instruction(self, variant):
        raw_data = dump_document(make_document(variant), make_schema())
        partial_schema = make_schema()
        partial_schema.add_instruction(2003, 4, [])
        # Still decodable, the 1 byte blob is treated as slack
        load_document(raw_data, partial_schema)
        with pytest.raises(UnknownInstructionError):
            load_document(raw_data, InstructionSchema())

    def test_all_errors_are_format_errors(self, schema):
        with pytest.raises(EmevdFormatError):
            load_document(b'MZ\x90\x00', schema)

class TestWriteErrors(object):
    def test_bad_bonfire_handler(self, variant, schema):
        with pytest.raises(ArgumentError):
            dump_document(Document(variant, [Event(1, 7)]), schema)

    def test_nul_in_linked_file(self, variant, schema):
        with pytest.raises(ArgumentError):
            dump_document(Document(variant, linked_files=[
                LinkedFile(u'a\x00b')]), schema)

    def test_unknown_instruction(self, variant):
        with pytest.raises(UnknownInstructionError):
            dump_document(make_document(variant), InstructionSchema())

    def test_overflow_fails_fast(self, schema):
        document = Document(Variant.ALPHA, [Event(2 ** 32)])
        with pytest.raises(FieldOverflowError):
            dump_document(document, schema)
        document = Document(Variant.ALPHA, [Event(0, instructions=[
            Instruction(0, 0, [arg(ArgType.UINT8, 256),
                               arg(ArgType.UINT16, 0),
                               arg(ArgType.UINT32, 0)])])])
        with pytest.raises(FieldOverflowError):
            dump_document(document, schema)

class TestDocument(object):
    def test_is_emevd(self, schema):
        assert is_emevd(dump_document(Document(Variant.GAMMA), schema))
        assert is_emevd(bytearray(b'EVD\x00\x01'))
        assert not is_emevd(b'EVF\x00')
        assert not is_emevd(b'')

    def test_get_event(self):
        document = make_document(Variant.ALPHA)
        assert document.get_event(50) is document.events[1]
        assert document.get_event(51).bonfire_handler is BonfireHandler.END
        assert document.get_event(1) is None

    def test_dump_to_log(self):
        out = io.StringIO()
        make_document(Variant.BETA).dump_to_log(LogFile(out))
        log_lines = out.getvalue().splitlines()
        assert log_lines[0] == u'Event Script (Beta)'
        assert u'  - common_func.emevd' in log_lines
        assert u'Event 0 (Restart)' in log_lines
        assert u'     0: 2000[00](0, 50, 1.5)' in log_lines
        assert u'     1: 2003[04](-3) [layer 3]' in log_lines
        assert u'  X0_4 -> instruction 0, byte 4' in log_lines
        # Events without instructions are still listed
        assert u'Event 51 (End)' in log_lines
