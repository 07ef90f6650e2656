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
"""Events. An event record only stores counts and offsets into the
instruction and parameter tables; on read we slice the already loaded
tables, on write we append to the write pools and store where we put
things."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

from .binary import EmevdReader, EmevdWriter, WidthCodec
from .exception import ArgumentError, DanglingReferenceError, \
    UnexpectedValueError
from .instructions import Instruction
from .tables import Parameter

class BonfireHandler(IntEnum):
    """What happens to the event when the player rests."""
    NORMAL = 0
    RESTART = 1
    END = 2

@dataclass(slots=True)
class Event:
    """An event: a list of instructions run by the game, plus the parameter
    substitutions applied when another event initializes it with
    arguments."""
    event_id: int
    bonfire_handler: BonfireHandler = BonfireHandler.NORMAL
    instructions: list[Instruction] = field(default_factory=list)
    parameters: list[Parameter] = field(default_factory=list)

class EventAssembler(object):
    """Reads and writes event records for one variant."""
    __slots__ = ('variant', 'width_codec', 'in_name')
    # Parameter offset written when an event has no parameters
    _no_params = -1

    def __init__(self, variant, width_codec: WidthCodec, in_name=None):
        self.variant = variant
        self.width_codec = width_codec
        self.in_name = in_name

    def _resolve_range(self, table: list, rec_offset: int, rec_count: int,
                       rec_size: int, *debug_strs) -> list:
        """Return the rec_count records starting at byte offset rec_offset of
        table, whose records are rec_size bytes long."""
        start_index, misalignment = divmod(rec_offset, rec_size)
        if (rec_offset < 0 or misalignment or
                start_index + rec_count > len(table)):
            raise DanglingReferenceError(self.in_name, debug_strs,
                rec_offset, len(table) * rec_size)
        return table[start_index:start_index + rec_count]

    # Reading -----------------------------------------------------------------
    def load_event(self, ins: EmevdReader, instructions: list[Instruction],
                   parameters: list[Parameter]) -> Event:
        """Read one event record at the current position, taking its
        instructions and parameters from the fully loaded tables."""
        read_w = self.width_codec.read_natural
        event_id = read_w(ins, u'EVENT', u'id')
        dbg = f'EVENT {event_id}'
        ins_count = read_w(ins, dbg, u'instruction_count')
        ins_offset = read_w(ins, dbg, u'instruction_offset')
        param_count = read_w(ins, dbg, u'parameter_count')
        if self.variant.has_split_param_offset:
            param_offset = ins.unpack_one('<i', dbg, u'parameter_offset')
            ins.assert_value('<I', 0, dbg, u'padding')
        else:
            param_offset = self.width_codec.read_natural_signed(
                ins, dbg, u'parameter_offset')
        raw_handler = ins.unpack_one('<I', dbg, u'bonfire_handler')
        try:
            bonfire_handler = BonfireHandler(raw_handler)
        except ValueError:
            raise UnexpectedValueError(self.in_name,
                (dbg, u'bonfire_handler'),
                tuple(int(b) for b in BonfireHandler), raw_handler) from None
        ins.assert_value('<I', 0, dbg, u'padding')
        event_instructions = self._resolve_range(instructions, ins_offset,
            ins_count, self.variant.instruction_size, dbg, u'instructions')
        if param_count:
            event_params = self._resolve_range(parameters, param_offset,
                param_count, self.variant.parameter_size, dbg,
                u'parameters')
        else:
            event_params = []
        return Event(event_id, bonfire_handler, event_instructions,
                     event_params)

    # Writing -----------------------------------------------------------------
    def dump_event(self, out: EmevdWriter, event: Event, pools):
        """Write one event record, appending its instructions and parameters
        to pools. Offsets come from the current pool sizes, not from wherever
        the records were read."""
        write_w = self.width_codec.write_natural
        dbg = f'EVENT {event.event_id}'
        write_w(out, event.event_id, dbg, u'id')
        write_w(out, len(event.instructions), dbg, u'instruction_count')
        write_w(out, pools.add_instructions(event.instructions) *
                self.variant.instruction_size, dbg, u'instruction_offset')
        write_w(out, len(event.parameters), dbg, u'parameter_count')
        if event.parameters:
            param_offset = pools.add_parameters(
                event.parameters) * self.variant.parameter_size
        else:
            param_offset = self._no_params
        if self.variant.has_split_param_offset:
            out.pack('<i', param_offset, dbg, u'parameter_offset')
            out.pack('<I', 0, dbg, u'padding')
        else:
            self.width_codec.write_natural_signed(out, param_offset, dbg,
                                                  u'parameter_offset')
        try:
            bonfire_handler = BonfireHandler(event.bonfire_handler)
        except ValueError:
            raise ArgumentError(f'{dbg}: Invalid bonfire handler '
                                f'{event.bonfire_handler!r}') from None
        out.pack('<I', bonfire_handler, dbg, u'bonfire_handler')
        out.pack('<I', 0, dbg, u'padding')
