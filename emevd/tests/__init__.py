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
"""Shared helpers for the EMEVD Bash tests: a small instruction schema and a
document that exercises every table of the format."""
from ..document import Document
from ..events import BonfireHandler, Event
from ..instructions import Instruction
from ..schema import ArgDescriptor, ArgType, ArgValue, InstructionSchema
from ..tables import Layer, LinkedFile, Parameter

def arg(arg_type, value):
    return ArgValue.of(arg_type, value)

def make_schema():
    """Returns a schema covering the instructions used by
    make_document."""
    return InstructionSchema({
        # Mixed widths, 8 bytes when aligned
        (0, 0): [ArgDescriptor(ArgType.UINT8, 'condition_group'),
                 ArgDescriptor(ArgType.UINT16, 'flag_state'),
                 ArgDescriptor(ArgType.UINT32, 'flag_id')],
        (1000, 3): [],
        (2000, 0): [ArgDescriptor(ArgType.INT32, 'slot'),
                    ArgDescriptor(ArgType.UINT32, 'event_id'),
                    ArgDescriptor(ArgType.FLOAT32, 'delay')],
        (2003, 4): [ArgDescriptor(ArgType.INT8, 'change_type')],
    })

def make_document(variant):
    """Returns a document with three events: one with a layered
    instruction, one with parameters and one that is completely empty."""
    return Document(variant, [
        Event(0, BonfireHandler.RESTART, [
            Instruction(2000, 0, [arg(ArgType.INT32, 0),
                                  arg(ArgType.UINT32, 50),
                                  arg(ArgType.FLOAT32, 1.5)]),
            Instruction(2003, 4, [arg(ArgType.INT8, -3)], Layer(3)),
        ]),
        Event(50, BonfireHandler.NORMAL, [
            Instruction(0, 0, [arg(ArgType.UINT8, 5),
                               arg(ArgType.UINT16, 300),
                               arg(ArgType.UINT32, 70000)], Layer(3)),
            Instruction(1000, 3, []),
        ], [Parameter(0, 4, 0, 4)]),
        Event(51, BonfireHandler.END),
    ], [LinkedFile('common_func.emevd')])
