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
"""The instruction schema: which typed arguments each instruction takes. The
file format itself does not describe argument layouts, so decoding an
instruction's argument blob needs an external schema keyed by class id and
instruction id. Loading such a schema from its source document is up to the
caller - anything with an arguments_for method will do."""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import IntEnum
from typing import NamedTuple

from .bolt import structs_cache

class ArgType(IntEnum):
    """Argument type tags, as used by the schema documents."""
    UINT8 = 0
    UINT16 = 1
    UINT32 = 2
    INT8 = 3
    INT16 = 4
    INT32 = 5
    FLOAT32 = 6
    UINT32_ALT = 8

    @property
    def fmt_str(self) -> str:
        return _arg_formats[self]

    @property
    def size(self) -> int:
        """Size in bytes. Doubles as the alignment of the field."""
        return _arg_sizes[self]

_arg_formats = {
    ArgType.UINT8: '<B',
    ArgType.UINT16: '<H',
    ArgType.UINT32: '<I',
    ArgType.INT8: '<b',
    ArgType.INT16: '<h',
    ArgType.INT32: '<i',
    ArgType.FLOAT32: '<f',
    ArgType.UINT32_ALT: '<I',
}
_arg_sizes = {a: structs_cache[f].size for a, f in _arg_formats.items()}

@dataclass(slots=True, frozen=True)
class ArgDescriptor:
    """Describes one argument of an instruction. Only arg_type matters for
    (de)serialization - it is kept as the raw tag so that schemas with tags
    we don't support can still be loaded and fail only when used. The other
    fields are passed through untouched."""
    arg_type: int
    arg_name: str = ''
    enum_name: str | None = None
    default_value: int | float | None = None
    min_value: int | float | None = None
    max_value: int | float | None = None
    format_string: str | None = None

class ArgValue(NamedTuple):
    """One decoded argument, tagged with its type. FLOAT32 values are stored
    as 32-bit floats, so a value like 0.1 only survives a write and read
    unchanged if it was built via of()."""
    arg_type: ArgType
    value: int | float

    @classmethod
    def of(cls, arg_type, value):
        """Build an argument, rounding FLOAT32 values to the nearest 32-bit
        float."""
        arg_type = ArgType(arg_type)
        if arg_type is ArgType.FLOAT32:
            f32_struct = structs_cache[arg_type.fmt_str]
            value = f32_struct.unpack(f32_struct.pack(value))[0]
        return cls(arg_type, value)

    def __repr__(self):
        return f'{self.arg_type.name.lower()}({self.value!r})'

class ASchemaLookup(object):
    """Abstract base class for instruction schemas."""
    __slots__ = ()

    def arguments_for(self, class_id: int,
            instruction_id: int) -> Sequence[ArgDescriptor] | None:
        """Return the ordered argument descriptors for the specified
        instruction, or None if the instruction is unknown."""
        raise NotImplementedError

class InstructionSchema(ASchemaLookup):
    """Simple dict-backed schema. One of these exists per variant, since each
    game has its own instruction set."""
    __slots__ = ('_instructions',)

    def __init__(self, instructions: dict[tuple[int, int],
            Sequence[ArgDescriptor]] | None = None):
        self._instructions = {k: tuple(v) for k, v in
                              (instructions or {}).items()}

    def add_instruction(self, class_id: int, instruction_id: int,
                        arg_descriptors: Sequence[ArgDescriptor]):
        """Register (or replace) the argument layout of an instruction."""
        self._instructions[(class_id, instruction_id)] = tuple(
            arg_descriptors)

    def arguments_for(self, class_id, instruction_id):
        return self._instructions.get((class_id, instruction_id))

    def __contains__(self, ins_key):
        return ins_key in self._instructions

    def __len__(self):
        return len(self._instructions)

    def __repr__(self):
        return f'<InstructionSchema: {len(self)} instructions>'
