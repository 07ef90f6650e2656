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
"""EMEVD Bash: reads and writes the binary event scripts (.emevd) used by a
family of action RPGs. Three variants of the container are supported, see
variants.Variant. Typical use:

    doc = load_document(raw_bytes, schema, in_name='m10_00_00_00.emevd')
    doc.get_event(0).instructions.append(...)
    raw_bytes = dump_document(doc, schema)

Instruction arguments can only be interpreted with the help of a schema - see
schema.InstructionSchema."""
from .document import Document, DocumentCodec, EmevdHeader, dump_document, \
    is_emevd, load_document, write_document
from .events import BonfireHandler, Event
from .exception import BadMagicError, DanglingReferenceError, \
    EmevdFormatError, FieldOverflowError, LayerOffsetWarning, \
    TruncatedError, UnexpectedValueError, UnknownInstructionError, \
    UnknownVariantError, UnsupportedArgTypeError
from .instructions import Instruction
from .schema import ArgDescriptor, ArgType, ArgValue, ASchemaLookup, \
    InstructionSchema
from .tables import Layer, LinkedFile, Parameter
from .variants import Variant

__version__ = '1.0.0'
