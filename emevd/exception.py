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
"""This module contains all custom exceptions for EMEVD Bash."""

# NO LOCAL IMPORTS! This has to be importable from any module/package.

class BoltError(Exception):
    """Generic error with a string message."""
    def __init__(self, message):
        self.message = message
    def __str__(self):
        return self.message

# Code errors -----------------------------------------------------------------
class ArgumentError(BoltError):
    """Coding Error: Argument out of allowed range of values."""
    def __init__(self, message=u'Argument is out of allowed ranged of values.'):
        super(ArgumentError, self).__init__(message)

class StateError(BoltError):
    """Error: Object is corrupted."""
    def __init__(self, message=u'Object is in a bad state.'):
        super(StateError, self).__init__(message)

# File exceptions -------------------------------------------------------------
class FileError(BoltError):
    """An error that occurred while handling a file."""
    def __init__(self, in_name, message):
        ## type: (str | None, str) -> None
        super(FileError, self).__init__(message)
        self._in_name = (in_name and '%s' % in_name) or 'Unknown File'

    def __str__(self):
        return f'{self._in_name}: {self.message}'

def _join_debug(debug_strs):
    if isinstance(debug_strs, (tuple, list)):
        debug_strs = u'.'.join(map(str, debug_strs))
    return debug_strs or u'<unknown>'

# Event script errors ---------------------------------------------------------
class EmevdFormatError(FileError):
    """Event Script Error: File is structurally invalid. Raised for the first
    violation found, in read order - there is no partial recovery."""
    pass

class BadMagicError(EmevdFormatError):
    """The file does not start with the event script magic."""
    def __init__(self, in_name, actual_magic, expected_magic):
        ## type: (str | None, bytes, bytes) -> None
        super(BadMagicError, self).__init__(in_name,
            f'Bad magic: got {actual_magic!r}, but expected '
            f'{expected_magic!r}')

class UnknownVariantError(EmevdFormatError):
    """The two variant tag words do not match any supported variant."""
    def __init__(self, in_name, variant_tags):
        ## type: (str | None, tuple[int, int]) -> None
        tags_str = ', '.join(f'0x{t:08X}' for t in variant_tags)
        super(UnknownVariantError, self).__init__(in_name,
            f'Could not detect variant from header tags ({tags_str})')

class UnexpectedValueError(EmevdFormatError):
    """A field that must hold a fixed constant (or one of a fixed set of
    values) holds something else."""
    def __init__(self, in_name, debug_strs, expected, actual):
        ## type: (str | None, str | tuple, object, object) -> None
        self.expected = expected
        self.actual = actual
        super(UnexpectedValueError, self).__init__(in_name,
            f'{_join_debug(debug_strs)}: Expected {expected!r}, but got '
            f'{actual!r}')

class DanglingReferenceError(EmevdFormatError):
    """An offset or index resolves outside the bounds of its table."""
    def __init__(self, in_name, debug_strs, bad_ref, table_len):
        ## type: (str | None, str | tuple, int, int) -> None
        self.bad_ref = bad_ref
        super(DanglingReferenceError, self).__init__(in_name,
            f'{_join_debug(debug_strs)}: Reference {bad_ref} does not '
            f'resolve inside its table (length {table_len})')

class UnknownInstructionError(EmevdFormatError):
    """The schema has no argument layout for this instruction."""
    def __init__(self, in_name, class_id, instruction_id):
        ## type: (str | None, int, int) -> None
        self.class_id = class_id
        self.instruction_id = instruction_id
        super(UnknownInstructionError, self).__init__(in_name,
            f'Instruction {class_id}[{instruction_id:02d}] is not known to '
            f'the schema')

class UnsupportedArgTypeError(EmevdFormatError):
    """An argument descriptor carries a type tag we can't (de)serialize."""
    def __init__(self, in_name, type_tag):
        ## type: (str | None, int) -> None
        self.type_tag = type_tag
        super(UnsupportedArgTypeError, self).__init__(in_name,
            f'Unsupported argument type tag {type_tag!r}')

class TruncatedError(EmevdFormatError):
    """Attempt to read outside of the file/buffer."""
    def __init__(self, in_name, debug_strs, try_pos, max_pos):
        ## type: (str | None, str | tuple, int, int) -> None
        debug_str = _join_debug(debug_strs)
        if try_pos < 0:
            message = f'{debug_str}: Attempted to read before ({try_pos}) ' \
                      f'beginning of file/buffer.'
        else:
            message = f'{debug_str}: Attempted to read past ({try_pos}) end ' \
                      f'({max_pos}) of file/buffer.'
        super(TruncatedError, self).__init__(in_name, message)

class FieldOverflowError(EmevdFormatError):
    """A value does not fit into the field it has to be written to."""
    def __init__(self, in_name, debug_strs, value, fmt_str):
        ## type: (str | None, str | tuple, object, str) -> None
        super(FieldOverflowError, self).__init__(in_name,
            f'{_join_debug(debug_strs)}: Value {value!r} does not fit into '
            f'a field of format {fmt_str!r}')

# Warnings --------------------------------------------------------------------
class LayerOffsetWarning(UserWarning):
    """The two copies of the layer table offset in the header disagree. The
    first copy is used."""
