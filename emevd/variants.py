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
"""Static info for the supported event script variants. Avoid adding state
and methods here - everything that differs between the games that share the
container format should be expressible as a property of Variant."""
from enum import Enum

class Variant(Enum):
    """The three supported variants, keyed by the pair of tag words that
    follows the magic in the header."""
    ALPHA = (0x00000000, 0x000000CC)
    BETA = (0x0000FF00, 0x000000CC)
    GAMMA = (0x0001FF00, 0x000000CD)

    @classmethod
    def from_tags(cls, tag1: int, tag2: int):
        """Return the variant for the specified tag words, or None if they
        don't match any known variant."""
        try:
            return cls((tag1, tag2))
        except ValueError:
            return None

    @property
    def is_wide(self) -> bool:
        """True if this variant targets 64-bit and uses 64-bit natural
        words."""
        return self is not Variant.ALPHA

    @property
    def natural_width(self) -> int:
        return 8 if self.is_wide else 4

    # Record sizes, in bytes
    @property
    def header_size(self) -> int:
        return 148 if self.is_wide else 84
    @property
    def event_size(self) -> int:
        return 48 if self.is_wide else 28
    @property
    def instruction_size(self) -> int:
        return 32 if self.is_wide else 24
    @property
    def layer_size(self) -> int:
        return 32 if self.is_wide else 20
    @property
    def parameter_size(self) -> int:
        return 32 if self.is_wide else 20
    @property
    def linked_file_size(self) -> int:
        return self.natural_width

    # Layout switches
    @property
    def has_trailing_header_zero(self) -> bool:
        """Alpha pads its header with one more reserved zero word."""
        return self is Variant.ALPHA
    @property
    def has_split_param_offset(self) -> bool:
        """Beta stores the event parameter offset as a 32-bit int followed by
        a 32-bit zero instead of a natural word."""
        return self is Variant.BETA
    @property
    def has_wide_layer_ref(self) -> bool:
        """Gamma stores the instruction layer offset as a 64-bit int, the
        others as a 32-bit int followed by a 32-bit zero."""
        return self is Variant.GAMMA
    @property
    def has_param_trailing_zero(self) -> bool:
        return self is Variant.ALPHA

    def __repr__(self):
        return f'<Variant {self.name}>'
