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
"""Write-time pools. Events own their instructions and parameters, but the
file stores them in flat tables - so while writing, each record appends its
children to the matching pool and records where they went."""
from __future__ import annotations

from .arguments import align_up

class WritePools(object):
    """The flat tables being built up during one write call. Create a new
    one for every write."""
    __slots__ = ('instructions', 'parameters', 'layers', 'arg_data',
                 'string_data', '_layer_indices')
    # Argument blobs start on this boundary inside the argument data
    blob_alignment = 4

    def __init__(self):
        self.instructions = []
        self.parameters = []
        self.layers = []
        self.arg_data = bytearray()
        self.string_data = bytearray()
        # layer number -> index in self.layers
        self._layer_indices: dict[int, int] = {}

    def add_instructions(self, event_instructions) -> int:
        """Append instructions, returning the index of the first one."""
        first_index = len(self.instructions)
        self.instructions.extend(event_instructions)
        return first_index

    def add_parameters(self, event_params) -> int:
        """Append parameters, returning the index of the first one."""
        first_index = len(self.parameters)
        self.parameters.extend(event_params)
        return first_index

    def add_layer(self, layer) -> int:
        """Return the index of the layer with the same number, appending it
        first if this is the first time we see that number."""
        try:
            return self._layer_indices[layer.layer_number]
        except KeyError:
            self.layers.append(layer)
            return self._layer_indices.setdefault(layer.layer_number,
                                                  len(self.layers) - 1)

    def add_arg_blob(self, arg_blob: bytes) -> int:
        """Append an argument blob, returning its offset."""
        blob_offset = align_up(len(self.arg_data), self.blob_alignment)
        self.arg_data += b'\x00' * (blob_offset - len(self.arg_data))
        self.arg_data += arg_blob
        return blob_offset

    def add_string(self, encoded_str: bytes) -> int:
        """Append an encoded, terminated string, returning its offset."""
        str_offset = len(self.string_data)
        self.string_data += encoded_str
        return str_offset

    def __repr__(self):
        return (f'<WritePools: {len(self.instructions)} instructions, '
                f'{len(self.parameters)} parameters, {len(self.layers)} '
                f'layers, {len(self.arg_data)} argument bytes, '
                f'{len(self.string_data)} string bytes>')
