# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Configuration Records: model, per-type table, and file layout.

Modules:

model : module
    ConfigurationRecord and Assignment.
types : module
    RecordType table and registry (Graph path, folder, denylist).
files : module
    ``<id>_<name>.json`` naming, reading and writing.
"""

from .files import read_record, record_filename, write_record
from .model import Assignment, ConfigurationRecord
from .types import RecordType, get_record_type, get_record_types

__all__ = [
    "Assignment",
    "ConfigurationRecord",
    "RecordType",
    "get_record_type",
    "get_record_types",
    "read_record",
    "record_filename",
    "write_record",
]
