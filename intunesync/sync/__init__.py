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

"""Fetch / normalize / reapply workflows for one record type.

export_records : function
    Graph collection -> one JSON file per record (with assignments).
import_records : function
    Folder of JSON files -> new records in Graph, assignments re-applied.
"""

from .export import export_records
from .importer import import_records

__all__ = ["export_records", "import_records"]
