# Copyright 2026 Justin Cook
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

"""
Exceptions raised by the CV export engine.
"""

from typing import Optional


class CVExportError(Exception):
    """Base class. `reason` is the human-readable text shown to the user."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class TemplateConfigError(CVExportError):
    """A template is unknown or is missing a style role."""


class CategoryFetchError(CVExportError):
    """
    One record category could not be fetched.
    Absorbed by the Aggregator; never reaches an export job.
    """

    def __init__(self, category_id: str, reason: str, status_code: Optional[int] = None):
        self.category_id = category_id
        self.detail = reason
        self.status_code = status_code
        super().__init__(f"{category_id}: {reason}")


class PreconditionError(CVExportError):
    """Export inputs are not ready (no sections, no subject, fetch in flight)."""


class DispatchError(CVExportError):
    """The document build failed or the service answered with a non-2xx status."""

    def __init__(self, reason: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(reason)


class EnvironmentCapabilityError(CVExportError):
    """
    The host lacks something the export needs (print surface, writable
    output directory). The reason names the likely cause and the fix.
    """
