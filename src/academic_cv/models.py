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
Data models for the academic CV export engine.
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Dict, List, Optional, Tuple

# Attribute name -> display-safe string, in display-schema order
DisplayRecord = Dict[str, str]


class OutputFormat(str, Enum):
    PREVIEW = "preview"
    WORD = "word"
    PDF = "pdf"


class JobState(str, Enum):
    IDLE = "idle"
    COLLECTING_INPUTS = "collecting_inputs"
    DISPATCHING = "dispatching"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SUPERSEDED = "superseded"


@dataclass(frozen=True)
class Subject:
    """The academic whose CV is being built. Immutable for the session."""
    name: str
    designation: str = ""
    department: str = ""
    faculty: str = ""
    institution: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    date_of_birth: str = ""
    nationality: str = ""
    orcid: str = ""
    google_scholar: str = ""
    research_gate: str = ""
    profile_image: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class AggregateCVModel:
    """
    Everything one CV export needs: the Subject plus the normalized records
    of every category, in source fetch order.
    """
    subject: Optional[Subject]
    records: Dict[str, Tuple[DisplayRecord, ...]] = field(default_factory=dict)
    failed_categories: List[str] = field(default_factory=list)

    def records_for(self, category_id: str) -> Tuple[DisplayRecord, ...]:
        return self.records.get(category_id, ())

    def populated_categories(self) -> List[str]:
        return [cid for cid, recs in self.records.items() if recs]

    def to_payload(self) -> dict:
        """JSON-ready snapshot used as the `aggregateModel` of a doc-build request."""
        return {
            "personal": self.subject.to_dict() if self.subject else None,
            **{cid: [dict(r) for r in recs] for cid, recs in self.records.items()},
        }


class SectionSelection:
    """
    The set of category ids chosen for export.
    Iteration follows the fixed section order, never insertion order.
    """

    def __init__(self, sections=None, order: Optional[List[str]] = None):
        from academic_cv.categories import SECTION_ORDER
        self._order = list(order or SECTION_ORDER)
        self._selected = set()
        for section_id in sections or []:
            self.add(section_id)

    def add(self, section_id: str):
        if section_id not in self._order:
            raise KeyError(f"Unknown section: {section_id}")
        self._selected.add(section_id)

    def discard(self, section_id: str):
        self._selected.discard(section_id)

    def select_all(self):
        self._selected = set(self._order)

    def ordered(self) -> List[str]:
        return [s for s in self._order if s in self._selected]

    def __contains__(self, section_id) -> bool:
        return section_id in self._selected

    def __iter__(self):
        return iter(self.ordered())

    def __len__(self) -> int:
        return len(self._selected)

    def __repr__(self) -> str:
        return f"SectionSelection({self.ordered()!r})"


@dataclass
class ExportJob:
    """One user-triggered attempt to produce a CV artifact."""
    sections: List[str]
    template: str
    output_format: OutputFormat
    model: Optional[AggregateCVModel]
    generation: int = 0
    state: JobState = JobState.IDLE
    error: Optional[str] = None
    artifact: Optional[str] = None
