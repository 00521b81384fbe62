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
The fixed table of record categories.

Each category declares where its records come from (endpoint + payload key)
and its display schema: an ordered tuple of FieldSpec, each listing the raw
keys that different backend versions use for the same concept, first match
wins.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple, Union

PERSONAL = "personal"

# Value kinds understood by the normalizer
TEXT = "text"
DATE = "date"
YEAR = "year"
CURRENCY = "currency"
BADGE = "badge"
FLAG = "flag"

# Layout variants understood by the section renderers
TABLE = "table"
NUMBERED = "numbered"
PROFILE = "profile"


@dataclass(frozen=True)
class FieldSpec:
    name: str
    label: str
    candidates: Tuple[str, ...]
    kind: str = TEXT
    # Replaces the fallback when every candidate is empty.
    # A callable receives the raw record and may return None to keep the fallback.
    missing: Union[None, str, Callable[[dict], Optional[str]]] = None


@dataclass(frozen=True)
class CitationSpec:
    """How a numbered entry reads: Authors. "Title". Venue, Year. Extra: value"""
    authors: str
    title: str
    venue: Tuple[str, ...]
    year: str
    extras: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CategorySpec:
    id: str
    title: str
    label: str
    description: str
    endpoint: str
    payload_key: str
    fields: Tuple[FieldSpec, ...] = ()
    layout: str = TABLE
    citation: Optional[CitationSpec] = None

    def field(self, name: str) -> FieldSpec:
        for spec in self.fields:
            if spec.name == name:
                return spec
        raise KeyError(f"{self.id} has no field {name!r}")


def F(name, label, *candidates, kind=TEXT, missing=None) -> FieldSpec:
    return FieldSpec(name=name, label=label, candidates=tuple(candidates), kind=kind, missing=missing)


def _present_if_current(raw: dict) -> Optional[str]:
    return "Present" if raw.get("currente") or raw.get("is_current") else None


PROFILE_ENDPOINT = "/api/teacher/profile"

CATEGORIES: Tuple[CategorySpec, ...] = (
    CategorySpec(
        id=PERSONAL,
        title="Personal Information",
        label="Personal Information",
        description="Basic personal and contact details",
        endpoint=PROFILE_ENDPOINT,
        payload_key="teacherInfo",
        layout=PROFILE,
    ),
    CategorySpec(
        id="education",
        title="Education",
        label="Education Detail",
        description="Academic qualifications and degrees",
        endpoint=PROFILE_ENDPOINT,
        payload_key="graduationDetails",
        fields=(
            F("degree", "Degree Level", "degree_type", "degree_type_name", "degree_name", "degree"),
            F("institution", "Institution/University", "university_name", "institution"),
            F("year", "Year", "year_of_passing", "year", kind=YEAR),
            F("subject", "Subject", "subject"),
            F("state", "State", "state"),
            F("qs_ranking", "QS Ranking", "QS_Ranking", "qs_ranking"),
        ),
    ),
    CategorySpec(
        id="postdoc",
        title="Post Doctoral Research Experience",
        label="Post Doctoral Research Experience",
        description="Post-doctoral positions and research",
        endpoint=PROFILE_ENDPOINT,
        payload_key="postDoctoralExp",
        fields=(
            F("institute", "Institute", "Institute", "institute"),
            F("start_date", "Start Date", "Start_Date", "start_date", kind=DATE),
            F("end_date", "End Date", "End_Date", "end_date", kind=DATE, missing="Present"),
            F("sponsored_by", "Sponsored By", "SponsoredBy", "sponsored_by"),
        ),
    ),
    CategorySpec(
        id="experience",
        title="Experience",
        label="Experience Detail",
        description="Professional work experience",
        endpoint=PROFILE_ENDPOINT,
        payload_key="teacherExperience",
        fields=(
            F("designation", "Designation", "desig", "designation", "position"),
            F("employer", "Employer/Institution", "Employeer", "employer", "institution"),
            F("start_date", "Start Date", "Start_Date", "from_date", kind=DATE),
            F("end_date", "End Date", "End_Date", "to_date", kind=DATE, missing=_present_if_current),
            F("nature", "Nature", "Nature", "nature"),
            F("currently_working", "Is Currently Working", "currente", "is_current", kind=FLAG),
        ),
    ),
    CategorySpec(
        id="research",
        title="Research Projects",
        label="Research Projects Detail",
        description="Research projects and grants",
        endpoint="/api/teacher/research",
        payload_key="researchProjects",
        fields=(
            F("title", "Title", "title"),
            F("funding_agency", "Funding Agency", "Funding_Agency_Name", "funding_agency_name", "funding_agency"),
            F("nature", "Project Nature", "Proj_Nature_Name", "project_nature"),
            F("grant", "Grant Sanctioned", "grant_sanctioned", "Grant_Sanctioned", kind=CURRENCY),
            F("duration", "Duration (Months)", "duration"),
            F("status", "Status", "Proj_Status_Name", "status_name", "status", kind=BADGE),
            F("start_date", "Date", "start_date", "Start_Date", kind=DATE),
        ),
    ),
    CategorySpec(
        id="patents",
        title="Patents",
        label="Patents Detail",
        description="Patents filed and granted",
        endpoint="/api/teacher/research-contributions/patents",
        payload_key="patents",
        fields=(
            F("title", "Title", "title", "Title"),
            F("level", "Level", "Res_Pub_Level_Name", "level"),
            F("status", "Status", "Patent_Level_Name", "status", kind=BADGE),
            F("tech_licence", "Tech License", "Tech_Licence", "tech_licence"),
            F("earnings", "Earnings Generated", "Earnings_Generate", "earnings", kind=CURRENCY),
            F("date", "Date", "date", "Date", kind=DATE),
        ),
    ),
    CategorySpec(
        id="econtent",
        title="E-Contents",
        label="E-Contents Detail",
        description="Digital content development",
        endpoint="/api/teacher/research-contributions/e-content",
        payload_key="eContent",
        fields=(
            F("title", "Title", "title"),
            F("brief_details", "Brief Details", "Brief_Details", "brief_details"),
            F("link", "Link", "link", "Link"),
            F("content_type", "Content Type", "EcontentTypeName", "e_content_type_name"),
            F("platform", "Platform", "Econtent_PlatformName", "platform"),
            F("published", "Published", "Publishing_date", "publishing_date", kind=DATE),
        ),
    ),
    CategorySpec(
        id="consultancy",
        title="Consultancy Undertaken",
        label="Consultancy Undertaken Detail",
        description="Consultancy projects and services",
        endpoint="/api/teacher/research-contributions/consultancy",
        payload_key="consultancies",
        fields=(
            F("name", "Name", "name"),
            F("collaborating_inst", "Collaborating Institution", "collaborating_inst"),
            F("address", "Address", "address"),
            F("duration", "Duration", "duration"),
            F("amount", "Amount", "amount", "Rate", kind=CURRENCY),
            F("start_date", "Start Date", "Start_Date", "start_date", kind=DATE),
            F("outcome", "Outcome", "outcome"),
        ),
    ),
    CategorySpec(
        id="collaborations",
        title="Collaborations",
        label="Collaborations Detail",
        description="Academic and research collaborations",
        endpoint="/api/teacher/research-contributions/collaborations",
        payload_key="collaborations",
        fields=(
            F("collab_name", "Collaboration Name", "collab_name"),
            F("collaborating_inst", "Collaborating Institution", "collaborating_inst"),
            F("category", "Category", "category"),
            F("level", "Level", "Collaborations_Level_Name", "level"),
            F("outcome", "Outcome", "Collaborations_Outcome_Name", "outcome"),
            F("starting_date", "Starting Date", "starting_date", kind=DATE),
            F("duration", "Duration", "duration"),
            F("status", "Status", "collab_status", "status", kind=BADGE),
        ),
    ),
    CategorySpec(
        id="phdguidance",
        title="Ph.D. Guidance",
        label="Ph.D. Guidance Detail",
        description="PhD students supervised",
        endpoint="/api/teacher/research-contributions/phd-guidance",
        payload_key="phdStudents",
        fields=(
            F("name", "Student Name", "name"),
            F("regno", "Registration No", "regno"),
            F("topic", "Topic", "topic"),
            F("status", "Status", "Res_Proj_Other_Details_Status_Name", "status", kind=BADGE),
            F("start_date", "Date Registered", "start_date", kind=DATE),
            F("year_of_completion", "Year of Completion", "year_of_completion", kind=YEAR),
        ),
    ),
    CategorySpec(
        id="books",
        title="Books Published",
        label="Book Published Detail",
        description="Books and book chapters published",
        endpoint="/api/teacher/publication/books",
        payload_key="books",
        layout=NUMBERED,
        fields=(
            F("authors", "Authors", "authors"),
            F("title", "Title", "title"),
            F("publisher", "Publisher", "publisher_name", "publisher"),
            F("place", "Place", "place"),
            F("book_type", "Book Type", "Book_Type_Name", "book_type"),
            F("author_type", "Author Type", "Author_Type_Name", "author_type"),
            F("level", "Level", "Res_Pub_Level_Name", "level"),
            F("year", "Year", "submit_date", "year", kind=YEAR),
            F("isbn", "ISBN", "isbn", "ISBN"),
        ),
        citation=CitationSpec(
            authors="authors", title="title", venue=("publisher", "place"), year="year",
            extras=("isbn", "book_type", "level"),
        ),
    ),
    CategorySpec(
        id="papers",
        title="Papers Presented",
        label="Paper Presented Detail",
        description="Conference papers and presentations",
        endpoint="/api/teacher/publication/papers",
        payload_key="papers",
        layout=NUMBERED,
        fields=(
            F("authors", "Authors", "authors"),
            F("title", "Title of Paper", "title_of_paper", "title"),
            F("theme", "Theme", "theme"),
            F("level", "Level", "Res_Pub_Level_Name", "level"),
            F("organising_body", "Organising Body", "organising_body"),
            F("place", "Place", "place"),
            F("year", "Published Year", "date", "year", kind=YEAR),
        ),
        citation=CitationSpec(
            authors="authors", title="title", venue=("organising_body", "place"), year="year",
            extras=("theme", "level"),
        ),
    ),
    CategorySpec(
        id="articles",
        title="Published Articles/Journals",
        label="Published Articles/Journals Detail",
        description="Journal articles and publications",
        endpoint="/api/teacher/publication/journals",
        payload_key="journals",
        layout=NUMBERED,
        fields=(
            F("authors", "Authors", "authors"),
            F("title", "Title", "title"),
            F("journal", "Journal Name", "journal_name", "journal"),
            F("volume", "Volume No", "volume_num", "volume"),
            F("pages", "Page No", "page_num", "pages"),
            F("issn", "ISSN", "issn", "ISSN"),
            F("level", "Level", "Res_Pub_Level_Name", "level"),
            F("impact_factor", "IF", "impact_factor"),
            F("doi", "DOI", "DOI", "doi"),
            F("year", "Published Year", "month_year", "year", kind=YEAR),
        ),
        citation=CitationSpec(
            authors="authors", title="title", venue=("journal", "volume", "pages"), year="year",
            extras=("impact_factor", "doi", "issn"),
        ),
    ),
    CategorySpec(
        id="orientation",
        title="Orientation Course",
        label="Orientation Course Detail",
        description="Orientation and refresher courses",
        endpoint="/api/teacher/talks-events/refresher-details",
        payload_key="refresherDetails",
        fields=(
            F("name", "Name", "name"),
            F("course_type", "Course Type", "Refresher_Course_Type_Name", "course_type"),
            F("institute", "Institute", "institute"),
            F("university", "University", "university"),
            F("department", "Department", "department"),
            F("centre", "Centre", "centre"),
            F("start_date", "Start Date", "startdate", "start_date", kind=DATE),
            F("end_date", "End Date", "enddate", "end_date", kind=DATE),
        ),
    ),
    CategorySpec(
        id="academic_contribution",
        title="Contribution in Academic Programme",
        label="Contribution in Academic Programme Detail",
        description="Academic program contributions",
        endpoint="/api/teacher/talks-events/academic-contri",
        payload_key="academicContributions",
        fields=(
            F("name", "Name", "name"),
            F("programme", "Programme", "Expr2", "programme"),
            F("participated_as", "Participated As", "Expr1", "participated_as"),
            F("place", "Place", "place"),
            F("date", "Date", "date", kind=DATE),
            F("year", "Year", "Expr22", "Report_Yr", "year"),
        ),
    ),
    CategorySpec(
        id="academic_participation",
        title="Participation in Academic Programme",
        label="Participation in Academic Programme Detail",
        description="Academic program participation",
        endpoint="/api/teacher/talks-events/acad-bodies-parti",
        payload_key="academicBodiesParticipation",
        fields=(
            F("name", "Name", "name"),
            F("acad_body", "Academic Body", "acad_body"),
            F("participated_as", "Participated As", "participated_as"),
            F("place", "Place", "place"),
            F("submit_date", "Submit Date", "submit_date", kind=DATE),
            F("year", "Year", "Report_Yr", "year"),
        ),
    ),
    CategorySpec(
        id="committees",
        title="Participation in Academic Committee",
        label="Participation in Academic Committee",
        description="Committee memberships and roles",
        endpoint="/api/teacher/talks-events/parti-university-committes",
        payload_key="universityCommittees",
        fields=(
            F("name", "Name", "name"),
            F("committee_name", "Committee Name", "committee_name"),
            F("level", "Level", "Parti_Commi_Level_Name", "level"),
            F("participated_as", "Participated As", "participated_as"),
            F("submit_date", "Submit Date", "submit_date", kind=DATE),
            F("year", "Year", "Expr28", "Report_Yr", "year"),
        ),
    ),
    CategorySpec(
        id="performance",
        title="Performance by Individual/Group",
        label="Performance by Individual/Group Detail",
        description="Individual and group performances",
        endpoint="/api/teacher/awards-recognition/performance-teacher",
        payload_key="performanceTeacher",
        fields=(
            F("name", "Name", "name"),
            F("place", "Place", "place"),
            F("date", "Date", "date", kind=DATE),
            F("nature", "Nature", "perf_nature", "nature"),
        ),
    ),
    CategorySpec(
        id="awards",
        title="Awards/Fellowship",
        label="Awards/Fellowship Detail",
        description="Awards and fellowships received",
        endpoint="/api/teacher/awards-recognition/awards-fellow",
        payload_key="awardsFellows",
        fields=(
            F("name", "Name", "name"),
            F("organization", "Organization", "organization"),
            F("level", "Level", "Expr1", "Awards_Fellows_Level_name", "level"),
            F("date_of_award", "Date of Award", "date_of_award", kind=DATE),
            F("details", "Details", "details"),
            F("address", "Address", "address"),
        ),
    ),
    CategorySpec(
        id="extension",
        title="Extension Activities",
        label="Extension Detail",
        description="Extension activities and outreach",
        endpoint="/api/teacher/awards-recognition/extensions",
        payload_key="extensionActivities",
        fields=(
            F("activity", "Name of Activity", "name_of_activity", "names"),
            F("place", "Place", "place"),
            F("level", "Level", "Awards_Fellows_Level_name", "level"),
            F("sponsored_by", "Sponsored By", "sponsered_name", "sponsored_by"),
            F("date", "Date", "date", kind=DATE),
        ),
    ),
    CategorySpec(
        id="talks",
        title="Talks",
        label="Talk Detail",
        description="Academic and research talks",
        endpoint="/api/teacher/talks-events/teacher-talks",
        payload_key="teacherTalks",
        fields=(
            F("title", "Title/Name", "title", "name"),
            F("programme", "Programme", "teacher_talks_prog_name", "programme"),
            F("place", "Place", "place"),
            F("participated_as", "Participated As", "teacher_talks_parti_name", "participated_as"),
            F("date", "Date", "date", kind=DATE),
        ),
    ),
)

CATEGORY_MAP: Dict[str, CategorySpec] = {c.id: c for c in CATEGORIES}

# Fixed rendering order, independent of the order sections were selected in
SECTION_ORDER: Tuple[str, ...] = tuple(c.id for c in CATEGORIES)

# Categories with records fetched from the backend (everything but personal)
RECORD_CATEGORIES: Tuple[CategorySpec, ...] = tuple(c for c in CATEGORIES if c.id != PERSONAL)


def get_category(category_id: str) -> CategorySpec:
    try:
        return CATEGORY_MAP[category_id]
    except KeyError:
        raise KeyError(f"Unknown record category: {category_id}") from None
