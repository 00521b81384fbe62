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
Section renderers.

One renderer per record category, each able to draw its section into the
three output targets:

    render_preview  -> list of BeautifulSoup tags (interactive preview)
    render_print    -> HTML fragment string (print artifact, Jinja2 autoescaped)
    render_docx     -> body elements appended to a python-docx Document

Renderers only ever see Display Records (already normalized strings), so the
three targets agree on fields, order and formatting.
"""

import logging
from collections import namedtuple
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup, Tag
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Pt, RGBColor
from jinja2 import DictLoader, Environment, select_autoescape

from academic_cv.categories import (
    CATEGORIES, CategorySpec,
    BADGE, NUMBERED, PROFILE,
)
from academic_cv.models import DisplayRecord, Subject
from academic_cv.normalizer import NOT_AVAILABLE
from academic_cv.styles import StyleConfig

logger = logging.getLogger(__name__)

SERIAL_LABEL = "Sr. No."

# Values that mean "nothing here" in a Display Record
_PLACEHOLDERS = {"", NOT_AVAILABLE, "-"}

Cell = namedtuple("Cell", ["text", "badge"])

# (label, Subject attribute, shown even when empty)
PROFILE_ROWS: Tuple[Tuple[str, str, bool], ...] = (
    ("Name", "name", True),
    ("Designation", "designation", True),
    ("Department", "department", True),
    ("Faculty", "faculty", True),
    ("Institution", "institution", True),
    ("Email", "email", True),
    ("Phone", "phone", True),
    ("Address", "address", True),
    ("Date of Birth", "date_of_birth", True),
    ("Nationality", "nationality", True),
    ("ORCID", "orcid", True),
    ("Google Scholar", "google_scholar", False),
    ("ResearchGate", "research_gate", False),
)

_FRAGMENTS = {
    "heading": (
        '<h2 style="{{ style.css(\'section_title\') }}">{{ title }}</h2>'
    ),
    "table": (
        '<div class="cv-section" data-section="{{ section_id }}" style="{{ style.css(\'section\') }}">'
        '{% include "heading" %}'
        '<table style="{{ style.css(\'table\') }}">'
        '{% if headers %}<thead><tr>{% for h in headers %}<th style="{{ style.css(\'th\') }}">{{ h }}</th>{% endfor %}</tr></thead>{% endif %}'
        '<tbody>{% for row in rows %}<tr>'
        '{% for cell in row %}<td style="{{ style.css(\'td\') }}">'
        '{% if cell.badge %}<span class="badge" style="{{ style.css(\'badge\') }}">{{ cell.text }}</span>'
        '{% else %}{{ cell.text }}{% endif %}</td>{% endfor %}'
        '</tr>{% endfor %}</tbody>'
        '</table></div>'
    ),
    "numbered": (
        '<div class="cv-section" data-section="{{ section_id }}" style="{{ style.css(\'section\') }}">'
        '{% include "heading" %}'
        '{% for entry in entries %}<div class="publication" style="{{ style.css(\'publication\') }}">'
        '{{ loop.index }}. '
        '{% for role, text in entry %}{% if role == "title" %}<strong>{{ text }}</strong>'
        '{% else %}{{ text }}{% endif %}{% if not loop.last %} {% endif %}{% endfor %}'
        '</div>{% endfor %}'
        '</div>'
    ),
}

print_env = Environment(
    loader=DictLoader(_FRAGMENTS),
    autoescape=select_autoescape(default=True, default_for_string=True),
)


def is_placeholder(value: Optional[str]) -> bool:
    return value is None or value.strip() in _PLACEHOLDERS


def citation_parts(spec: CategorySpec, record: DisplayRecord) -> List[Tuple[str, str]]:
    """
    Splits a numbered entry into styled pieces:
        Authors. "Title". Venue, Year. Extra: value.
    Empty pieces are dropped, except the title which always shows.
    """
    cite = spec.citation
    parts: List[Tuple[str, str]] = []

    authors = record.get(cite.authors, "")
    if not is_placeholder(authors):
        parts.append(("authors", f"{authors}."))

    parts.append(("title", f'"{record.get(cite.title, NOT_AVAILABLE)}".'))

    venue = [record.get(name, "") for name in cite.venue]
    venue.append(record.get(cite.year, ""))
    venue = [v for v in venue if not is_placeholder(v)]
    if venue:
        parts.append(("venue", f"{', '.join(venue)}."))

    for name in cite.extras:
        value = record.get(name, "")
        if not is_placeholder(value):
            parts.append(("extra", f"{spec.field(name).label}: {value}."))
    return parts


def citation_text(spec: CategorySpec, record: DisplayRecord) -> str:
    return " ".join(text for _, text in citation_parts(spec, record))


def profile_rows(subject: Subject) -> List[Tuple[str, str]]:
    rows = []
    for label, attr, always in PROFILE_ROWS:
        value = getattr(subject, attr, "") or ""
        if value:
            rows.append((label, value))
        elif always:
            rows.append((label, NOT_AVAILABLE))
    return rows


def header_lines(subject: Subject) -> Tuple[str, str, str]:
    """(name, designation/department/institution line, contact line) for the document header."""
    title = ", ".join(v for v in (subject.designation, subject.department, subject.institution) if v)
    contact = [subject.email, subject.phone, subject.address]
    if subject.orcid:
        contact.append(f"ORCID: {subject.orcid}")
    return subject.name, title, " | ".join(v for v in contact if v)


def _new_soup() -> BeautifulSoup:
    return BeautifulSoup("", "html.parser")


def _hex(color: str) -> RGBColor:
    return RGBColor.from_string(color.upper())


def shade(cell, fill: str):
    """Applies a solid background fill to a table cell."""
    tc_pr = cell._tc.get_or_add_tcPr()
    shd = OxmlElement("w:shd")
    shd.set(qn("w:val"), "clear")
    shd.set(qn("w:color"), "auto")
    shd.set(qn("w:fill"), fill)
    tc_pr.append(shd)


def set_table_borders(table, color: str, size: int = 4):
    tbl_pr = table._tbl.tblPr
    borders = OxmlElement("w:tblBorders")
    for edge in ("top", "left", "bottom", "right", "insideH", "insideV"):
        element = OxmlElement(f"w:{edge}")
        element.set(qn("w:val"), "single")
        element.set(qn("w:sz"), str(size))
        element.set(qn("w:space"), "0")
        element.set(qn("w:color"), color)
        borders.append(element)
    tbl_pr.append(borders)


def set_bottom_border(paragraph, color: str, size: int = 8):
    p_pr = paragraph._p.get_or_add_pPr()
    p_bdr = OxmlElement("w:pBdr")
    bottom = OxmlElement("w:bottom")
    bottom.set(qn("w:val"), "single")
    bottom.set(qn("w:sz"), str(size))
    bottom.set(qn("w:space"), "1")
    bottom.set(qn("w:color"), color)
    p_bdr.append(bottom)
    p_pr.append(p_bdr)


def style_run(run, palette, size: float, color: Optional[str] = None, bold: Optional[bool] = None):
    run.font.name = palette.font
    run.font.size = Pt(size)
    if color:
        run.font.color.rgb = _hex(color)
    if bold is not None:
        run.bold = bold


def capture_new_elements(document, content_func: Callable[[], None]) -> list:
    """
    Runs content_func() and returns the body elements it added.
    New paragraphs and tables land before the trailing sectPr, so the
    snapshot compares element identity rather than body length.
    """
    body = document.element.body
    existing = set(body)
    content_func()
    return [elem for elem in body if elem not in existing]


class SectionRenderer:
    """Base renderer: holds the category and the shared heading code for every target."""

    def __init__(self, category: CategorySpec):
        self.category = category

    @property
    def section_id(self) -> str:
        return self.category.id

    @property
    def title(self) -> str:
        return self.category.title

    def should_render(self, records: Sequence[DisplayRecord], subject: Optional[Subject] = None) -> bool:
        return bool(records)

    # --- preview -------------------------------------------------------

    def _preview_section(self, soup: BeautifulSoup, style: StyleConfig) -> Tag:
        section = soup.new_tag("section", attrs={"class": style.classes("section"), "data-section": self.section_id})
        heading = soup.new_tag("h2", attrs={"class": style.classes("section_title")})
        heading.string = self.title
        section.append(heading)
        return section

    def _preview_cell_content(self, soup: BeautifulSoup, style: StyleConfig, cell: Cell):
        if cell.badge:
            badge = soup.new_tag("span", attrs={"class": f"badge {style.classes('badge')}"})
            badge.string = cell.text
            return badge
        return cell.text

    def render_preview(self, records, style: StyleConfig, subject: Optional[Subject] = None,
                       soup: Optional[BeautifulSoup] = None) -> List[Tag]:
        if not self.should_render(records, subject):
            return []
        soup = soup or _new_soup()
        return [self._build_preview(soup, records, style, subject)]

    def _build_preview(self, soup, records, style, subject) -> Tag:
        raise NotImplementedError

    # --- print ---------------------------------------------------------

    def render_print(self, records, style: StyleConfig, subject: Optional[Subject] = None) -> str:
        if not self.should_render(records, subject):
            return ""
        return self._build_print(records, style, subject)

    def _build_print(self, records, style, subject) -> str:
        raise NotImplementedError

    # --- docx ----------------------------------------------------------

    def _docx_heading(self, document, style: StyleConfig):
        palette = style.docx
        heading = document.add_heading(level=1)
        run = heading.add_run(self.title)
        style_run(run, palette, palette.heading_size, palette.section_color, bold=True)
        heading.paragraph_format.keep_with_next = True
        set_bottom_border(heading, palette.section_color)
        return heading

    def render_docx(self, document, records, style: StyleConfig, subject: Optional[Subject] = None) -> list:
        if not self.should_render(records, subject):
            return []
        elements = capture_new_elements(document, lambda: self._build_docx(document, records, style, subject))
        logger.debug(f"    > {self.section_id}: {len(elements)} body elements")
        return elements

    def _build_docx(self, document, records, style, subject):
        raise NotImplementedError


class TableSection(SectionRenderer):
    """Heading plus a table: Sr. No. column, then one column per schema attribute."""

    def headers(self) -> List[str]:
        return [SERIAL_LABEL] + [f.label for f in self.category.fields]

    def rows(self, records: Sequence[DisplayRecord]) -> List[List[Cell]]:
        rows = []
        for index, record in enumerate(records, start=1):
            row = [Cell(str(index), False)]
            for spec in self.category.fields:
                value = record.get(spec.name, NOT_AVAILABLE)
                row.append(Cell(value, spec.kind == BADGE and not is_placeholder(value)))
            rows.append(row)
        return rows

    def _build_preview(self, soup, records, style, subject) -> Tag:
        section = self._preview_section(soup, style)
        table = soup.new_tag("table", attrs={"class": style.classes("table")})
        thead = soup.new_tag("thead")
        head_row = soup.new_tag("tr")
        for label in self.headers():
            th = soup.new_tag("th", attrs={"class": style.classes("th")})
            th.string = label
            head_row.append(th)
        thead.append(head_row)
        table.append(thead)

        tbody = soup.new_tag("tbody")
        for row in self.rows(records):
            tr = soup.new_tag("tr")
            for cell in row:
                td = soup.new_tag("td", attrs={"class": style.classes("td")})
                td.append(self._preview_cell_content(soup, style, cell))
                tr.append(td)
            tbody.append(tr)
        table.append(tbody)
        section.append(table)
        return section

    def _build_print(self, records, style, subject) -> str:
        return print_env.get_template("table").render(
            section_id=self.section_id,
            title=self.title,
            style=style,
            headers=self.headers(),
            rows=self.rows(records),
        )

    def _build_docx(self, document, records, style, subject):
        palette = style.docx
        self._docx_heading(document, style)

        headers = self.headers()
        table = document.add_table(rows=1, cols=len(headers))
        set_table_borders(table, palette.border_color)
        for cell, label in zip(table.rows[0].cells, headers):
            run = cell.paragraphs[0].add_run(label)
            style_run(run, palette, palette.body_size, bold=True)
            shade(cell, palette.header_fill)

        for row in self.rows(records):
            cells = table.add_row().cells
            for cell, value in zip(cells, row):
                run = cell.paragraphs[0].add_run(value.text)
                if value.badge:
                    style_run(run, palette, palette.body_size, palette.badge_color, bold=True)
                else:
                    style_run(run, palette, palette.body_size)
        document.add_paragraph()


class NumberedListSection(SectionRenderer):
    """Heading plus 1-based numbered citation entries (books, papers, articles)."""

    def entries(self, records: Sequence[DisplayRecord]) -> List[List[Tuple[str, str]]]:
        return [citation_parts(self.category, record) for record in records]

    def _build_preview(self, soup, records, style, subject) -> Tag:
        section = self._preview_section(soup, style)
        listing = soup.new_tag("div", attrs={"class": "publications"})
        for index, parts in enumerate(self.entries(records), start=1):
            item = soup.new_tag("div", attrs={"class": style.classes("publication")})
            number = soup.new_tag("span", attrs={"class": "entry-number"})
            number.string = f"{index}. "
            item.append(number)
            for position, (role, text) in enumerate(parts):
                if position:
                    item.append(" ")
                if role == "title":
                    strong = soup.new_tag("strong")
                    strong.string = text
                    item.append(strong)
                else:
                    item.append(text)
            listing.append(item)
        section.append(listing)
        return section

    def _build_print(self, records, style, subject) -> str:
        return print_env.get_template("numbered").render(
            section_id=self.section_id,
            title=self.title,
            style=style,
            entries=self.entries(records),
        )

    def _build_docx(self, document, records, style, subject):
        palette = style.docx
        self._docx_heading(document, style)
        for index, parts in enumerate(self.entries(records), start=1):
            p = document.add_paragraph()
            style_run(p.add_run(f"{index}. "), palette, palette.body_size)
            for position, (role, text) in enumerate(parts):
                run = p.add_run(f" {text}" if position else text)
                style_run(run, palette, palette.body_size, bold=(role == "title"))
            p.paragraph_format.widow_control = True


class ProfileSection(SectionRenderer):
    """
    The personal pseudo-category: a label/value table of the Subject.
    Renders whenever a Subject is present, whatever the records say.
    """

    def should_render(self, records, subject=None) -> bool:
        return subject is not None

    def rows(self, subject: Subject) -> List[List[Cell]]:
        return [[Cell(label, False), Cell(value, False)] for label, value in profile_rows(subject)]

    def _build_preview(self, soup, records, style, subject) -> Tag:
        section = self._preview_section(soup, style)
        table = soup.new_tag("table", attrs={"class": style.classes("table")})
        tbody = soup.new_tag("tbody")
        for label, value in profile_rows(subject):
            tr = soup.new_tag("tr")
            th = soup.new_tag("th", attrs={"class": style.classes("th"), "scope": "row"})
            th.string = label
            td = soup.new_tag("td", attrs={"class": style.classes("td")})
            td.string = value
            tr.append(th)
            tr.append(td)
            tbody.append(tr)
        table.append(tbody)
        section.append(table)
        return section

    def _build_print(self, records, style, subject) -> str:
        return print_env.get_template("table").render(
            section_id=self.section_id,
            title=self.title,
            style=style,
            headers=[],
            rows=self.rows(subject),
        )

    def _build_docx(self, document, records, style, subject):
        palette = style.docx
        self._docx_heading(document, style)
        rows = profile_rows(subject)
        table = document.add_table(rows=0, cols=2)
        set_table_borders(table, palette.border_color)
        for label, value in rows:
            cells = table.add_row().cells
            style_run(cells[0].paragraphs[0].add_run(label), palette, palette.body_size, bold=True)
            shade(cells[0], palette.header_fill)
            style_run(cells[1].paragraphs[0].add_run(value), palette, palette.body_size)
        document.add_paragraph()


_VARIANTS = {
    PROFILE: ProfileSection,
    NUMBERED: NumberedListSection,
}

SECTION_RENDERERS: Dict[str, SectionRenderer] = {
    c.id: _VARIANTS.get(c.layout, TableSection)(c) for c in CATEGORIES
}


def ordered_sections(sections) -> List[str]:
    """The selected ids in the fixed section order, whatever order they were chosen in."""
    chosen = set(sections)
    return [s for s in SECTION_RENDERERS if s in chosen]


def get_renderer(section_id: str) -> SectionRenderer:
    try:
        return SECTION_RENDERERS[section_id]
    except KeyError:
        raise KeyError(f"No renderer for section: {section_id}") from None
