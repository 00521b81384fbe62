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
Builds the interactive preview tree (BeautifulSoup) for a CV.
"""

import copy
import logging

from bs4 import BeautifulSoup, Tag

from academic_cv.models import AggregateCVModel, Subject
from academic_cv.sections import get_renderer, header_lines, ordered_sections
from academic_cv.styles import StyleConfig

logger = logging.getLogger(__name__)

TAILWIND_CDN = "https://cdn.tailwindcss.com"


def _header(soup: BeautifulSoup, subject: Subject, style: StyleConfig) -> Tag:
    name, title, contact = header_lines(subject)
    header = soup.new_tag("header", attrs={"class": style.classes("header")})
    if subject.profile_image:
        header.append(soup.new_tag("img", attrs={
            "src": subject.profile_image, "alt": name, "class": f"profile-image {style.classes('photo')}",
        }))
    for role, text in (("name", name), ("title", title), ("contact", contact)):
        if not text:
            continue
        tag = soup.new_tag("h1" if role == "name" else "p", attrs={"class": style.classes(role)})
        tag.string = text
        header.append(tag)
    return header


def build_preview(model: AggregateCVModel, sections, style: StyleConfig) -> BeautifulSoup:
    """Renders the selected sections, in the fixed order, into a single container element."""
    soup = BeautifulSoup("", "html.parser")
    root = soup.new_tag("div", attrs={
        "class": f"cv-preview {style.classes('container')}",
        "data-template": style.template.value,
    })
    if model.subject is not None:
        root.append(_header(soup, model.subject, style))

    rendered = 0
    for section_id in ordered_sections(sections):
        tags = get_renderer(section_id).render_preview(
            model.records_for(section_id), style, model.subject, soup=soup,
        )
        for tag in tags:
            root.append(tag)
        rendered += bool(tags)

    soup.append(root)
    logger.debug(f"Preview built: {rendered} section(s), template {style.template.value}")
    return soup


def preview_page(tree: BeautifulSoup, title: str = "CV Preview") -> str:
    """Wraps a preview tree in a standalone page so it can be opened from disk."""
    page = BeautifulSoup("<!DOCTYPE html><html><head></head><body></body></html>", "html.parser")
    meta = page.new_tag("meta", attrs={"charset": "utf-8"})
    page.head.append(meta)
    title_tag = page.new_tag("title")
    title_tag.string = title
    page.head.append(title_tag)
    page.head.append(page.new_tag("script", attrs={"src": TAILWIND_CDN}))
    body = page.body
    body["class"] = "bg-gray-50 p-8"
    for element in tree.contents:
        body.append(copy.copy(element))
    return str(page)
