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
Handles the generation of the MS Word (DOCX) CV.
"""

import io
import logging
from typing import Callable, Optional

from docx import Document
from docx.enum.section import WD_ORIENT
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.image.exceptions import UnrecognizedImageError
from docx.shared import Inches, Pt

from academic_cv.models import AggregateCVModel, Subject
from academic_cv.sections import (
    capture_new_elements, get_renderer, header_lines, ordered_sections,
    set_bottom_border, style_run,
)
from academic_cv.styles import StyleConfig

logger = logging.getLogger(__name__)

# Fetches a profile image by URL; None when it cannot be loaded
ImageLoader = Callable[[str], Optional[bytes]]

PHOTO_WIDTH = Inches(1.5)


class CVDocumentBuilder:
    """
    Builds a styled DOCX CV from an aggregate model.
    One builder produces one document.
    """

    def __init__(self, style: StyleConfig, image_loader: Optional[ImageLoader] = None):
        self.style = style
        self.image_loader = image_loader
        self.document = Document()
        self.header_elements = []
        self.section_elements = {}
        self._setup_page()
        self._setup_styles()

    def _setup_page(self):
        # US Letter portrait, 1 inch margins
        section = self.document.sections[0]
        section.orientation = WD_ORIENT.PORTRAIT
        section.page_width = Inches(8.5)
        section.page_height = Inches(11)
        for side in ("top_margin", "bottom_margin", "left_margin", "right_margin"):
            setattr(section, side, Inches(1))

    def _setup_styles(self):
        palette = self.style.docx
        font = self.document.styles['Normal'].font
        font.name = palette.font
        font.size = Pt(palette.body_size)

    def _add_photo(self, url: str):
        data = self.image_loader(url) if self.image_loader else None
        if not data:
            return
        p = self.document.add_paragraph()
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER
        try:
            p.add_run().add_picture(io.BytesIO(data), width=PHOTO_WIDTH)
        except UnrecognizedImageError:
            logger.warning(f"Profile image is not a supported picture, leaving it out: {url}")
            p._p.getparent().remove(p._p)

    def add_header(self, subject: Subject):
        """Photo (when it loads), name, role line and contact line, centred, with a rule underneath."""
        palette = self.style.docx
        name, title, contact = header_lines(subject)

        def add_header_content():
            if subject.profile_image:
                self._add_photo(subject.profile_image)

            p = self.document.add_paragraph()
            p.alignment = WD_ALIGN_PARAGRAPH.CENTER
            style_run(p.add_run(name), palette, palette.name_size, palette.name_color, bold=True)

            if title:
                p = self.document.add_paragraph()
                p.alignment = WD_ALIGN_PARAGRAPH.CENTER
                style_run(p.add_run(title), palette, palette.title_size, palette.title_color)

            if contact:
                p = self.document.add_paragraph()
                p.alignment = WD_ALIGN_PARAGRAPH.CENTER
                style_run(p.add_run(contact), palette, palette.contact_size)

            set_bottom_border(p, palette.section_color, size=12)
            self.document.add_paragraph()  # Spacer

        self.header_elements = capture_new_elements(self.document, add_header_content)

    def build(self, model: AggregateCVModel, sections):
        """
        Main entry point: header, then every selected section in the fixed order.
        Sections without records are skipped entirely (personal excepted).
        """
        if model.subject is not None:
            self.add_header(model.subject)

        for section_id in ordered_sections(sections):
            renderer = get_renderer(section_id)
            elements = renderer.render_docx(self.document, model.records_for(section_id), self.style, model.subject)
            if elements:
                self.section_elements[section_id] = elements
            else:
                logger.debug(f"    > Skipping empty section: {section_id}")

        logger.info(f"Word document assembled: {len(self.section_elements)} section(s)")
        return self.document

    def to_bytes(self) -> bytes:
        buffer = io.BytesIO()
        self.document.save(buffer)
        return buffer.getvalue()


def build_word_document(model: AggregateCVModel, sections, style: StyleConfig,
                        image_loader: Optional[ImageLoader] = None) -> bytes:
    builder = CVDocumentBuilder(style, image_loader)
    builder.build(model, sections)
    return builder.to_bytes()
