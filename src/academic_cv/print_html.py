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
Builds the standalone, print-ready HTML document for a CV.

Everything is inline-styled so the string renders the same wherever it is
written: a print surface, a file, or the body of a doc-build response.
"""

import logging
from datetime import date
from typing import Optional

from academic_cv.models import AggregateCVModel
from academic_cv.sections import get_renderer, header_lines, ordered_sections, print_env
from academic_cv.styles import StyleConfig

logger = logging.getLogger(__name__)

_DOCUMENT = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>CV - {{ name }}</title>
<style>
@page { size: letter; margin: 0.5in; }
@media print { body { margin: 0; } .cv-section { page-break-inside: avoid; } }
table { font-size: 12px; }
</style>
</head>
<body style="{{ style.css('container') }}">
{% if name %}<div class="cv-header" style="{{ style.css('header') }}">
{% if photo %}<img class="profile-image" src="{{ photo }}" alt="{{ name }}" style="{{ style.css('photo') }}">{% endif %}
<div style="{{ style.css('name') }}">{{ name }}</div>
{% if title %}<div style="{{ style.css('title') }}">{{ title }}</div>{% endif %}
{% if contact %}<div style="{{ style.css('contact') }}">{{ contact }}</div>{% endif %}
</div>{% endif %}
{% for fragment in fragments %}{{ fragment | safe }}
{% endfor %}
<div class="cv-document-info" style="{{ style.css('section') }}">
<h2 style="{{ style.css('section_title') }}">Document Information</h2>
<div style="{{ style.css('item_details') }}">Generated on: {{ generated_on }}</div>
<div style="{{ style.css('item_details') }}">Template: {{ template_name }}</div>
<div style="{{ style.css('item_details') }}">Sections included: {{ section_count }}</div>
</div>
</body>
</html>
"""

_document_template = print_env.from_string(_DOCUMENT)


def build_print_html(
    model: AggregateCVModel,
    sections,
    style: StyleConfig,
    today: Optional[date] = None,
) -> str:
    """Renders the selected sections, in the fixed order, into one printable HTML string."""
    today = today or date.today()
    fragments = []
    for section_id in ordered_sections(sections):
        fragment = get_renderer(section_id).render_print(model.records_for(section_id), style, model.subject)
        if fragment:
            fragments.append(fragment)

    name, title, contact = header_lines(model.subject) if model.subject else ("", "", "")
    html = _document_template.render(
        style=style,
        name=name,
        title=title,
        contact=contact,
        photo=model.subject.profile_image if model.subject else None,
        fragments=fragments,
        generated_on=today.strftime("%d/%m/%Y"),
        template_name=style.template.value.capitalize(),
        section_count=len(fragments),
    )
    logger.debug(f"Print HTML built: {len(fragments)} section(s), {len(html)} chars")
    return html
