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
Template style resolution.

A template resolves to exactly one StyleConfig holding, for every visual
role, an interactive descriptor (CSS classes for the live preview) and a
standalone descriptor (inline CSS for the printable artifact), plus the
palette used by the Word renderer.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping, Tuple

from academic_cv.errors import TemplateConfigError

logger = logging.getLogger(__name__)

INTERACTIVE = "interactive"
STANDALONE = "standalone"

ROLES: Tuple[str, ...] = (
    "container",
    "header",
    "name",
    "title",
    "contact",
    "photo",
    "section",
    "section_title",
    "item",
    "item_title",
    "item_subtitle",
    "item_details",
    "table",
    "th",
    "td",
    "publication",
    "badge",
)


class Template(str, Enum):
    ACADEMIC = "academic"
    PROFESSIONAL = "professional"
    MODERN = "modern"
    CLASSIC = "classic"


@dataclass(frozen=True)
class RoleStyle:
    """The style of one role in one flavor: a class list or a CSS declaration block."""
    role: str
    flavor: str
    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class DocxPalette:
    font: str
    name_size: float
    title_size: float
    contact_size: float
    heading_size: float
    body_size: float
    name_color: str
    title_color: str
    section_color: str
    border_color: str
    header_fill: str
    badge_color: str


@dataclass(frozen=True)
class StyleConfig:
    template: Template
    interactive: Mapping[str, str]
    standalone: Mapping[str, str]
    docx: DocxPalette

    def role(self, role: str, flavor: str = INTERACTIVE) -> RoleStyle:
        if flavor == INTERACTIVE:
            tree = self.interactive
        elif flavor == STANDALONE:
            tree = self.standalone
        else:
            raise TemplateConfigError(f"Unknown style flavor: {flavor}")
        if role not in tree:
            raise TemplateConfigError(f"Template '{self.template.value}' has no role '{role}'")
        return RoleStyle(role=role, flavor=flavor, value=tree[role])

    def css(self, role: str) -> str:
        return self.role(role, STANDALONE).value

    def classes(self, role: str) -> str:
        return self.role(role, INTERACTIVE).value


_REGISTRY: Dict[Template, StyleConfig] = {}


def register_template(config: StyleConfig) -> StyleConfig:
    """Adds a template after checking that both descriptor trees cover every role."""
    for flavor, tree in ((INTERACTIVE, config.interactive), (STANDALONE, config.standalone)):
        missing = [r for r in ROLES if r not in tree]
        if missing:
            raise TemplateConfigError(
                f"Template '{config.template.value}' {flavor} styles are missing roles: {', '.join(missing)}"
            )
    _REGISTRY[config.template] = config
    logger.debug(f"Registered template: {config.template.value}")
    return config


def resolve_style(template_id) -> StyleConfig:
    """Looks up a template by enum or id. Unknown ids are a programming error."""
    try:
        template = Template(template_id)
    except ValueError:
        raise TemplateConfigError(
            f"Invalid template '{template_id}'. Must be one of: {', '.join(t.value for t in Template)}"
        ) from None
    try:
        return _REGISTRY[template]
    except KeyError:
        raise TemplateConfigError(f"Template '{template.value}' is not registered") from None


def available_templates() -> Tuple[str, ...]:
    return tuple(t.value for t in Template if t in _REGISTRY)


register_template(StyleConfig(
    template=Template.ACADEMIC,
    interactive={
        "container": "bg-white text-gray-900 font-serif",
        "header": "text-center mb-8 pb-5 border-b-2 border-blue-900",
        "name": "text-3xl font-bold text-gray-900 mb-3 leading-tight",
        "title": "text-lg text-gray-700 mb-2",
        "contact": "text-sm text-gray-700 leading-relaxed",
        "photo": "w-24 h-24 rounded-full object-cover mx-auto mb-3 border-2 border-blue-900",
        "section": "mb-6",
        "section_title": "text-base font-bold text-blue-900 mb-4 mt-8 uppercase tracking-wide border-b-2 border-blue-900 pb-2.5",
        "item": "mb-5 pb-4 border-b border-blue-100 last:border-b-0",
        "item_title": "font-bold text-gray-900 mb-1.5 text-base",
        "item_subtitle": "text-sm italic text-blue-700 mb-1.5",
        "item_details": "text-sm text-gray-600 leading-relaxed",
        "table": "w-full border-collapse text-sm",
        "th": "border border-blue-200 bg-blue-50 px-2 py-1 text-left font-semibold",
        "td": "border border-blue-200 px-2 py-1",
        "publication": "mb-3 text-justify leading-normal",
        "badge": "inline-block rounded px-2 text-xs font-semibold bg-blue-100 text-blue-900",
    },
    standalone={
        "container": "font-family: 'Times New Roman', serif; line-height: 1.6; margin: 1in; color: #333;",
        "header": "text-align: center; border-bottom: 2px solid #1e3a8a; padding-bottom: 20px; margin-bottom: 30px;",
        "name": "font-size: 28px; font-weight: bold; margin-bottom: 8px; color: #1f2937;",
        "title": "font-size: 18px; color: #4b5563; margin-bottom: 5px;",
        "contact": "font-size: 12px; margin-top: 15px; color: #6b7280;",
        "photo": "width: 96px; height: 96px; border-radius: 50%; object-fit: cover; border: 2px solid #1e3a8a; margin-bottom: 10px;",
        "section": "margin-bottom: 25px; page-break-inside: avoid;",
        "section_title": "font-size: 16px; font-weight: bold; color: #1e3a8a; border-bottom: 2px solid #1e3a8a; padding-bottom: 5px; margin-bottom: 15px; text-transform: uppercase; letter-spacing: 1px;",
        "item": "margin-bottom: 15px;",
        "item_title": "font-weight: bold; margin-bottom: 3px; color: #1f2937;",
        "item_subtitle": "font-style: italic; color: #4b5563; margin-bottom: 3px;",
        "item_details": "font-size: 14px; margin-bottom: 5px; color: #6b7280;",
        "table": "width: 100%; border-collapse: collapse; margin-bottom: 15px;",
        "th": "border: 1px solid #d1d5db; background-color: #f3f4f6; padding: 8px; text-align: left; font-weight: bold;",
        "td": "border: 1px solid #d1d5db; padding: 8px;",
        "publication": "margin-bottom: 12px; text-align: justify; line-height: 1.5;",
        "badge": "display: inline-block; padding: 1px 8px; border-radius: 4px; font-size: 11px; font-weight: bold; background-color: #dbeafe; color: #1e3a8a;",
    },
    docx=DocxPalette(
        font="Times New Roman", name_size=21.5, title_size=12.5, contact_size=9.5,
        heading_size=10.5, body_size=9.5, name_color="1F2937", title_color="4B5563",
        section_color="1E3A8A", border_color="BFDBFE", header_fill="EFF6FF", badge_color="1E3A8A",
    ),
))

register_template(StyleConfig(
    template=Template.PROFESSIONAL,
    interactive={
        "container": "bg-white text-gray-900 font-sans",
        "header": "text-center mb-8 pb-5 text-white rounded-lg px-8 py-6 bg-blue-700",
        "name": "text-3xl font-bold text-white mb-3 leading-tight",
        "title": "text-lg text-blue-100 mb-2 font-medium",
        "contact": "text-sm text-white leading-relaxed",
        "photo": "w-24 h-24 rounded-full object-cover mx-auto mb-3 border-2 border-white",
        "section": "mb-6",
        "section_title": "text-base font-semibold text-blue-900 mb-4 mt-8 uppercase border-l-4 border-blue-900 pl-4",
        "item": "mb-5 pb-4 border-l-2 border-blue-200 pl-4",
        "item_title": "font-semibold text-gray-900 mb-1.5 text-base",
        "item_subtitle": "text-sm italic text-blue-600 mb-1.5",
        "item_details": "text-sm text-gray-600 leading-relaxed",
        "table": "w-full border-collapse text-sm shadow-sm",
        "th": "bg-blue-50 px-3 py-2 text-left font-semibold text-blue-800 border-b border-blue-200",
        "td": "px-3 py-2 border-b border-gray-200",
        "publication": "mb-3 pl-4 border-l border-blue-200",
        "badge": "inline-block rounded-full px-2 text-xs font-medium bg-blue-600 text-white",
    },
    standalone={
        "container": "font-family: Arial, sans-serif; line-height: 1.5; margin: 1in; color: #374151;",
        "header": "background: linear-gradient(135deg, #2563eb 0%, #1d4ed8 100%); color: white; padding: 30px; margin-bottom: 30px; border-radius: 8px;",
        "name": "font-size: 32px; font-weight: 300; margin-bottom: 8px;",
        "title": "font-size: 20px; font-weight: 500; margin-bottom: 5px; opacity: 0.9;",
        "contact": "font-size: 12px; margin-top: 15px; opacity: 0.8;",
        "photo": "width: 96px; height: 96px; border-radius: 50%; object-fit: cover; border: 2px solid white; margin-bottom: 10px;",
        "section": "margin-bottom: 25px; page-break-inside: avoid;",
        "section_title": "font-size: 16px; font-weight: 600; color: #1d4ed8; border-left: 4px solid #2563eb; padding-left: 15px; margin-bottom: 15px; text-transform: uppercase;",
        "item": "margin-bottom: 15px; padding-left: 15px; border-left: 2px solid #e5e7eb;",
        "item_title": "font-weight: 600; margin-bottom: 3px; color: #111827;",
        "item_subtitle": "color: #2563eb; font-weight: 500; margin-bottom: 3px;",
        "item_details": "font-size: 14px; margin-bottom: 5px; color: #4b5563;",
        "table": "width: 100%; border-collapse: collapse; margin-bottom: 15px; box-shadow: 0 1px 3px rgba(0,0,0,0.1);",
        "th": "background-color: #eff6ff; padding: 12px; text-align: left; font-weight: 600; color: #1e40af; border-bottom: 1px solid #bfdbfe;",
        "td": "padding: 12px; border-bottom: 1px solid #e5e7eb;",
        "publication": "margin-bottom: 12px; padding-left: 15px; border-left: 1px solid #bfdbfe;",
        "badge": "display: inline-block; padding: 1px 8px; border-radius: 9999px; font-size: 11px; background-color: #2563eb; color: white;",
    },
    docx=DocxPalette(
        font="Calibri", name_size=21.5, title_size=12.5, contact_size=9.5,
        heading_size=10.5, body_size=9.5, name_color="1D4ED8", title_color="1E40AF",
        section_color="1E3A8A", border_color="BFDBFE", header_fill="EFF6FF", badge_color="2563EB",
    ),
))

register_template(StyleConfig(
    template=Template.MODERN,
    interactive={
        "container": "bg-white text-gray-900 font-sans",
        "header": "text-center mb-8 pb-5 border-b-2 border-blue-200",
        "name": "text-3xl font-bold text-gray-900 mb-3 leading-tight",
        "title": "text-lg text-gray-600 mb-2 font-medium",
        "contact": "text-sm text-gray-700 leading-relaxed",
        "photo": "w-24 h-24 rounded-full object-cover mx-auto mb-3 shadow-sm",
        "section": "mb-6",
        "section_title": "text-base font-semibold text-blue-700 mb-4 mt-8 uppercase tracking-wide border-b-2 border-blue-200 pb-2.5",
        "item": "mb-5 pb-4 border-b border-gray-100 last:border-b-0",
        "item_title": "font-semibold text-gray-900 mb-1.5 text-base",
        "item_subtitle": "text-sm italic text-gray-600 mb-1.5",
        "item_details": "text-sm text-gray-500 leading-relaxed",
        "table": "w-full text-sm rounded-lg overflow-hidden shadow-sm",
        "th": "bg-gray-100 px-3 py-2 text-left font-medium text-gray-700",
        "td": "px-3 py-2 border-b border-gray-100",
        "publication": "mb-3 rounded-lg bg-white p-3 shadow-sm",
        "badge": "inline-block rounded-full px-2 text-xs bg-gray-200 text-gray-700",
    },
    standalone={
        "container": "font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; line-height: 1.5; margin: 1in; color: #111827; background-color: #f9fafb;",
        "header": "background-color: white; box-shadow: 0 10px 15px -3px rgba(0, 0, 0, 0.1); padding: 30px; margin-bottom: 30px; border-radius: 12px;",
        "name": "font-size: 32px; font-weight: 100; margin-bottom: 8px; color: #111827;",
        "title": "font-size: 20px; color: #4b5563; margin-bottom: 5px; font-weight: 300;",
        "contact": "font-size: 12px; margin-top: 15px; color: #6b7280;",
        "photo": "width: 96px; height: 96px; border-radius: 50%; object-fit: cover; margin-bottom: 10px;",
        "section": "margin-bottom: 25px; page-break-inside: avoid;",
        "section_title": "font-size: 16px; font-weight: 500; color: #374151; background-color: #e5e7eb; padding: 8px 16px; border-radius: 20px; margin-bottom: 15px; display: inline-block;",
        "item": "margin-bottom: 15px; background-color: white; padding: 15px; border-radius: 8px; box-shadow: 0 1px 3px rgba(0,0,0,0.1);",
        "item_title": "font-weight: 500; margin-bottom: 3px; color: #111827;",
        "item_subtitle": "color: #4b5563; margin-bottom: 3px;",
        "item_details": "font-size: 14px; margin-bottom: 5px; color: #6b7280;",
        "table": "width: 100%; background-color: white; border-radius: 8px; box-shadow: 0 1px 3px rgba(0,0,0,0.1); overflow: hidden; margin-bottom: 15px;",
        "th": "background-color: #f3f4f6; padding: 12px; text-align: left; font-weight: 500; color: #374151;",
        "td": "padding: 12px; border-bottom: 1px solid #f3f4f6;",
        "publication": "margin-bottom: 12px; background-color: white; padding: 12px; border-radius: 8px; box-shadow: 0 1px 3px rgba(0,0,0,0.1);",
        "badge": "display: inline-block; padding: 1px 8px; border-radius: 9999px; font-size: 11px; background-color: #e5e7eb; color: #374151;",
    },
    docx=DocxPalette(
        font="Calibri", name_size=21.5, title_size=12.5, contact_size=9.5,
        heading_size=10.5, body_size=9.5, name_color="111827", title_color="4B5563",
        section_color="374151", border_color="D1D5DB", header_fill="F3F4F6", badge_color="374151",
    ),
))

register_template(StyleConfig(
    template=Template.CLASSIC,
    interactive={
        "container": "bg-white text-gray-900 font-serif",
        "header": "text-center mb-8 pb-5 border-b-2 border-amber-800",
        "name": "text-3xl font-bold text-gray-900 mb-3 leading-tight",
        "title": "text-lg text-gray-700 mb-2",
        "contact": "text-sm text-gray-700 leading-relaxed",
        "photo": "w-24 h-24 object-cover mx-auto mb-3 border border-amber-800",
        "section": "mb-6",
        "section_title": "text-base font-bold text-amber-900 mb-4 mt-8 uppercase border-b-2 border-amber-800 pb-2.5 tracking-wider",
        "item": "mb-5 pb-4 border-b border-amber-100 last:border-b-0",
        "item_title": "font-bold text-gray-900 mb-1.5 text-base",
        "item_subtitle": "text-sm italic text-amber-800 mb-1.5",
        "item_details": "text-sm text-gray-600 leading-relaxed",
        "table": "w-full border-collapse border-2 border-gray-400 text-sm",
        "th": "border border-gray-400 bg-gray-200 px-2 py-1 text-left font-bold",
        "td": "border border-gray-400 px-2 py-1",
        "publication": "mb-3 text-justify",
        "badge": "inline-block rounded px-2 text-xs font-semibold bg-amber-100 text-amber-900",
    },
    standalone={
        "container": "font-family: 'Times New Roman', serif; line-height: 1.6; margin: 1in; color: #1f2937; background-color: #fefdf8;",
        "header": "text-align: center; border-bottom: 1px solid #9ca3af; padding-bottom: 20px; margin-bottom: 30px;",
        "name": "font-size: 28px; font-weight: bold; margin-bottom: 8px; color: #1f2937; letter-spacing: 1px;",
        "title": "font-size: 18px; color: #374151; margin-bottom: 5px;",
        "contact": "font-size: 12px; margin-top: 15px; color: #4b5563;",
        "photo": "width: 96px; height: 96px; object-fit: cover; border: 1px solid #9ca3af; margin-bottom: 10px;",
        "section": "margin-bottom: 25px; page-break-inside: avoid;",
        "section_title": "font-size: 16px; font-weight: bold; color: #374151; border-bottom: 1px solid #9ca3af; padding-bottom: 3px; margin-bottom: 15px; text-transform: uppercase; letter-spacing: 2px;",
        "item": "margin-bottom: 15px;",
        "item_title": "font-weight: bold; margin-bottom: 3px; color: #1f2937;",
        "item_subtitle": "font-style: italic; color: #374151; margin-bottom: 3px;",
        "item_details": "font-size: 14px; margin-bottom: 5px; color: #4b5563;",
        "table": "width: 100%; border-collapse: collapse; border: 2px solid #9ca3af; margin-bottom: 15px;",
        "th": "border: 1px solid #9ca3af; background-color: #e5e7eb; padding: 10px; text-align: left; font-weight: bold;",
        "td": "border: 1px solid #9ca3af; padding: 10px;",
        "publication": "margin-bottom: 12px; text-align: justify;",
        "badge": "display: inline-block; padding: 1px 8px; border-radius: 4px; font-size: 11px; font-weight: bold; background-color: #fef3c7; color: #92400e;",
    },
    docx=DocxPalette(
        font="Georgia", name_size=21.5, title_size=12.5, contact_size=9.5,
        heading_size=10.5, body_size=9.5, name_color="1F2937", title_color="4B5563",
        section_color="92400E", border_color="FDE68A", header_fill="FEF3C7", badge_color="92400E",
    ),
))
