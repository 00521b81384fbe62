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
Where finished artifacts go: a file on disk, a print surface, or the preview pane.
"""

import os
import re
import time
import logging
from datetime import date
from typing import Optional

from bs4 import BeautifulSoup

from academic_cv.errors import DispatchError, EnvironmentCapabilityError
from academic_cv.preview import preview_page

logger = logging.getLogger(__name__)

PLAYWRIGHT_INSTALL_HINT = (
    "Install it with:\n"
    "  pip install playwright && python -m playwright install chromium"
)


def artifact_filename(subject_name: str, template: str, ext: str, today: Optional[date] = None) -> str:
    """CV_<Name_With_Underscores>_<template>_<YYYY-MM-DD>.<ext>"""
    today = today or date.today()
    safe_name = re.sub(r"\s+", "_", subject_name.strip())
    safe_name = re.sub(r"[\\/]", "_", safe_name)
    return f"CV_{safe_name}_{template}_{today.isoformat()}.{ext}"


class FileSink:
    """Save-as-file delivery into the output directory."""

    def __init__(self, output_dir: str):
        self.output_dir = output_dir

    def path_for(self, filename: str) -> str:
        try:
            os.makedirs(self.output_dir, exist_ok=True)
        except OSError as e:
            raise EnvironmentCapabilityError(
                f"Cannot create output directory {self.output_dir} ({e}). "
                "Choose a writable location with --output-dir."
            ) from e
        return os.path.join(self.output_dir, filename)

    def save(self, filename: str, data) -> str:
        path = self.path_for(filename)
        if isinstance(data, str):
            data = data.encode("utf-8")
        try:
            with open(path, "wb") as f:
                f.write(data)
        except OSError as e:
            raise EnvironmentCapabilityError(
                f"Cannot write {path} ({e}). Choose a writable location with --output-dir."
            ) from e
        logger.info(f"Saved: {path}")
        return path

    def commit(self, partial: str, path: str) -> str:
        """Moves a file written aside (e.g. by the print surface) to its final name."""
        try:
            os.replace(partial, path)
        except OSError as e:
            raise EnvironmentCapabilityError(
                f"Cannot write {path} ({e}). Choose a writable location with --output-dir."
            ) from e
        logger.info(f"Saved: {path}")
        return path

    def discard(self, path: str):
        if os.path.exists(path):
            os.remove(path)
            logger.debug(f"Discarded: {path}")


class PrintSurface:
    """
    A headless browser page used as the print surface.
    The page is torn down after printing whether or not printing succeeded.
    """

    def __init__(self, teardown_delay: float = 1.0):
        self.teardown_delay = teardown_delay

    def print_to_pdf(self, html: str, path: str) -> str:
        try:
            from playwright.sync_api import sync_playwright, Error as PlaywrightError
        except ImportError as e:
            raise EnvironmentCapabilityError(
                f"Cannot open a print surface: Playwright is not installed. {PLAYWRIGHT_INSTALL_HINT}"
            ) from e

        logger.info("Opening print surface...")
        with sync_playwright() as p:
            try:
                browser = p.chromium.launch(headless=True)
            except PlaywrightError as e:
                raise EnvironmentCapabilityError(
                    f"Cannot open a print surface: the browser failed to launch ({e}). "
                    "Run: python -m playwright install chromium"
                ) from e

            try:
                page = browser.new_page()
                page.set_content(html, wait_until="load")
                page.pdf(path=path, format="Letter", print_background=True)
            except PlaywrightError as e:
                raise DispatchError(f"Printing failed: {e}") from e
            finally:
                if self.teardown_delay > 0:
                    time.sleep(self.teardown_delay)
                browser.close()
                logger.debug("Print surface closed")

        logger.info(f"Printed: {path}")
        return path


class PreviewPane:
    """Holds the preview tree currently on display."""

    def __init__(self):
        self.tree: Optional[BeautifulSoup] = None

    def show(self, tree: BeautifulSoup):
        self.tree = tree

    def clear(self):
        self.tree = None

    def save(self, sink: FileSink, filename: str = "preview.html", title: str = "CV Preview") -> str:
        if self.tree is None:
            raise DispatchError("Nothing to preview yet.")
        return sink.save(filename, preview_page(self.tree, title=title))
