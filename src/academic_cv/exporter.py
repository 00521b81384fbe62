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
Turns a section selection, a template and an output format into a delivered CV.

An export job moves IDLE -> COLLECTING_INPUTS -> DISPATCHING and ends in
SUCCEEDED or FAILED. A job overtaken by a newer one ends in SUPERSEDED and
its result is dropped before it reaches any delivery surface.
"""

import asyncio
import logging
from datetime import date
from typing import Callable, List, Optional

import requests

from academic_cv.aggregator import Aggregator
from academic_cv.config import Settings, get_ca_bundle
from academic_cv.delivery import FileSink, PreviewPane, PrintSurface, artifact_filename
from academic_cv.errors import (
    CVExportError, DispatchError, EnvironmentCapabilityError, PreconditionError,
)
from academic_cv.generator import ImageLoader, build_word_document
from academic_cv.models import AggregateCVModel, ExportJob, JobState, OutputFormat
from academic_cv.preview import build_preview
from academic_cv.print_html import build_print_html
from academic_cv.sections import ordered_sections
from academic_cv.styles import StyleConfig, resolve_style

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Failed to generate CV. Please try again."


class DocumentBackend:
    """Builds the word bytes and the print HTML for a job."""

    name = "base"

    async def build_word(self, model: AggregateCVModel, sections: List[str], style: StyleConfig) -> bytes:
        raise NotImplementedError

    async def build_print_html(self, model: AggregateCVModel, sections: List[str], style: StyleConfig) -> str:
        raise NotImplementedError


class LocalDocumentBackend(DocumentBackend):
    """Renders in-process with the section renderers."""

    name = "local"

    def __init__(self, today: Callable[[], date] = date.today, image_loader: Optional[ImageLoader] = None):
        self.today = today
        self.image_loader = image_loader

    async def build_word(self, model, sections, style) -> bytes:
        try:
            return await asyncio.to_thread(build_word_document, model, sections, style, self.image_loader)
        except CVExportError:
            raise
        except Exception as e:
            logger.debug("Word build failed", exc_info=True)
            raise DispatchError(f"{GENERIC_FAILURE} ({e})") from e

    async def build_print_html(self, model, sections, style) -> str:
        try:
            return await asyncio.to_thread(build_print_html, model, sections, style, self.today())
        except CVExportError:
            raise
        except Exception as e:
            logger.debug("Print HTML build failed", exc_info=True)
            raise DispatchError(f"{GENERIC_FAILURE} ({e})") from e


class RemoteDocumentBackend(DocumentBackend):
    """
    Delegates the build to the doc-build service:
        POST {aggregateModel, template, format, selectedSections}
    Word answers with the binary document, pdf with {"html": "..."}.
    Failures carry {"error"} or {"message"}.
    """

    name = "remote"

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session or requests.Session()

    def _post(self, model: AggregateCVModel, sections: List[str], style: StyleConfig, fmt: str) -> requests.Response:
        url = self.settings.url(self.settings.doc_build_endpoint)
        payload = {
            "aggregateModel": model.to_payload(),
            "template": style.template.value,
            "format": fmt,
            "selectedSections": list(sections),
        }
        logger.debug(f"POST {url} ({fmt}, {len(sections)} section(s))")
        try:
            response = self.session.post(
                url, json=payload, timeout=self.settings.http_timeout, verify=get_ca_bundle(),
            )
        except requests.exceptions.RequestException as e:
            raise DispatchError(f"Could not reach the document service: {e}") from e

        if not response.ok:
            raise DispatchError(self._error_message(response), response.status_code)
        return response

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get("error") or body.get("message")
            if message:
                return str(message)
        return f"{GENERIC_FAILURE} (HTTP {response.status_code})"

    async def build_word(self, model, sections, style) -> bytes:
        response = await asyncio.to_thread(self._post, model, sections, style, OutputFormat.WORD.value)
        return response.content

    async def build_print_html(self, model, sections, style) -> str:
        response = await asyncio.to_thread(self._post, model, sections, style, OutputFormat.PDF.value)
        try:
            html = response.json().get("html")
        except (ValueError, AttributeError):
            html = None
        if not html:
            raise DispatchError("The document service returned no printable HTML.")
        return html


class ExportOrchestrator:
    """
    Runs export jobs against the aggregator's current model.

    Every run() bumps the generation; a job whose generation is no longer
    current when its build finishes is marked SUPERSEDED and never delivered.
    """

    def __init__(
        self,
        aggregator: Aggregator,
        backend: Optional[DocumentBackend] = None,
        sink: Optional[FileSink] = None,
        print_surface: Optional[PrintSurface] = None,
        preview_pane: Optional[PreviewPane] = None,
        settings: Optional[Settings] = None,
        today: Callable[[], date] = date.today,
    ):
        self.settings = settings or aggregator.settings
        self.aggregator = aggregator
        self.backend = backend or LocalDocumentBackend(today=today)
        self.sink = sink or FileSink(self.settings.output_dir)
        self.print_surface = print_surface or PrintSurface(self.settings.print_teardown_delay)
        self.preview_pane = preview_pane or PreviewPane()
        self.today = today
        self.generation = 0
        self.last_job: Optional[ExportJob] = None

    def _is_stale(self, job: ExportJob) -> bool:
        return job.generation != self.generation

    def _check_inputs(self, job: ExportJob):
        if not job.sections:
            raise PreconditionError("Please select at least one section to include in your CV.")
        if self.aggregator.is_fetching:
            raise PreconditionError("CV data is still loading. Please wait a moment and try again.")
        if job.model is None or job.model.subject is None:
            raise PreconditionError("Profile data is not loaded. Please load your profile and try again.")

    async def run(self, sections, template, output_format) -> ExportJob:
        """
        Runs one export job to a terminal state.
        Precondition, dispatch and environment failures end in FAILED with a
        readable job.error; they are not raised.
        """
        style = resolve_style(template)
        self.generation += 1
        job = ExportJob(
            sections=ordered_sections(sections),
            template=style.template.value,
            output_format=OutputFormat(output_format),
            model=self.aggregator.model,
            generation=self.generation,
        )

        job.state = JobState.COLLECTING_INPUTS
        try:
            self._check_inputs(job)
            job.state = JobState.DISPATCHING
            logger.info(
                f"Exporting {len(job.sections)} section(s) as {job.output_format.value} "
                f"with the {job.template} template ({self.backend.name} backend)"
            )
            delivered = await self._dispatch(job, style)
        except (PreconditionError, DispatchError, EnvironmentCapabilityError) as e:
            if self._is_stale(job):
                return self._supersede(job)
            job.state = JobState.FAILED
            job.error = e.reason
            logger.error(f"Export failed: {e.reason}")
            self.last_job = job
            return job

        if not delivered or self._is_stale(job):
            return self._supersede(job)

        job.state = JobState.SUCCEEDED
        self.last_job = job
        return job

    def _supersede(self, job: ExportJob) -> ExportJob:
        job.state = JobState.SUPERSEDED
        job.artifact = None
        logger.info(f"Export job {job.generation} superseded by job {self.generation}; result discarded")
        return job

    async def _dispatch(self, job: ExportJob, style: StyleConfig) -> bool:
        """Builds and delivers the artifact. Returns False if the job went stale before delivery."""
        model = job.model
        template = style.template.value

        if job.output_format is OutputFormat.WORD:
            data = await self.backend.build_word(model, job.sections, style)
            if self._is_stale(job):
                return False
            filename = artifact_filename(model.subject.name, template, "docx", self.today())
            job.artifact = self.sink.save(filename, data)
            return True

        if job.output_format is OutputFormat.PDF:
            html = await self.backend.build_print_html(model, job.sections, style)
            if self._is_stale(job):
                return False
            path = self.sink.path_for(artifact_filename(model.subject.name, template, "pdf", self.today()))
            # Printed aside and moved into place only while the job is still current
            partial = await asyncio.to_thread(self.print_surface.print_to_pdf, html, f"{path}.part")
            if self._is_stale(job):
                self.sink.discard(partial)
                return False
            job.artifact = self.sink.commit(partial, path)
            return True

        tree = build_preview(model, job.sections, style)
        if self._is_stale(job):
            return False
        self.preview_pane.show(tree)
        return True
