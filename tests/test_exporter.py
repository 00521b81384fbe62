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

import asyncio
import os
import tempfile
import threading
import unittest
from datetime import date
from unittest.mock import MagicMock, Mock

from docx import Document

from academic_cv.aggregator import Aggregator
from academic_cv.config import Settings
from academic_cv.delivery import FileSink, PreviewPane
from academic_cv.errors import EnvironmentCapabilityError, TemplateConfigError
from academic_cv.exporter import DocumentBackend, ExportOrchestrator, RemoteDocumentBackend
from academic_cv.models import AggregateCVModel, JobState, OutputFormat, Subject
from academic_cv.normalizer import normalize_records
from academic_cv.styles import resolve_style

TODAY = date(2024, 3, 1)


def write_pdf(html, path):
    with open(path, "wb") as f:
        f.write(b"%PDF-1.4")
    return path


def loaded_aggregator():
    client = Mock()
    aggregator = Aggregator(settings=Settings(print_teardown_delay=0), client=client)
    aggregator.model = AggregateCVModel(
        subject=Subject(name="Dr. A B"),
        records={"patents": normalize_records("patents", [{
            "title": "X", "Patent_Level_Name": "Granted", "Earnings_Generate": "50000", "date": "2023-01-15",
        }])},
    )
    return aggregator


class GatedBackend(DocumentBackend):
    """The first build waits for `release`; later builds return immediately."""

    def __init__(self):
        self.release = asyncio.Event()
        self.calls = 0

    async def build_word(self, model, sections, style):
        self.calls += 1
        call = self.calls
        if call == 1:
            await self.release.wait()
        return f"doc-{call}".encode()

    async def build_print_html(self, model, sections, style):
        return "<html></html>"


class TestPreconditions(unittest.IsolatedAsyncioTestCase):

    async def test_empty_selection_fails_without_network(self):
        aggregator = loaded_aggregator()
        sink = Mock()
        orchestrator = ExportOrchestrator(aggregator, sink=sink, today=lambda: TODAY)

        job = await orchestrator.run([], "academic", "word")

        self.assertEqual(job.state, JobState.FAILED)
        self.assertIn("select at least one section", job.error)
        aggregator.client.fetch.assert_not_called()
        sink.save.assert_not_called()
        self.assertIs(orchestrator.last_job, job)

    async def test_missing_subject_fails(self):
        aggregator = loaded_aggregator()
        aggregator.model = AggregateCVModel(subject=None)
        job = await ExportOrchestrator(aggregator, sink=Mock()).run(["patents"], "academic", "word")
        self.assertEqual(job.state, JobState.FAILED)
        self.assertIn("Profile data", job.error)

    async def test_fetch_in_flight_fails(self):
        aggregator = loaded_aggregator()
        aggregator._in_flight = 1
        job = await ExportOrchestrator(aggregator, sink=Mock()).run(["patents"], "academic", "pdf")
        self.assertEqual(job.state, JobState.FAILED)
        self.assertIn("still loading", job.error)

    async def test_unknown_template_raises(self):
        with self.assertRaises(TemplateConfigError):
            await ExportOrchestrator(loaded_aggregator(), sink=Mock()).run(["patents"], "fancy", "word")


class TestDispatch(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.sink = FileSink(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    async def test_word_export_saves_named_docx(self):
        orchestrator = ExportOrchestrator(loaded_aggregator(), sink=self.sink, today=lambda: TODAY)
        job = await orchestrator.run(["patents", "personal"], "academic", "word")

        self.assertEqual(job.state, JobState.SUCCEEDED, job.error)
        self.assertEqual(job.sections, ["personal", "patents"])
        self.assertEqual(os.path.basename(job.artifact), "CV_Dr._A_B_academic_2024-03-01.docx")
        doc = Document(job.artifact)
        texts = [p.text for p in doc.paragraphs]
        self.assertIn("Personal Information", texts)
        self.assertIn("Patents", texts)
        row = [c.text for c in doc.tables[1].rows[1].cells]
        self.assertEqual(row, ["1", "X", "N/A", "Granted", "N/A", "₹ 50,000", "15/01/2023"])

    async def test_preview_shows_tree_without_artifact(self):
        pane = PreviewPane()
        orchestrator = ExportOrchestrator(loaded_aggregator(), sink=self.sink, preview_pane=pane)
        job = await orchestrator.run(["patents"], "modern", OutputFormat.PREVIEW)

        self.assertEqual(job.state, JobState.SUCCEEDED)
        self.assertIsNone(job.artifact)
        self.assertEqual(pane.tree.find("section")["data-section"], "patents")
        self.assertEqual(os.listdir(self.tmp.name), [])

    async def test_pdf_export_prints_html(self):
        surface = Mock()
        surface.print_to_pdf.side_effect = write_pdf
        orchestrator = ExportOrchestrator(loaded_aggregator(), sink=self.sink, print_surface=surface,
                                          today=lambda: TODAY)
        job = await orchestrator.run(["patents"], "classic", "pdf")

        self.assertEqual(job.state, JobState.SUCCEEDED, job.error)
        html, _ = surface.print_to_pdf.call_args.args
        self.assertIn("Patents", html)
        self.assertTrue(job.artifact.endswith("CV_Dr._A_B_classic_2024-03-01.pdf"))
        self.assertEqual(os.listdir(self.tmp.name), ["CV_Dr._A_B_classic_2024-03-01.pdf"])

    async def test_missing_print_capability_fails_job(self):
        surface = Mock()
        surface.print_to_pdf.side_effect = EnvironmentCapabilityError(
            "Cannot open a print surface: Playwright is not installed."
        )
        orchestrator = ExportOrchestrator(loaded_aggregator(), sink=self.sink, print_surface=surface)
        with self.assertLogs("academic_cv.exporter", level="ERROR"):
            job = await orchestrator.run(["patents"], "academic", "pdf")

        self.assertEqual(job.state, JobState.FAILED)
        self.assertIn("Playwright", job.error)

    async def test_stale_job_is_superseded(self):
        backend = GatedBackend()
        sink = Mock()
        sink.save.side_effect = lambda filename, data: f"/out/{filename}"
        orchestrator = ExportOrchestrator(loaded_aggregator(), backend=backend, sink=sink)

        first = asyncio.create_task(orchestrator.run(["patents"], "academic", "word"))
        await asyncio.sleep(0)
        second = await orchestrator.run(["patents"], "classic", "word")
        backend.release.set()
        first = await first

        self.assertEqual(second.state, JobState.SUCCEEDED)
        self.assertEqual(first.state, JobState.SUPERSEDED)
        self.assertIsNone(first.artifact)
        sink.save.assert_called_once()
        self.assertEqual(sink.save.call_args.args[1], b"doc-2")
        self.assertIs(orchestrator.last_job, second)

    async def test_stale_pdf_job_is_superseded_after_printing(self):
        printing = threading.Event()
        release = threading.Event()

        def slow_print(html, path):
            printing.set()
            release.wait(5)
            return write_pdf(html, path)

        surface = Mock()
        surface.print_to_pdf.side_effect = slow_print
        orchestrator = ExportOrchestrator(loaded_aggregator(), sink=self.sink, print_surface=surface,
                                          preview_pane=PreviewPane())

        first = asyncio.create_task(orchestrator.run(["patents"], "academic", "pdf"))
        self.assertTrue(await asyncio.to_thread(printing.wait, 5))
        second = await orchestrator.run(["patents"], "classic", "preview")
        release.set()
        first = await first

        self.assertEqual(second.state, JobState.SUCCEEDED)
        self.assertEqual(first.state, JobState.SUPERSEDED)
        self.assertIsNone(first.artifact)
        self.assertIs(orchestrator.last_job, second)
        self.assertEqual(os.listdir(self.tmp.name), [])


class TestRemoteBackend(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.session = MagicMock()
        self.settings = Settings(base_url="https://cv.example.edu", print_teardown_delay=0)
        self.backend = RemoteDocumentBackend(self.settings, self.session)
        self.model = loaded_aggregator().model
        self.style = resolve_style("academic")

    async def test_word_request_body(self):
        self.session.post.return_value.ok = True
        self.session.post.return_value.content = b"PK..."

        data = await self.backend.build_word(self.model, ["personal", "patents"], self.style)

        self.assertEqual(data, b"PK...")
        url = self.session.post.call_args.args[0]
        body = self.session.post.call_args.kwargs["json"]
        self.assertEqual(url, "https://cv.example.edu/api/teacher/cv-generation")
        self.assertEqual(body["format"], "word")
        self.assertEqual(body["template"], "academic")
        self.assertEqual(body["selectedSections"], ["personal", "patents"])
        self.assertEqual(body["aggregateModel"]["personal"]["name"], "Dr. A B")

    async def test_print_html_response(self):
        self.session.post.return_value.ok = True
        self.session.post.return_value.json.return_value = {"html": "<html>cv</html>"}
        html = await self.backend.build_print_html(self.model, ["patents"], self.style)
        self.assertEqual(html, "<html>cv</html>")

    async def test_server_error_message_reaches_job(self):
        self.session.post.return_value.ok = False
        self.session.post.return_value.status_code = 500
        self.session.post.return_value.json.return_value = {"error": "Template engine unavailable"}

        aggregator = loaded_aggregator()
        orchestrator = ExportOrchestrator(aggregator, backend=self.backend, sink=Mock())
        with self.assertLogs("academic_cv.exporter", level="ERROR"):
            job = await orchestrator.run(["patents"], "academic", "word")

        self.assertEqual(job.state, JobState.FAILED)
        self.assertEqual(job.error, "Template engine unavailable")

    async def test_generic_message_without_body(self):
        self.session.post.return_value.ok = False
        self.session.post.return_value.status_code = 502
        self.session.post.return_value.json.side_effect = ValueError("not json")

        orchestrator = ExportOrchestrator(loaded_aggregator(), backend=self.backend, sink=Mock())
        with self.assertLogs("academic_cv.exporter", level="ERROR"):
            job = await orchestrator.run(["patents"], "academic", "pdf")

        self.assertEqual(job.state, JobState.FAILED)
        self.assertIn("HTTP 502", job.error)


if __name__ == '__main__':
    unittest.main()
