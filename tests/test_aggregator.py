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
import threading
import unittest
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock, patch

import requests

from academic_cv.aggregator import Aggregator, CategoryClient, build_model, unwrap_envelope
from academic_cv.categories import PROFILE_ENDPOINT, RECORD_CATEGORIES, get_category
from academic_cv.config import Settings
from academic_cv.errors import CategoryFetchError

PATENTS_ENDPOINT = get_category("patents").endpoint

PROFILE = {
    "success": True,
    "teacherInfo": {"Abbri": "Dr.", "fname": "A", "lname": "B"},
    "designation": {"name": "Professor"},
    "graduationDetails": [{"degree_name": "Ph.D.", "year_of_passing": 2010}],
}


class FakeClient:
    """Stands in for CategoryClient; responses keyed by endpoint."""

    def __init__(self, responses=None, default=None):
        self.responses = responses or {}
        self.default = default if default is not None else {"success": True}
        self.calls = []
        self._lock = threading.Lock()
        self.on_fetch = None

    def fetch(self, endpoint, subject_id):
        with self._lock:
            self.calls.append((endpoint, subject_id))
        if self.on_fetch:
            self.on_fetch()
        value = self.responses.get(endpoint, self.default)
        if isinstance(value, Exception):
            raise value
        return value


class BarrierClient(FakeClient):
    """Every fetch waits until `parties` fetches are in flight at once."""

    def __init__(self, parties, responses=None):
        super().__init__(responses)
        self.barrier = threading.Barrier(parties, timeout=5)

    def fetch(self, endpoint, subject_id):
        self.barrier.wait()
        return super().fetch(endpoint, subject_id)


class SubjectGatedClient(FakeClient):
    """Fetches for subject OLD block until `release` is set."""

    def __init__(self):
        super().__init__()
        self.release = threading.Event()

    def fetch(self, endpoint, subject_id):
        if subject_id == "OLD":
            self.release.wait(5)
        if endpoint == PROFILE_ENDPOINT:
            return {"success": True, "teacherInfo": {"fname": subject_id.title()}}
        return {"success": True}


class TestUnwrapEnvelope(unittest.TestCase):

    def test_canonical(self):
        self.assertEqual(unwrap_envelope({"success": True, "patents": [{"a": 1}]}, "patents"), [{"a": 1}])

    def test_deprecated_shapes(self):
        with self.assertLogs("academic_cv.aggregator", level="DEBUG") as logs:
            self.assertEqual(unwrap_envelope({"patents": [{"a": 1}]}, "patents"), [{"a": 1}])
            self.assertEqual(unwrap_envelope([{"a": 2}], "patents"), [{"a": 2}])
        self.assertTrue(all("deprecated" in line for line in logs.output))

    def test_failure_flag_raises(self):
        with self.assertRaises(CategoryFetchError) as ctx:
            unwrap_envelope({"success": False, "error": "db down"}, "patents", "patents")
        self.assertEqual(ctx.exception.category_id, "patents")
        self.assertIn("db down", ctx.exception.reason)

    def test_unrecognized_shapes_are_empty(self):
        self.assertEqual(unwrap_envelope("oops", "patents"), [])
        self.assertEqual(unwrap_envelope({"data": []}, "patents"), [])
        self.assertEqual(unwrap_envelope({"success": True}, "patents"), [])
        self.assertEqual(unwrap_envelope({"success": True, "patents": 5}, "patents"), [])

    def test_single_object_becomes_list(self):
        self.assertEqual(unwrap_envelope({"success": True, "teacherInfo": {"x": 1}}, "teacherInfo"), [{"x": 1}])


class TestAggregator(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        # Room for every fetch of two overlapping aggregations at once
        self.executor = ThreadPoolExecutor(max_workers=40)
        asyncio.get_running_loop().set_default_executor(self.executor)

    async def asyncTearDown(self):
        self.executor.shutdown(wait=True)

    def make(self, client):
        return Aggregator(settings=Settings(), client=client)

    async def test_fetches_run_concurrently(self):
        aggregator = self.make(None)
        client = BarrierClient(len(aggregator.endpoints()), {PROFILE_ENDPOINT: PROFILE})
        aggregator.client = client

        model = await aggregator.aggregate("T1")

        self.assertEqual(model.failed_categories, [])
        self.assertFalse(client.barrier.broken)
        self.assertEqual(model.subject.name, "Dr. A B")

    async def test_older_aggregation_does_not_replace_newer(self):
        client = SubjectGatedClient()
        aggregator = self.make(client)

        older = asyncio.create_task(aggregator.aggregate("OLD"))
        await asyncio.sleep(0)
        newer = await aggregator.aggregate("NEW")
        self.assertTrue(aggregator.is_fetching)
        client.release.set()
        older = await older

        self.assertEqual(older.subject.name, "Old")
        self.assertIs(aggregator.model, newer)
        self.assertEqual(aggregator.model.subject.name, "New")
        self.assertFalse(aggregator.is_fetching)

    async def test_relative_profile_image_is_resolved(self):
        profile = {"success": True, "teacherInfo": {"fname": "A", "ProfileImage": "/uploads/a.jpg"}}
        aggregator = Aggregator(settings=Settings(base_url="https://cv.example.edu"),
                                client=FakeClient({PROFILE_ENDPOINT: profile}))
        model = await aggregator.aggregate("T1")
        self.assertEqual(model.subject.profile_image, "https://cv.example.edu/uploads/a.jpg")

    async def test_populated_categories_are_logged(self):
        client = FakeClient({PROFILE_ENDPOINT: PROFILE, PATENTS_ENDPOINT: {"success": True, "patents": [{"title": "X"}]}})
        with self.assertLogs("academic_cv.aggregator", level="INFO") as logs:
            model = await self.make(client).aggregate("T1")
        self.assertIn("patents", model.populated_categories())
        self.assertTrue(any("Loaded records for" in line for line in logs.output))

    async def test_each_endpoint_fetched_once(self):
        client = FakeClient({PROFILE_ENDPOINT: PROFILE})
        aggregator = self.make(client)
        await aggregator.aggregate("T1")

        endpoints = [e for e, _ in client.calls]
        self.assertEqual(len(endpoints), len(set(endpoints)))
        self.assertEqual(len(endpoints), 18)
        self.assertTrue(all(subject == "T1" for _, subject in client.calls))

    async def test_partial_failure(self):
        client = FakeClient({
            PROFILE_ENDPOINT: PROFILE,
            PATENTS_ENDPOINT: CategoryFetchError(PATENTS_ENDPOINT, "HTTP 500", 500),
            get_category("talks").endpoint: {"success": True, "teacherTalks": [{"title": "Keynote"}]},
        })
        aggregator = self.make(client)

        with self.assertLogs("academic_cv.aggregator", level="WARNING") as logs:
            model = await aggregator.aggregate("T1")

        self.assertEqual(len(logs.records), 1)
        self.assertIn(f"1 of {len(RECORD_CATEGORIES)}", logs.output[0])
        self.assertIn("HTTP 500", logs.output[0])

        self.assertEqual(model.records_for("patents"), ())
        self.assertEqual(model.failed_categories, ["patents"])
        self.assertEqual(model.records_for("talks")[0]["title"], "Keynote")
        self.assertEqual(model.records_for("education")[0]["degree"], "Ph.D.")
        self.assertEqual(model.subject.name, "Dr. A B")
        self.assertEqual(set(model.records), {c.id for c in RECORD_CATEGORIES})

    async def test_profile_failure_leaves_no_subject(self):
        client = FakeClient({PROFILE_ENDPOINT: CategoryFetchError(PROFILE_ENDPOINT, "timed out")})
        with self.assertLogs("academic_cv.aggregator", level="WARNING"):
            model = await self.make(client).aggregate("T1")
        self.assertIsNone(model.subject)
        self.assertEqual(model.failed_categories, ["education", "postdoc", "experience"])

    async def test_unexpected_exception_is_absorbed(self):
        client = FakeClient({PROFILE_ENDPOINT: PROFILE, PATENTS_ENDPOINT: RuntimeError("boom")})
        with self.assertLogs("academic_cv.aggregator", level="WARNING"):
            model = await self.make(client).aggregate("T1")
        self.assertEqual(model.failed_categories, ["patents"])

    async def test_model_replaced_wholesale(self):
        client = FakeClient({
            PROFILE_ENDPOINT: PROFILE,
            PATENTS_ENDPOINT: {"success": True, "patents": [{"title": "Old"}]},
        })
        aggregator = self.make(client)
        first = await aggregator.aggregate("T1")

        client.responses[PATENTS_ENDPOINT] = {"success": True, "patents": []}
        second = await aggregator.aggregate("T1")

        self.assertIsNot(first, second)
        self.assertIs(aggregator.model, second)
        self.assertEqual(second.records_for("patents"), ())
        self.assertEqual(first.records_for("patents")[0]["title"], "Old")

    async def test_is_fetching_during_aggregation(self):
        client = FakeClient({PROFILE_ENDPOINT: PROFILE})
        aggregator = self.make(client)
        seen = []
        client.on_fetch = lambda: seen.append(aggregator.is_fetching)

        self.assertFalse(aggregator.is_fetching)
        await aggregator.aggregate("T1")
        self.assertTrue(all(seen))
        self.assertFalse(aggregator.is_fetching)


class TestCategoryClient(unittest.TestCase):

    def setUp(self):
        self.session = MagicMock()
        self.client = CategoryClient(Settings(base_url="https://api.example.edu", http_timeout=5), self.session)

    @patch("academic_cv.aggregator.get_ca_bundle", return_value="/etc/ca.pem")
    def test_get_parameters(self, _mock_bundle):
        self.session.get.return_value.ok = True
        self.session.get.return_value.json.return_value = {"success": True}

        self.assertEqual(self.client.fetch("/api/teacher/research", "T9"), {"success": True})
        self.session.get.assert_called_once_with(
            "https://api.example.edu/api/teacher/research",
            params={"subjectId": "T9"},
            timeout=5,
            verify="/etc/ca.pem",
        )

    def test_non_2xx_raises(self):
        self.session.get.return_value.ok = False
        self.session.get.return_value.status_code = 503
        with self.assertRaises(CategoryFetchError) as ctx:
            self.client.fetch("/api/teacher/research", "T9")
        self.assertEqual(ctx.exception.status_code, 503)

    def test_network_error_raises(self):
        self.session.get.side_effect = requests.exceptions.ConnectionError("refused")
        with self.assertRaises(CategoryFetchError):
            self.client.fetch("/api/teacher/research", "T9")

    def test_invalid_json_raises(self):
        self.session.get.return_value.ok = True
        self.session.get.return_value.json.side_effect = ValueError("no json")
        with self.assertRaises(CategoryFetchError):
            self.client.fetch("/api/teacher/research", "T9")

    @patch("academic_cv.aggregator.get_ca_bundle", return_value=True)
    def test_fetch_image(self, _mock_bundle):
        self.session.get.return_value.ok = True
        self.session.get.return_value.content = b"\x89PNG"

        self.assertEqual(self.client.fetch_image("/uploads/a.png"), b"\x89PNG")
        self.session.get.assert_called_once_with("https://api.example.edu/uploads/a.png", timeout=5, verify=True)

    def test_fetch_image_failure_returns_none(self):
        self.session.get.return_value.ok = False
        self.session.get.return_value.status_code = 404
        with self.assertLogs("academic_cv.aggregator", level="WARNING"):
            self.assertIsNone(self.client.fetch_image("https://cdn.example.edu/a.png"))

        self.session.get.side_effect = requests.exceptions.Timeout("slow")
        with self.assertLogs("academic_cv.aggregator", level="WARNING"):
            self.assertIsNone(self.client.fetch_image("https://cdn.example.edu/a.png"))


class TestBuildModel(unittest.TestCase):

    def test_offline_input(self):
        raw = {
            "personal": {"name": "Jane Doe", "graduationDetails": [{"degree_name": "M.Sc."}]},
            "patents": [{"title": "Widget"}],
            "talks": {"success": True, "teacherTalks": [{"title": "Invited"}]},
            "awards": {"success": False, "error": "gone"},
        }
        with self.assertLogs("academic_cv.aggregator", level="WARNING"):
            model = build_model(raw, institution="MSU")
        self.assertEqual(model.subject.name, "Jane Doe")
        self.assertEqual(model.subject.institution, "MSU")
        self.assertEqual(model.records_for("patents")[0]["title"], "Widget")
        self.assertEqual(model.records_for("talks")[0]["title"], "Invited")
        self.assertEqual(model.records_for("education")[0]["degree"], "M.Sc.")
        self.assertEqual(model.failed_categories, ["awards"])


if __name__ == '__main__':
    unittest.main()
