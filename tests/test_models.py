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

import unittest

from academic_cv.categories import SECTION_ORDER
from academic_cv.models import AggregateCVModel, SectionSelection, Subject


class TestSectionSelection(unittest.TestCase):

    def test_iterates_in_fixed_order(self):
        selection = SectionSelection(["talks", "patents", "personal"])
        self.assertEqual(list(selection), ["personal", "patents", "talks"])

    def test_select_all_then_discard(self):
        selection = SectionSelection()
        selection.select_all()
        self.assertEqual(selection.ordered(), list(SECTION_ORDER))
        selection.discard("books")
        selection.discard("books")
        self.assertNotIn("books", selection)
        self.assertEqual(len(selection), len(SECTION_ORDER) - 1)

    def test_unknown_section_rejected(self):
        with self.assertRaises(KeyError):
            SectionSelection(["hobbies"])


class TestAggregateCVModel(unittest.TestCase):

    def test_payload_and_lookup(self):
        model = AggregateCVModel(
            subject=Subject(name="Dr. A B"),
            records={"patents": ({"title": "X"},), "books": ()},
        )
        self.assertEqual(model.records_for("talks"), ())
        self.assertEqual(model.populated_categories(), ["patents"])
        payload = model.to_payload()
        self.assertEqual(payload["personal"]["name"], "Dr. A B")
        self.assertEqual(payload["patents"], [{"title": "X"}])


if __name__ == '__main__':
    unittest.main()
