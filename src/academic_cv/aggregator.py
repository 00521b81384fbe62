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
Collects every record category for one subject into an AggregateCVModel.

All category fetches are started together and settle independently: a
category that fails to load becomes an empty section plus one line in an
aggregated warning, it never fails the whole aggregation.
"""

import asyncio
import logging
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import requests

from academic_cv.categories import PERSONAL, PROFILE_ENDPOINT, RECORD_CATEGORIES, CategorySpec
from academic_cv.config import Settings, get_ca_bundle
from academic_cv.errors import CategoryFetchError
from academic_cv.models import AggregateCVModel, Subject
from academic_cv.normalizer import normalize_records, normalize_subject

logger = logging.getLogger(__name__)


def unwrap_envelope(payload: Any, key: str, category_id: Optional[str] = None) -> List[Any]:
    """
    Extracts the record list for `key` from a category response.

    Canonical:  {"success": true, "<key>": [...]}
    Deprecated: {"<key>": [...]} and a bare [...] (still accepted)
    Failure:    {"success": false, ...} raises CategoryFetchError
    Anything else yields no records.
    """
    category_id = category_id or key

    if isinstance(payload, list):
        logger.debug(f"{category_id}: bare list response (deprecated shape)")
        return payload

    if not isinstance(payload, Mapping):
        logger.debug(f"{category_id}: unrecognized response shape {type(payload).__name__}")
        return []

    if "success" in payload:
        if not payload.get("success"):
            reason = payload.get("error") or payload.get("message") or "service reported failure"
            raise CategoryFetchError(category_id, str(reason))
    elif key in payload:
        logger.debug(f"{category_id}: response without success flag (deprecated shape)")
    else:
        logger.debug(f"{category_id}: response has no '{key}' field")
        return []

    value = payload.get(key)
    if value is None:
        return []
    if isinstance(value, Mapping):
        return [value]
    if isinstance(value, list):
        return value
    logger.debug(f"{category_id}: '{key}' is a {type(value).__name__}, expected a list")
    return []


class CategoryClient:
    """Blocking HTTP client for the record-category services."""

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session or requests.Session()

    def fetch(self, endpoint: str, subject_id: str) -> Any:
        url = self.settings.url(endpoint)
        logger.debug(f"GET {url}")
        try:
            response = self.session.get(
                url,
                params={self.settings.subject_param: subject_id},
                timeout=self.settings.http_timeout,
                verify=get_ca_bundle(),
            )
        except requests.exceptions.RequestException as e:
            raise CategoryFetchError(endpoint, str(e)) from e

        if not response.ok:
            raise CategoryFetchError(endpoint, f"HTTP {response.status_code}", response.status_code)
        try:
            return response.json()
        except ValueError as e:
            raise CategoryFetchError(endpoint, "response is not valid JSON") from e

    def fetch_image(self, url: str) -> Optional[bytes]:
        """Downloads a profile image. Returns None (and logs) when it cannot be loaded."""
        url = self.settings.url(url)
        try:
            response = self.session.get(url, timeout=self.settings.http_timeout, verify=get_ca_bundle())
        except requests.exceptions.RequestException as e:
            logger.warning(f"Could not load profile image {url}: {e}")
            return None
        if not response.ok:
            logger.warning(f"Could not load profile image {url}: HTTP {response.status_code}")
            return None
        return response.content


class Aggregator:
    """
    Builds and holds the current AggregateCVModel.

    Each aggregate() call replaces the model wholesale. When calls overlap,
    only the most recently started one is allowed to publish its model.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[CategoryClient] = None,
        categories: Sequence[CategorySpec] = RECORD_CATEGORIES,
    ):
        self.settings = settings or Settings.from_env()
        self.client = client or CategoryClient(self.settings)
        self.categories = tuple(categories)
        self.model = AggregateCVModel(subject=None)
        self._in_flight = 0
        self._generation = 0

    @property
    def is_fetching(self) -> bool:
        return self._in_flight > 0

    def endpoints(self) -> List[str]:
        """Distinct endpoints to call, profile first, each once per aggregation."""
        seen = [PROFILE_ENDPOINT]
        for spec in self.categories:
            if spec.endpoint not in seen:
                seen.append(spec.endpoint)
        return seen

    async def aggregate(self, subject_id: str) -> AggregateCVModel:
        self._generation += 1
        generation = self._generation
        self._in_flight += 1
        try:
            endpoints = self.endpoints()
            logger.info(f"Fetching {len(endpoints)} endpoint(s) for subject {subject_id}")
            results = await asyncio.gather(
                *(asyncio.to_thread(self.client.fetch, endpoint, subject_id) for endpoint in endpoints),
                return_exceptions=True,
            )
            model = self._assemble(dict(zip(endpoints, results)))
        finally:
            self._in_flight -= 1

        if generation == self._generation:
            self.model = model
            logger.info(f"Loaded records for {len(model.populated_categories())} of {len(self.categories)} categories")
        else:
            logger.debug(f"Discarding aggregation {generation}; a newer one has started")
        return model

    def _assemble(self, responses: Dict[str, Any]) -> AggregateCVModel:
        subject = self._subject(responses.get(PROFILE_ENDPOINT))
        records = {}
        failures = {}

        for spec in self.categories:
            result = responses.get(spec.endpoint)
            try:
                if isinstance(result, CategoryFetchError):
                    raise CategoryFetchError(spec.id, result.detail, result.status_code)
                if isinstance(result, Exception):
                    raise CategoryFetchError(spec.id, str(result) or type(result).__name__)
                raws = unwrap_envelope(result, spec.payload_key, spec.id)
                records[spec.id] = normalize_records(spec, raws)
            except CategoryFetchError as e:
                records[spec.id] = ()
                failures[spec.id] = e.reason

        if failures:
            logger.warning(
                f"Could not load {len(failures)} of {len(self.categories)} categories "
                f"(shown as empty): {'; '.join(failures.values())}"
            )
        return AggregateCVModel(subject=subject, records=records, failed_categories=list(failures))

    def _subject(self, result: Any) -> Optional[Subject]:
        if isinstance(result, Exception):
            logger.warning(f"Could not load profile: {result}")
            return None
        if isinstance(result, Mapping) and "success" in result and not result.get("success"):
            logger.warning(f"Profile service reported failure: {result.get('error') or result.get('message')}")
            return None
        subject = normalize_subject(result, institution=self.settings.institution)
        if subject is None:
            logger.warning("Profile response has no name; CV header will be empty")
        elif subject.profile_image and subject.profile_image.startswith("/"):
            # Site-relative upload path; the print surface has no base URL
            subject = replace(subject, profile_image=self.settings.url(subject.profile_image))
        return subject


def build_model(
    raw: Mapping[str, Any],
    institution: Optional[str] = None,
    categories: Iterable[CategorySpec] = RECORD_CATEGORIES,
) -> AggregateCVModel:
    """
    Builds a model from already-fetched data, e.g. a JSON export:
        {"personal": {...} | "profile": {...}, "<category id>": [...] | envelope}
    """
    institution = institution or Settings().institution
    profile = raw.get(PERSONAL) or raw.get("profile") or {}
    subject = normalize_subject(profile, institution=institution)

    records = {}
    failed = []
    for spec in categories:
        payload = raw.get(spec.id)
        if payload is None:
            # Profile-sourced categories may sit inside the profile object
            payload = profile.get(spec.payload_key) if isinstance(profile, Mapping) else None
        try:
            raws = unwrap_envelope(payload, spec.payload_key, spec.id) if payload is not None else []
        except CategoryFetchError as e:
            logger.warning(f"Ignoring failed category in input: {e}")
            raws = []
            failed.append(spec.id)
        records[spec.id] = normalize_records(spec, raws)
    return AggregateCVModel(subject=subject, records=records, failed_categories=failed)
