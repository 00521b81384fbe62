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
Runtime configuration.

Values come from environment variables and may be overridden by CLI flags.
The CA bundle for backend HTTPS calls is resolved in priority order:
  1. Explicit override via --ca-bundle CLI arg
  2. REQUESTS_CA_BUNDLE environment variable
  3. CURL_CA_BUNDLE environment variable
  4. SSL_CERT_FILE environment variable
  5. System defaults (True, the certifi / OS trust store)
"""

import os
import logging
from dataclasses import dataclass, replace
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:3000"
DEFAULT_DOC_BUILD_ENDPOINT = "/api/teacher/cv-generation"
DEFAULT_OUTPUT_DIR = "user_content/generated_cvs"
DEFAULT_INSTITUTION = "The Maharaja Sayajirao University of Baroda"

# Module-level override set by the CLI --ca-bundle flag
_ca_bundle_override: Optional[str] = None


def set_ca_bundle_override(path: Optional[str]) -> None:
    global _ca_bundle_override
    _ca_bundle_override = path
    if path:
        logger.info(f"CA bundle override set to: {path}")


def get_ca_bundle() -> str | bool:
    """
    Resolve the `verify=` argument for outbound requests.

    Returns:
        str: Path to a CA bundle file, or
        bool: True to use the default trust store.
    """
    if _ca_bundle_override:
        return _ca_bundle_override

    for var in ("REQUESTS_CA_BUNDLE", "CURL_CA_BUNDLE", "SSL_CERT_FILE"):
        value = os.environ.get(var)
        if value:
            logger.debug(f"Using CA bundle from {var}: {value}")
            return value

    return True


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}={raw!r}; using {default}")
        return default


@dataclass(frozen=True)
class Settings:
    base_url: str = DEFAULT_BASE_URL
    doc_build_endpoint: str = DEFAULT_DOC_BUILD_ENDPOINT
    output_dir: str = DEFAULT_OUTPUT_DIR
    http_timeout: float = 15.0
    institution: str = DEFAULT_INSTITUTION
    print_teardown_delay: float = 1.0
    subject_param: str = "subjectId"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            base_url=os.environ.get("CV_API_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
            doc_build_endpoint=os.environ.get("CV_DOC_BUILD_ENDPOINT", DEFAULT_DOC_BUILD_ENDPOINT),
            output_dir=os.environ.get("CV_OUTPUT_DIR", DEFAULT_OUTPUT_DIR),
            http_timeout=_env_float("CV_HTTP_TIMEOUT", 15.0),
            institution=os.environ.get("CV_INSTITUTION", DEFAULT_INSTITUTION),
            print_teardown_delay=_env_float("CV_PRINT_TEARDOWN_DELAY", 1.0),
        )

    def with_overrides(self, **overrides) -> "Settings":
        """Returns a copy with every non-None override applied (CLI flags)."""
        applied = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **applied)

    def url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"
