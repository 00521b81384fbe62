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
Main entry point for the academic CV export CLI.
"""

import argparse
import asyncio
import json
import sys
import logging
from collections import deque
from pathlib import Path

from rich.console import Console
from rich.live import Live
from rich.table import Table
from rich.text import Text

from academic_cv.aggregator import Aggregator, build_model
from academic_cv.categories import CATEGORIES, SECTION_ORDER
from academic_cv.config import Settings, set_ca_bundle_override
from academic_cv.delivery import FileSink
from academic_cv.exporter import ExportOrchestrator, LocalDocumentBackend, RemoteDocumentBackend
from academic_cv.models import JobState, OutputFormat, SectionSelection
from academic_cv.styles import Template, available_templates

logger = logging.getLogger(__name__)


class StatusLogHandler(logging.Handler):
    """
    Custom handler to store the last N logs for a scrolling status display.
    """
    def __init__(self, console, maxlen=5):
        super().__init__()
        self.console = console
        self.maxlen = maxlen
        self.logs = deque(maxlen=maxlen)
        self.live = None

    def emit(self, record):
        try:
            msg = self.format(record)
            self.logs.append(msg)
            if self.live:
                self.live.update(self.get_renderable())
        except Exception:
            self.handleError(record)

    def get_renderable(self):
        return Text("\n".join(self.logs), style="dim grey50")


def setup_logging(verbosity: int, quiet: bool = False, custom_handler: logging.Handler = None,
                  log_dir: str = "user_content/logs"):
    """
    Configures logging:
    - File: user_content/logs/cv.log (DEBUG)
    - Console: Default=INFO (status panel), -q=ERROR, -v=WARNING, -vv=INFO, -vvv=DEBUG
    """
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    file_handler = logging.FileHandler(log_path / "cv.log")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
    root.addHandler(file_handler)

    if quiet or verbosity == 0:
        level = logging.ERROR
    elif verbosity == 1:
        level = logging.WARNING
    elif verbosity == 2:
        level = logging.INFO
    else:
        level = logging.DEBUG

    handler = custom_handler or logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter('%(message)s'))
    root.addHandler(handler)

    # Silence noisy libs if not in super debug
    if verbosity < 3:
        logging.getLogger("urllib3").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Academic CV export")
    parser.add_argument("--subject", help="Subject (teacher) id to fetch records for")
    parser.add_argument("--sections", help="Comma-separated section ids to include (see --list-sections)")
    parser.add_argument("--all", action="store_true", help="Include every section")
    parser.add_argument("--exclude", help="Comma-separated section ids to leave out (e.g. with --all)")
    parser.add_argument("--template", default=Template.ACADEMIC.value,
                        choices=available_templates(), help="Visual template (default: academic)")
    parser.add_argument("--format", dest="output_format", default=OutputFormat.WORD.value,
                        choices=[f.value for f in OutputFormat], help="Output format (default: word)")
    parser.add_argument("--input", help="JSON file with already-fetched records (offline export)")
    parser.add_argument("--output-dir", help="Directory for generated files (default: user_content/generated_cvs)")
    parser.add_argument("--remote", action="store_true", help="Build documents with the doc-build service instead of locally")
    parser.add_argument("--list-sections", action="store_true", help="List the available sections and exit")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Increase output verbosity (-v=WARNING, -vv=INFO, -vvv=DEBUG)")
    parser.add_argument("-q", "--quiet", action="store_true", help="Suppress status output (ERROR only)")
    parser.add_argument("--ca-bundle", help="Path to a custom CA certificate bundle for HTTPS verification (proxy environments)")
    return parser


def _section_ids(value, parser) -> list:
    ids = [s.strip() for s in (value or "").split(",") if s.strip()]
    unknown = [s for s in ids if s not in SECTION_ORDER]
    if unknown:
        parser.error(f"Unknown section(s): {', '.join(unknown)}. Use --list-sections to see the options.")
    return ids


def parse_sections(args, parser) -> list:
    selection = SectionSelection()
    if args.all:
        selection.select_all()
    for section_id in _section_ids(args.sections, parser):
        selection.add(section_id)
    for section_id in _section_ids(args.exclude, parser):
        selection.discard(section_id)
    return selection.ordered()


def list_sections(console: Console):
    table = Table(title="Available sections")
    table.add_column("Id")
    table.add_column("Section")
    table.add_column("Description", style="dim")
    for category in CATEGORIES:
        table.add_row(category.id, category.label, category.description)
    console.print(table)


def load_input(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError("input JSON must be an object keyed by section id")
    return data


async def export(args, settings: Settings, sections: list) -> int:
    aggregator = Aggregator(settings)

    if args.input:
        logger.info(f"Loading records from: {args.input}")
        try:
            aggregator.model = build_model(load_input(args.input), settings.institution)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read input file: {e}")
            return 1
    else:
        await aggregator.aggregate(args.subject)

    if args.remote:
        backend = RemoteDocumentBackend(settings)
    else:
        backend = LocalDocumentBackend(image_loader=aggregator.client.fetch_image)
    sink = FileSink(settings.output_dir)
    orchestrator = ExportOrchestrator(aggregator, backend=backend, sink=sink, settings=settings)

    job = await orchestrator.run(sections, args.template, args.output_format)
    if job.state is not JobState.SUCCEEDED:
        return 1

    if job.output_format is OutputFormat.PREVIEW:
        job.artifact = orchestrator.preview_pane.save(sink, title=f"CV - {job.model.subject.name}")
    logger.info(f"Done! {job.artifact}")
    return 0


def main():
    try:
        sys.exit(_main_cli())
    except KeyboardInterrupt:
        # stderr so it shows even when stdout is redirected or under rich
        sys.stderr.write("\n\033[31m[-] Cancelled by user\033[0m\n")
        sys.exit(130)


def _main_cli(argv=None) -> int:
    """
    Parses arguments, aggregates the subject's records and exports the CV.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list_sections:
        list_sections(Console())
        return 0

    if not args.subject and not args.input:
        parser.error("Either --subject or --input is required unless --list-sections is used.")

    if args.ca_bundle:
        set_ca_bundle_override(args.ca_bundle)

    sections = parse_sections(args, parser)
    settings = Settings.from_env().with_overrides(output_dir=args.output_dir)

    if args.quiet:
        setup_logging(0, quiet=True)
        return _run_main_logic(args, settings, sections)

    if args.verbose:
        setup_logging(args.verbose)
        return _run_main_logic(args, settings, sections)

    # Default mode: rich status log
    console = Console()
    status_handler = StatusLogHandler(console)
    setup_logging(2, custom_handler=status_handler)
    with Live(status_handler.get_renderable(), refresh_per_second=4, console=console) as live:
        status_handler.live = live
        return _run_main_logic(args, settings, sections)


def _run_main_logic(args, settings: Settings, sections: list) -> int:
    logger.info("--- Academic CV ---")
    return asyncio.run(export(args, settings, sections))


if __name__ == "__main__":
    main()
