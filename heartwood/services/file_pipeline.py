"""File pipeline: run the default script over JSON files dropped in a directory.

For every ``<name>.json`` in the input directory the pipeline:
1. Skips the file if ``<output>/<name>.json`` already records the same
   source name and modification time
2. Reads and decodes the JSON, untagging it when it is tagged
3. Runs the default script
4. Writes the enveloped, tagged result plus provenance fields

Errors are logged and the file is left unprocessed so the next
filesystem event retries it.
"""

import json
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from heartwood.lib.deadline import DeadlineExceeded, run_in_thread_with_deadline
from heartwood.services.errors import HeartwoodError
from heartwood.services.scripts import ScriptRegistry
from heartwood.services.tgdf import (
    TGDF_VERSION,
    format_instant,
    from_tagged,
    is_tagged,
    json_default,
    wrap_response,
)

logger = logging.getLogger(__name__)

INPUT_FILE_NAME = "inputFileName"
INPUT_FILE_DATE = "inputFileDate"


class ProcessOutcome(str, Enum):
    """Result of a single ``process_file`` call."""

    PROCESSED = "processed"
    SKIPPED = "skipped"
    FAILED = "failed"


def source_timestamp(path: Path) -> str:
    """Modification time of ``path`` as a UTC millisecond ISO string."""
    mtime = path.stat().st_mtime
    return format_instant(datetime.fromtimestamp(mtime, tz=timezone.utc))


def recorded_provenance(output: Any) -> tuple[Optional[str], Optional[str]]:
    """Extract ``(inputFileName, inputFileDate)`` from an output document.

    Looks at top-level fields first, then inside the tagged envelope data.
    """
    if not isinstance(output, Mapping):
        return None, None

    if INPUT_FILE_NAME in output:
        return output.get(INPUT_FILE_NAME), output.get(INPUT_FILE_DATE)

    body = output.get("response")
    if isinstance(body, Mapping):
        data = body.get("data")
        if isinstance(data, Mapping):
            fields = data.get("object", data)
            if isinstance(fields, Mapping):
                name = fields.get(INPUT_FILE_NAME)
                stamp = fields.get(INPUT_FILE_DATE)
                name = name.get("text") if isinstance(name, Mapping) else name
                stamp = stamp.get("instant") if isinstance(stamp, Mapping) else stamp
                return name, stamp

    return None, None


def _read_json(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _read_existing_json(path: Path) -> Any:
    if not path.exists():
        return None
    return _read_json(path)


def _write_json(path: Path, document: Any) -> None:
    # Write-then-rename so readers never see a half-written output
    tmp_path = path.with_name(f".{path.name}.tmp")
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(document, f, indent=2, default=json_default)
    tmp_path.replace(path)


class FilePipeline:
    """Processes input files with a registry script.

    Args:
        registry: Script registry used to run the script
        input_dir: Directory holding ``*.json`` inputs
        output_dir: Directory receiving same-named outputs
        script_name: Script to run for every file
        io_timeout: Deadline in seconds for each file read/write
        version: Envelope version string
    """

    def __init__(
        self,
        registry: ScriptRegistry,
        input_dir: Path,
        output_dir: Path,
        script_name: str = "default",
        io_timeout: Optional[float] = None,
        version: str = TGDF_VERSION,
    ):
        self.registry = registry
        self.input_dir = Path(input_dir)
        self.output_dir = Path(output_dir)
        self.script_name = script_name
        self.io_timeout = io_timeout
        self.version = version

    def ensure_directories(self) -> None:
        """Create the input and output directories if missing."""
        for directory in (self.input_dir, self.output_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def output_path_for(self, path: Path) -> Path:
        return self.output_dir / Path(path).name

    async def is_already_processed(self, path: Path, file_date: str) -> bool:
        """True if the output already records this source name and mtime.

        The output is read under the I/O deadline; a missing, unreadable
        or slow output counts as not processed.
        """
        out_path = self.output_path_for(path)
        try:
            output = await run_in_thread_with_deadline(
                _read_existing_json, out_path, timeout=self.io_timeout, label=f"check {out_path.name}"
            )
        except (OSError, ValueError, DeadlineExceeded) as e:
            logger.debug(f"Unreadable output {out_path}, reprocessing: {e}")
            return False
        if output is None:
            return False

        name, stamp = recorded_provenance(output)
        return name == Path(path).name and stamp == file_date

    def build_output(self, result: Any, file_name: str, file_date: str) -> dict[str, Any]:
        """Envelope the script result with provenance fields."""
        provenance = {INPUT_FILE_NAME: file_name, INPUT_FILE_DATE: file_date}
        if isinstance(result, Mapping):
            merged = {**result, **provenance}
        else:
            merged = {"result": result, **provenance}

        document = wrap_response(merged, version=self.version)
        document.update(provenance)
        return document

    async def process_file(self, path: Path) -> ProcessOutcome:
        """Process one input file. Never raises.

        Returns:
            PROCESSED when an output was written, SKIPPED when the output
            is already current, FAILED when an error was logged
        """
        path = Path(path)
        file_name = path.name
        out_path = self.output_path_for(path)

        try:
            file_date = source_timestamp(path)
        except OSError as e:
            logger.error(f"Cannot stat input file {path}: {e}")
            return ProcessOutcome.FAILED

        if await self.is_already_processed(path, file_date):
            logger.debug(f"Skipping {file_name}: output already current")
            return ProcessOutcome.SKIPPED

        try:
            payload = await run_in_thread_with_deadline(
                _read_json, path, timeout=self.io_timeout, label=f"read {file_name}"
            )
        except (OSError, ValueError, DeadlineExceeded) as e:
            logger.error(f"Error reading input file {path}: {e}")
            return ProcessOutcome.FAILED

        if is_tagged(payload, strict=True):
            payload = from_tagged(payload, strict=True)

        try:
            result = await self.registry.execute(self.script_name, payload, {"tgdf": True})
        except HeartwoodError as e:
            logger.error(
                f"Error processing file {path}: {e.details or e.message}",
                extra={"file_name": file_name, "script_name": self.script_name},
            )
            return ProcessOutcome.FAILED

        document = self.build_output(result, file_name, file_date)

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            await run_in_thread_with_deadline(
                _write_json, out_path, document, timeout=self.io_timeout, label=f"write {file_name}"
            )
        except (OSError, TypeError, ValueError, DeadlineExceeded) as e:
            logger.error(f"Error writing output file {out_path}: {e}")
            return ProcessOutcome.FAILED

        logger.info(
            f"Processed {file_name} -> {out_path}",
            extra={"file_name": file_name, "script_name": self.script_name},
        )
        return ProcessOutcome.PROCESSED
