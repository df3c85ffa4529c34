"""Tests for the file pipeline (decode, run, envelope, idempotent write).

Run with: uv run pytest heartwood/services/tests/unit/test_file_pipeline.py -v
"""

import json
import os
import time
from pathlib import Path

import pytest

from heartwood.lib.settings import PACKAGED_BUILTIN_DIR
from heartwood.services import file_pipeline
from heartwood.services.file_pipeline import (
    INPUT_FILE_DATE,
    INPUT_FILE_NAME,
    FilePipeline,
    ProcessOutcome,
    recorded_provenance,
    source_timestamp,
)
from heartwood.services.scripts import ScriptRegistry, ScriptResolver, ScriptTier
from heartwood.services.tests.fakes import FakeScript, InMemorySource
from heartwood.services.tgdf import to_tagged, unwrap_response


@pytest.fixture
def dirs(tmp_path) -> tuple[Path, Path]:
    input_dir = tmp_path / "in"
    output_dir = tmp_path / "out"
    input_dir.mkdir()
    return input_dir, output_dir


@pytest.fixture
def echo_source() -> InMemorySource:
    return InMemorySource(
        ScriptTier.BUILTIN,
        [FakeScript("default", lambda input, options: {"seen": input, "options": options})],
    )


@pytest.fixture
def pipeline(dirs, echo_source) -> FilePipeline:
    input_dir, output_dir = dirs
    registry = ScriptRegistry(ScriptResolver([echo_source]))
    return FilePipeline(registry, input_dir, output_dir)


def write_input(directory: Path, name: str, payload) -> Path:
    path = directory / name
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def read_output(pipeline: FilePipeline, name: str) -> dict:
    return json.loads((pipeline.output_dir / name).read_text(encoding="utf-8"))


# =============================================================================
# Test: Processing
# =============================================================================


@pytest.mark.unit
class TestProcessFile:
    """One input file -> one enveloped output file."""

    async def test_writes_envelope_with_provenance(self, pipeline, dirs):
        input_dir, _ = dirs
        path = write_input(input_dir, "job.json", {"a": 1, "b": "x"})

        outcome = await pipeline.process_file(path)

        assert outcome is ProcessOutcome.PROCESSED
        output = read_output(pipeline, "job.json")
        assert output[INPUT_FILE_NAME] == "job.json"
        assert output[INPUT_FILE_DATE] == source_timestamp(path)

        envelope_type, data = unwrap_response(output)
        assert envelope_type == "response"
        assert data["seen"] == {"a": 1, "b": "x"}
        assert data[INPUT_FILE_NAME] == "job.json"

    async def test_script_receives_tgdf_option(self, pipeline, dirs, echo_source):
        input_dir, _ = dirs
        await pipeline.process_file(write_input(input_dir, "job.json", {"a": 1, "b": 2}))
        assert echo_source.scripts["default"].calls == [({"a": 1, "b": 2}, {"tgdf": True})]

    async def test_tagged_input_untagged_first(self, pipeline, dirs, echo_source):
        input_dir, _ = dirs
        path = write_input(input_dir, "tagged.json", to_tagged({"a": 1, "b": [True]}))

        await pipeline.process_file(path)

        seen, _ = echo_source.scripts["default"].calls[0]
        assert seen == {"a": 1, "b": {"0": True}}

    async def test_single_key_input_passed_as_is(self, pipeline, dirs, echo_source):
        input_dir, _ = dirs
        await pipeline.process_file(write_input(input_dir, "one.json", {"a": 1}))

        seen, _ = echo_source.scripts["default"].calls[0]
        assert seen == {"a": 1}

    async def test_non_mapping_result_wrapped(self, dirs):
        input_dir, output_dir = dirs
        source = InMemorySource(ScriptTier.BUILTIN, [FakeScript("default", lambda i, o: 7)])
        pipeline = FilePipeline(ScriptRegistry(ScriptResolver([source])), input_dir, output_dir)
        path = write_input(input_dir, "n.json", {"x": 1, "y": 2})

        await pipeline.process_file(path)

        _, data = unwrap_response(read_output(pipeline, "n.json"))
        assert data["result"] == 7

    async def test_creates_output_directory(self, pipeline, dirs):
        input_dir, output_dir = dirs
        path = write_input(input_dir, "a.json", {"k": 1, "v": 2})
        assert not output_dir.exists()

        await pipeline.process_file(path)

        assert (output_dir / "a.json").exists()

    async def test_no_temp_files_left(self, pipeline, dirs):
        input_dir, output_dir = dirs
        await pipeline.process_file(write_input(input_dir, "a.json", {"k": 1, "v": 2}))
        assert sorted(p.name for p in output_dir.iterdir()) == ["a.json"]

    async def test_builtin_default_script(self, dirs, tmp_path):
        input_dir, output_dir = dirs
        registry = ScriptRegistry(ScriptResolver.from_directories(tmp_path / "none", PACKAGED_BUILTIN_DIR))
        pipeline = FilePipeline(registry, input_dir, output_dir)
        path = write_input(input_dir, "d.json", {"a": 1, "b": 2})

        assert await pipeline.process_file(path) is ProcessOutcome.PROCESSED

        _, data = unwrap_response(read_output(pipeline, "d.json"))
        assert data["originalData"] == {"a": 1, "b": 2}
        assert data["message"] == 'Processed {"a": 1, "b": 2}'


# =============================================================================
# Test: Idempotence
# =============================================================================


@pytest.mark.unit
class TestIdempotence:
    """Unchanged inputs are not rewritten."""

    async def test_second_run_skipped(self, pipeline, dirs, echo_source):
        input_dir, output_dir = dirs
        path = write_input(input_dir, "job.json", {"a": 1, "b": 2})

        assert await pipeline.process_file(path) is ProcessOutcome.PROCESSED
        first_mtime = (output_dir / "job.json").stat().st_mtime_ns

        assert await pipeline.process_file(path) is ProcessOutcome.SKIPPED
        assert (output_dir / "job.json").stat().st_mtime_ns == first_mtime
        assert len(echo_source.scripts["default"].calls) == 1

    async def test_modified_input_reprocessed(self, pipeline, dirs):
        input_dir, _ = dirs
        path = write_input(input_dir, "job.json", {"a": 1, "b": 2})
        await pipeline.process_file(path)

        stats = path.stat()
        os.utime(path, ns=(stats.st_atime_ns, stats.st_mtime_ns + 5_000_000_000))

        assert await pipeline.process_file(path) is ProcessOutcome.PROCESSED

    async def test_unreadable_output_reprocessed(self, pipeline, dirs):
        input_dir, output_dir = dirs
        path = write_input(input_dir, "job.json", {"a": 1, "b": 2})
        output_dir.mkdir()
        (output_dir / "job.json").write_text("{not json", encoding="utf-8")

        assert await pipeline.process_file(path) is ProcessOutcome.PROCESSED

    async def test_output_check_bounded_by_io_deadline(self, dirs, echo_source, monkeypatch):
        input_dir, output_dir = dirs
        registry = ScriptRegistry(ScriptResolver([echo_source]))
        pipeline = FilePipeline(registry, input_dir, output_dir, io_timeout=0.05)
        path = write_input(input_dir, "job.json", {"a": 1, "b": 2})
        assert await pipeline.process_file(path) is ProcessOutcome.PROCESSED

        read_existing = file_pipeline._read_existing_json

        def stalled_read(out_path):
            time.sleep(0.5)
            return read_existing(out_path)

        monkeypatch.setattr(file_pipeline, "_read_existing_json", stalled_read)

        started = time.monotonic()
        assert await pipeline.is_already_processed(path, source_timestamp(path)) is False
        assert time.monotonic() - started < 0.4

    async def test_output_check_reads_current_output(self, pipeline, dirs):
        input_dir, _ = dirs
        path = write_input(input_dir, "job.json", {"a": 1, "b": 2})
        assert await pipeline.is_already_processed(path, source_timestamp(path)) is False

        await pipeline.process_file(path)

        assert await pipeline.is_already_processed(path, source_timestamp(path)) is True

    def test_provenance_top_level(self):
        assert recorded_provenance({INPUT_FILE_NAME: "a.json", INPUT_FILE_DATE: "t"}) == ("a.json", "t")

    def test_provenance_inside_tagged_data(self):
        output = {
            "response": {
                "version": "v0.1.0",
                "data": {
                    "object": {
                        INPUT_FILE_NAME: {"text": "a.json"},
                        INPUT_FILE_DATE: {"instant": "2024-01-01T00:00:00.000Z"},
                    }
                },
            }
        }
        assert recorded_provenance(output) == ("a.json", "2024-01-01T00:00:00.000Z")

    def test_provenance_absent(self):
        assert recorded_provenance({"response": {}}) == (None, None)
        assert recorded_provenance([1]) == (None, None)


# =============================================================================
# Test: Failures
# =============================================================================


@pytest.mark.unit
class TestFailures:
    """Errors are logged and the file is left unprocessed."""

    async def test_invalid_json(self, pipeline, dirs):
        input_dir, output_dir = dirs
        path = input_dir / "bad.json"
        path.write_text("{oops", encoding="utf-8")

        assert await pipeline.process_file(path) is ProcessOutcome.FAILED
        assert not (output_dir / "bad.json").exists()

    async def test_missing_file(self, pipeline, dirs):
        input_dir, _ = dirs
        assert await pipeline.process_file(input_dir / "gone.json") is ProcessOutcome.FAILED

    async def test_script_failure(self, dirs):
        input_dir, output_dir = dirs

        def explode(input, options):
            raise RuntimeError("boom")

        source = InMemorySource(ScriptTier.BUILTIN, [FakeScript("default", explode)])
        pipeline = FilePipeline(ScriptRegistry(ScriptResolver([source])), input_dir, output_dir)
        path = write_input(input_dir, "job.json", {"a": 1, "b": 2})

        assert await pipeline.process_file(path) is ProcessOutcome.FAILED
        assert not (output_dir / "job.json").exists()

    async def test_missing_script(self, dirs):
        input_dir, output_dir = dirs
        pipeline = FilePipeline(
            ScriptRegistry(ScriptResolver([InMemorySource(ScriptTier.BUILTIN)])),
            input_dir,
            output_dir,
        )
        path = write_input(input_dir, "job.json", {"a": 1, "b": 2})

        assert await pipeline.process_file(path) is ProcessOutcome.FAILED

    def test_ensure_directories(self, pipeline, dirs):
        _, output_dir = dirs
        pipeline.ensure_directories()
        assert output_dir.is_dir()
