"""Tests for Markdown documentation generation."""

import pytest

from heartwood.services.scripts import (
    ScriptRegistry,
    ScriptResolver,
    ScriptTier,
    generate_all_docs,
    generate_docs_index,
    generate_script_doc,
    write_docs,
)
from heartwood.services.tests.fakes import FakeScript, InMemorySource, write_script

INFO = {
    "description": "Lists files",
    "input": {
        "type": "object",
        "description": "Directory to list",
        "properties": {"dirpath": {"type": "string", "description": "Path"}},
        "required": ["dirpath"],
    },
    "options": {
        "recursive": {"type": "boolean", "default": False, "description": "Descend"},
    },
    "output": {
        "type": "object",
        "properties": {"files": {"type": "array", "description": "Entries"}},
    },
}


@pytest.mark.unit
class TestGenerateScriptDoc:
    """One Markdown page per descriptor."""

    def test_full_descriptor(self):
        doc = generate_script_doc("dircontents", INFO, "custom")

        assert doc.startswith("# dircontents\n\nLists files\n\n**Type:** custom\n\n")
        assert "## Input\n\nDirectory to list\n\n### Properties\n\n" in doc
        assert "| `dirpath` | `string` | Yes | Path |" in doc
        assert "| `recursive` | `boolean` | `False` | Descend |" in doc
        assert "| `files` | `array` | Entries |" in doc

    def test_no_info(self):
        assert generate_script_doc("bare", None, "builtin") == "# bare\n\nNo documentation available."

    def test_missing_sections(self):
        doc = generate_script_doc("partial", {"description": "x"}, "builtin")
        assert "No input schema specified." in doc
        assert "No output schema specified." in doc
        assert "## Options" not in doc


@pytest.mark.unit
class TestGenerateAllDocs:
    """Docs for every listed script."""

    def test_all_scripts(self):
        registry = ScriptRegistry(
            ScriptResolver(
                [
                    InMemorySource(ScriptTier.CUSTOM, [FakeScript("dircontents", info=INFO)]),
                    InMemorySource(ScriptTier.BUILTIN, [FakeScript("default")]),
                ]
            )
        )
        docs = generate_all_docs(registry)

        assert set(docs) == {"dircontents", "default"}
        assert "Default info for default script" in docs["default"]
        assert "**Type:** builtin" in docs["default"]

    def test_load_failure_becomes_error_page(self, script_dirs):
        custom, builtin = script_dirs
        write_script(custom, "broken", "raise RuntimeError('boom')\n")
        registry = ScriptRegistry(ScriptResolver.from_directories(custom, builtin))

        docs = generate_all_docs(registry)

        assert docs["broken"].startswith("# broken\n\nError generating documentation: Failed to load script")

    def test_index(self):
        index = generate_docs_index({"b": "", "a": ""})
        assert index == "# Script Documentation\n\n## Available Scripts\n\n- [a](a.md)\n- [b](b.md)\n"

    def test_write_docs(self, tmp_path):
        registry = ScriptRegistry(
            ScriptResolver([InMemorySource(ScriptTier.BUILTIN, [FakeScript("default")])])
        )
        written = write_docs(registry, tmp_path / "docs")

        assert [path.name for path in written] == ["default.md", "index.md"]
        assert (tmp_path / "docs" / "default.md").read_text(encoding="utf-8").startswith("# default")
