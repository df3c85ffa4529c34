"""Markdown documentation generated from script descriptors."""

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

from heartwood.services.errors import HeartwoodError
from heartwood.services.scripts.registry import ScriptRegistry

logger = logging.getLogger(__name__)


def _properties_table(properties: Mapping[str, Any], required: list[str] | None = None) -> str:
    with_required = required is not None
    if with_required:
        lines = [
            "| Property | Type | Required | Description |",
            "|----------|------|----------|-------------|",
        ]
    else:
        lines = [
            "| Property | Type | Description |",
            "|----------|------|-------------|",
        ]

    for prop_name, prop_schema in properties.items():
        prop_schema = prop_schema if isinstance(prop_schema, Mapping) else {}
        prop_type = prop_schema.get("type", "any")
        description = prop_schema.get("description", "")
        if with_required:
            flag = "Yes" if prop_name in required else "No"
            lines.append(f"| `{prop_name}` | `{prop_type}` | {flag} | {description} |")
        else:
            lines.append(f"| `{prop_name}` | `{prop_type}` | {description} |")

    return "\n".join(lines) + "\n\n"


def generate_script_doc(name: str, info: Optional[Mapping[str, Any]], tier: str) -> str:
    """Render one script's descriptor as Markdown.

    Args:
        name: Script name (used as the title)
        info: Script descriptor (may be None)
        tier: "builtin" or "custom"

    Returns:
        Markdown document
    """
    if not info:
        return f"# {name}\n\nNo documentation available."

    doc = f"# {name}\n\n"

    if info.get("description"):
        doc += f"{info['description']}\n\n"

    doc += f"**Type:** {tier}\n\n"

    doc += "## Input\n\n"
    input_schema = info.get("input")
    if isinstance(input_schema, Mapping):
        if input_schema.get("description"):
            doc += f"{input_schema['description']}\n\n"
        if isinstance(input_schema.get("properties"), Mapping):
            doc += "### Properties\n\n"
            doc += _properties_table(input_schema["properties"], list(input_schema.get("required") or []))
    else:
        doc += "No input schema specified.\n\n"

    options = info.get("options")
    if isinstance(options, Mapping) and options:
        doc += "## Options\n\n"
        doc += "| Option | Type | Default | Description |\n"
        doc += "|--------|------|---------|-------------|\n"
        for opt_name, opt_schema in options.items():
            opt_schema = opt_schema if isinstance(opt_schema, Mapping) else {}
            opt_type = opt_schema.get("type", "any")
            description = opt_schema.get("description", "")
            default = f"`{opt_schema['default']}`" if "default" in opt_schema else ""
            doc += f"| `{opt_name}` | `{opt_type}` | {default} | {description} |\n"
        doc += "\n"

    doc += "## Output\n\n"
    output_schema = info.get("output")
    if isinstance(output_schema, Mapping):
        if output_schema.get("description"):
            doc += f"{output_schema['description']}\n\n"
        if isinstance(output_schema.get("properties"), Mapping):
            doc += "### Properties\n\n"
            doc += _properties_table(output_schema["properties"])
    else:
        doc += "No output schema specified.\n\n"

    return doc


def generate_all_docs(registry: ScriptRegistry) -> dict[str, str]:
    """Render docs for every listed script.

    A script that fails to load gets an error page instead of aborting
    the whole run.
    """
    docs: dict[str, str] = {}
    for names in registry.list().values():
        for name in names:
            try:
                loaded = registry.load(name)
                docs[name] = generate_script_doc(name, loaded.info, loaded.tier.value)
            except HeartwoodError as e:
                logger.error(f"Error generating docs for {name}: {e.details or e.message}")
                docs[name] = f"# {name}\n\nError generating documentation: {e.details or e.message}"
    return docs


def generate_docs_index(docs: Mapping[str, str]) -> str:
    """Markdown index linking each script page."""
    index = "# Script Documentation\n\n"
    index += "## Available Scripts\n\n"
    for name in sorted(docs):
        index += f"- [{name}]({name}.md)\n"
    return index


def write_docs(registry: ScriptRegistry, output_dir: Path) -> list[Path]:
    """Write one Markdown file per script plus ``index.md``.

    Returns:
        Paths of the written files
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    docs = generate_all_docs(registry)

    written = []
    for name, doc in docs.items():
        path = output_dir / f"{name}.md"
        path.write_text(doc, encoding="utf-8")
        written.append(path)

    index_path = output_dir / "index.md"
    index_path.write_text(generate_docs_index(docs), encoding="utf-8")
    written.append(index_path)

    logger.info(f"Wrote {len(written)} documentation files to {output_dir}")
    return written
