"""Copy files to the locations proposed by a ``file_change_manifest``."""

import shutil
from datetime import datetime, timezone
from pathlib import Path

info = {
    "description": (
        "Executes file operations based on a provided file_change_manifest, copying files "
        "from their existing locations to proposed locations. Supports a dry run mode to "
        "simulate operations without making changes."
    ),
    "input": {
        "type": "object",
        "properties": {
            "type": {"type": "string", "enum": ["file_change_manifest"]},
            "files": {"type": "array", "description": "Entries with existing and proposed fullpath"},
        },
        "required": ["type", "files"],
    },
    "options": {
        "dryRun": {
            "type": "boolean",
            "description": "If true, simulates the file operations without making any changes.",
        },
    },
    "output": {
        "type": "object",
        "properties": {
            "type": {"type": "string", "description": 'Always "file_move_summary"'},
            "dryRun": {"type": "boolean"},
            "timestamp": {"type": "string", "description": "When the manifest was executed"},
            "summary": {"type": "object", "description": "Counts of success, error and skipped entries"},
            "results": {"type": "array", "description": "Per-file status and message"},
        },
    },
}


def run(input, options=None):
    options = options or {}
    if not isinstance(input, dict):
        raise ValueError("Input must be an object")
    if input.get("type") != "file_change_manifest":
        raise ValueError('Input must have type "file_change_manifest"')
    if not isinstance(input.get("files"), list):
        raise ValueError('Input must have a "files" array')

    dry_run = bool(options.get("dryRun", False))
    results = []
    counts = {"success": 0, "error": 0, "skipped": 0}

    for entry in input["files"]:
        existing_path = (entry.get("existing") or {}).get("fullpath")
        proposed_path = (entry.get("proposed") or {}).get("fullpath")

        if not proposed_path:
            results.append({"existing": existing_path, "status": "skipped", "message": "No proposed path"})
            counts["skipped"] += 1
            continue

        source = Path(existing_path or "")
        target = Path(proposed_path)
        if not source.is_file():
            results.append(
                {
                    "existing": existing_path,
                    "proposed": proposed_path,
                    "status": "error",
                    "message": f"Source file not found: {existing_path}",
                }
            )
            counts["error"] += 1
            continue

        if dry_run:
            message = f"Would copy to {proposed_path}"
        else:
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(source, target)
            except OSError as e:
                results.append(
                    {
                        "existing": existing_path,
                        "proposed": proposed_path,
                        "status": "error",
                        "message": f"Failed to copy: {e}",
                    }
                )
                counts["error"] += 1
                continue
            message = f"Copied to {proposed_path}"

        results.append(
            {"existing": existing_path, "proposed": proposed_path, "status": "success", "message": message}
        )
        counts["success"] += 1

    return {
        "type": "file_move_summary",
        "dryRun": dry_run,
        "timestamp": datetime.now(timezone.utc),
        "summary": {"total": len(input["files"]), **counts},
        "results": results,
    }
