"""List the files of a directory as a ``dir_contents`` document."""

from datetime import datetime, timezone
from pathlib import Path

from heartwood.services.tgdf import format_instant

info = {
    "description": "Lists the files in a directory with their size and modification time.",
    "input": {
        "type": "object",
        "properties": {
            "dirpath": {"type": "string", "description": "Directory to list"},
        },
        "required": ["dirpath"],
    },
    "output": {
        "type": "object",
        "properties": {
            "type": {"type": "string", "description": 'Always "dir_contents"'},
            "files": {"type": "array", "description": "One entry per file, under an existing key"},
        },
    },
}


def run(input, options=None):
    if not isinstance(input, dict):
        raise ValueError('Input must be an object with a "dirpath" property')
    dirpath = input.get("dirpath")
    if not isinstance(dirpath, str):
        raise ValueError('"dirpath" must be a string')

    directory = Path(dirpath).resolve()
    try:
        entries = sorted(entry for entry in directory.iterdir() if entry.is_file())
    except OSError as e:
        raise RuntimeError(f'Failed to read directory "{directory.as_posix()}": {e}') from e

    files = []
    for entry in entries:
        stats = entry.stat()
        files.append(
            {
                "existing": {
                    "filename": entry.name,
                    "extension": entry.suffix,
                    "directory": directory.as_posix(),
                    "fullpath": entry.as_posix(),
                    "filesize": stats.st_size,
                    "modified": format_instant(datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc)),
                }
            }
        )

    return {"type": "dir_contents", "files": files}
