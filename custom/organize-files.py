"""Plan date-based folders for files from a ``dir_contents`` document.

Without ``contiguousTime`` each file is proposed into ``YYYY-MM-DD``.
With it, files of the same day are split into ``YYYY-MM-DD__NN`` groups
whenever the gap between consecutive modification times reaches the
given number of minutes. Dates are calendar days in UTC.
"""

import math
import posixpath
from datetime import datetime

from heartwood.services.tgdf import parse_instant

info = {
    "description": (
        "Organizes files into date-based folders based on their modification times. "
        "Optionally groups files into YYYY-MM-DD__NN subfolders when their modification "
        "times are within a contiguous time range."
    ),
    "input": {
        "type": "object",
        "properties": {
            "type": {"type": "string", "enum": ["dir_contents"]},
            "files": {"type": "array", "description": "Entries with existing.fullpath and existing.modified"},
        },
        "required": ["files"],
    },
    "options": {
        "contiguousTime": {
            "type": "number",
            "description": "Maximum time difference in minutes between files grouped into the same subfolder.",
        },
    },
    "output": {
        "type": "object",
        "properties": {
            "type": {"type": "string", "description": 'Always "file_change_manifest"'},
            "files": {"type": "array", "description": "Input entries with a proposed location added"},
        },
    },
}


def _modified(entry):
    existing = entry.get("existing") or {}
    if not existing.get("modified"):
        return None
    parsed = parse_instant(existing["modified"])
    return parsed if isinstance(parsed, datetime) else None


def _propose(entry, folder):
    existing = entry["existing"]
    directory = existing.get("directory") or posixpath.dirname(existing.get("fullpath", ""))
    filename = existing.get("filename") or posixpath.basename(existing.get("fullpath", ""))
    entry["proposed"] = {
        "fullpath": posixpath.join(directory, folder, filename),
        "relativepath": posixpath.join(folder, filename),
    }


def run(input, options=None):
    options = options or {}
    if not isinstance(input, dict):
        raise ValueError("Input must be an object")
    if input.get("type") != "dir_contents":
        raise ValueError('Input must have type "dir_contents"')
    if not isinstance(input.get("files"), list):
        raise ValueError('Input must have a "files" array')

    files = [dict(entry) for entry in input["files"]]
    contiguous = options.get("contiguousTime")

    if contiguous:
        if isinstance(contiguous, bool) or not isinstance(contiguous, (int, float)) or contiguous <= 0:
            raise ValueError("contiguousTime must be a positive number")

        by_day = {}
        for entry in files:
            modified = _modified(entry)
            if modified is not None:
                by_day.setdefault(modified.strftime("%Y-%m-%d"), []).append((modified, entry))

        for day, dated in by_day.items():
            dated.sort(key=lambda pair: pair[0])
            counter = 1
            last = None
            for modified, entry in dated:
                if last is not None and (modified - last).total_seconds() / 60 >= contiguous:
                    counter += 1
                last = modified
                _propose(entry, f"{day}__{counter:02d}")
    else:
        for entry in files:
            modified = _modified(entry)
            if modified is not None:
                _propose(entry, modified.strftime("%Y-%m-%d"))

    def sort_key(entry):
        modified = _modified(entry)
        return modified.timestamp() if modified is not None else math.inf

    files.sort(key=sort_key)
    return {**input, "type": "file_change_manifest", "files": files}
