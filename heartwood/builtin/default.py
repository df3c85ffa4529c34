"""Default script: echo the input with a processing note.

Used by the file pipeline for every input file and callable over HTTP
as ``POST /api/default``.
"""

import json
from datetime import datetime, timezone

from heartwood.services.tgdf import json_default

info = {
    "description": "Echoes its input back with a processing message and timestamp.",
    "input": {
        "type": "object",
        "description": "JSON object to process",
    },
    "output": {
        "type": "object",
        "properties": {
            "message": {"type": "string", "description": "Summary of what was processed"},
            "processedAt": {"type": "string", "description": "When the input was processed"},
            "originalData": {"type": "object", "description": "The input, unchanged"},
        },
    },
}


def run(input, options=None):
    return {
        "message": "Processed " + json.dumps(input, default=json_default),
        "processedAt": datetime.now(timezone.utc),
        "originalData": input,
    }
