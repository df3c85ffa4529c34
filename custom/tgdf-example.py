"""Example script exercising the TGDF codec operations."""

from heartwood.services.tgdf import TgdfOptions, ensure_tagged, from_tagged, is_tagged, to_tagged

info = {
    "description": (
        "Example script demonstrating TGDF transformations, conversions, and operations. "
        "Use this script as a reference for working with TGDF format data."
    ),
    "input": {
        "type": "object",
        "description": "Any data structure to convert or manipulate using TGDF.",
    },
    "options": {
        "operation": {
            "type": "string",
            "enum": ["convert", "extract", "detect", "ensure"],
            "default": "convert",
            "description": (
                "The TGDF operation to perform. 'convert' transforms input to TGDF format, "
                "'extract' transforms from TGDF to regular format, 'detect' checks if input "
                "is TGDF format, and 'ensure' converts to TGDF only if not already in that format."
            ),
        },
        "deep": {
            "type": "boolean",
            "default": True,
            "description": "Whether to process nested objects and arrays recursively.",
        },
        "preserveArrays": {
            "type": "boolean",
            "default": False,
            "description": "Whether to keep arrays as lists instead of index-keyed objects.",
        },
    },
    "output": {
        "type": "object",
        "description": "Result of the specified TGDF operation.",
    },
}


def run(input, options=None):
    options = options or {}
    operation = options.get("operation", "convert")
    conversion = TgdfOptions(
        deep=options.get("deep", True),
        preserve_arrays=options.get("preserveArrays", False),
    )

    if operation == "convert":
        return {
            "result": to_tagged(input, conversion),
            "operation": "convert",
            "description": "Converted input data to TGDF format",
        }
    if operation == "extract":
        return {
            "result": from_tagged(input, conversion),
            "operation": "extract",
            "description": "Extracted data from TGDF format to regular format",
        }
    if operation == "detect":
        return {
            "result": is_tagged(input),
            "operation": "detect",
            "description": "Checked if input data is in TGDF format",
        }
    if operation == "ensure":
        return {
            "result": ensure_tagged(input, conversion),
            "operation": "ensure",
            "description": "Ensured data is in TGDF format (converted only if needed)",
        }

    raise ValueError(f"Unsupported operation: {operation}")
