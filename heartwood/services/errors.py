"""Error taxonomy shared by the registry, the API and the file pipeline.

Each error carries the HTTP status it maps to at the route boundary.
"""

from typing import Any, Optional, Sequence


class HeartwoodError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        details: Optional[str] = None,
        validation: Optional[list[str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details
        self.validation = validation

    def to_payload(self) -> dict[str, Any]:
        """Error body: ``{error, statusCode, details?, validation?}``."""
        payload: dict[str, Any] = {"error": self.message, "statusCode": self.status_code}
        if self.details:
            payload["details"] = self.details
        if self.validation:
            payload["validation"] = list(self.validation)
        return payload


class ScriptValidationError(HeartwoodError):
    """Input or options failed the script's schema check."""

    status_code = 400

    def __init__(self, errors: Sequence[str]):
        super().__init__("Input validation failed", validation=list(errors))


class InvalidScriptNameError(HeartwoodError):
    """Script name contains path separators."""

    status_code = 400

    def __init__(self, name: str):
        super().__init__("Invalid script name: Path separators are not allowed")
        self.name = name


class EnvelopeError(HeartwoodError):
    """Request body is missing or malformed."""

    status_code = 400


class ScriptNotFoundError(HeartwoodError):
    """Script name resolved in none of the searched locations."""

    status_code = 404

    def __init__(self, name: str, searched: Sequence[tuple[str, str]]):
        locations = "\n".join(f"- {tier.capitalize()} directory: {path}" for tier, path in searched)
        super().__init__(f'Script "{name}" not found. Looked in:\n{locations}')
        self.name = name
        self.searched = list(searched)


class ScriptLoadError(HeartwoodError):
    """Script file exists but failed to import."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__("Script loading or execution failed", details=message)


class InvalidScriptError(HeartwoodError):
    """Loaded script does not expose a callable entrypoint."""

    status_code = 500

    def __init__(self, name: str):
        detail = f'Script "{name}" does not export a callable run()'
        super().__init__("Script loading or execution failed", details=detail)
        self.name = name


class ScriptExecutionError(HeartwoodError):
    """Script raised while running."""

    status_code = 500

    def __init__(self, name: str, cause: str):
        super().__init__("Script loading or execution failed", details=cause)
        self.name = name


class ScriptTimeoutError(ScriptExecutionError):
    """Script did not finish before its deadline."""

    status_code = 504
