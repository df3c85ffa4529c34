"""Script sources and the ordered resolution strategy.

A source knows how to find a script by name in one location. The
resolver asks its sources in order and the first hit wins, so the
default setup (custom directory, then builtin directory) lets users
override any builtin script by dropping a same-named file in ``custom/``.
"""

import importlib.util
import inspect
import logging
import re
from enum import Enum
from pathlib import Path
from types import ModuleType
from typing import Any, Callable, Optional, Protocol, Sequence, runtime_checkable

from heartwood.services.errors import InvalidScriptError, ScriptLoadError, ScriptNotFoundError

logger = logging.getLogger(__name__)

SCRIPT_SUFFIX = ".py"
ENTRYPOINT_NAME = "run"


class ScriptTier(str, Enum):
    """Lookup tiers, in default search order."""

    CUSTOM = "custom"
    BUILTIN = "builtin"


@runtime_checkable
class ScriptPlugin(Protocol):
    """A runnable script.

    ``entrypoint`` is the callable ``(input, options) -> result`` (a plain
    or coroutine function), or None when the script exposes nothing
    callable.
    """

    name: str

    @property
    def entrypoint(self) -> Optional[Callable[..., Any]]:
        ...

    def invoke(self, input: Any, options: dict[str, Any]) -> Any:
        ...

    def describe(self) -> Optional[dict[str, Any]]:
        ...


@runtime_checkable
class ScriptSource(Protocol):
    """One place scripts can be found."""

    tier: ScriptTier

    def location(self, name: str) -> str:
        ...

    def find(self, name: str) -> Optional[ScriptPlugin]:
        ...

    def names(self) -> list[str]:
        ...


class ModuleScript:
    """Adapts an imported Python module to ``ScriptPlugin``.

    The module must define ``run(input, options)`` and may define an
    ``info`` dict describing its input, options and output.
    """

    def __init__(self, name: str, module: ModuleType, path: Optional[Path] = None):
        self.name = name
        self.module = module
        self.path = path

    @property
    def entrypoint(self) -> Optional[Callable[..., Any]]:
        candidate = getattr(self.module, ENTRYPOINT_NAME, None)
        return candidate if callable(candidate) else None

    @property
    def is_coroutine(self) -> bool:
        return inspect.iscoroutinefunction(self.entrypoint)

    def invoke(self, input: Any, options: dict[str, Any]) -> Any:
        entrypoint = self.entrypoint
        if entrypoint is None:
            raise InvalidScriptError(self.name)
        return entrypoint(input, options)

    def describe(self) -> Optional[dict[str, Any]]:
        info = getattr(self.module, "info", None)
        return info if isinstance(info, dict) else None

    def __repr__(self) -> str:
        return f"ModuleScript(name={self.name!r}, path={str(self.path)!r})"


class DirectorySource:
    """Loads ``<name>.py`` files from a directory."""

    def __init__(self, directory: Path, tier: ScriptTier, suffix: str = SCRIPT_SUFFIX):
        self.directory = Path(directory)
        self.tier = tier
        self.suffix = suffix

    def path_for(self, name: str) -> Path:
        return self.directory / f"{name}{self.suffix}"

    def location(self, name: str) -> str:
        return str(self.path_for(name))

    def find(self, name: str) -> Optional[ScriptPlugin]:
        """Import the named script if its file exists.

        Raises:
            ScriptLoadError: If the file exists but fails to import
        """
        path = self.path_for(name)
        if not path.is_file():
            return None

        module_name = f"heartwood_scripts.{self.tier.value}.{re.sub(r'[^0-9a-zA-Z_]', '_', name)}"
        try:
            spec = importlib.util.spec_from_file_location(module_name, path)
            if spec is None or spec.loader is None:
                raise ImportError(f"cannot create import spec for {path}")
            module = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(module)
        except Exception as e:
            raise ScriptLoadError(
                f"Failed to load script from {self.tier.value} directory ({path}): {e}"
            ) from e

        logger.debug(f"Loaded script {name} from {path}")
        return ModuleScript(name, module, path)

    def names(self) -> list[str]:
        """List script names in the directory (sorted, no private files)."""
        try:
            entries = list(self.directory.iterdir())
        except OSError as e:
            logger.error(f"Failed to read {self.tier.value} directory {self.directory}: {e}")
            return []

        return sorted(
            entry.name[: -len(self.suffix)]
            for entry in entries
            if entry.is_file() and entry.name.endswith(self.suffix) and not entry.name.startswith("_")
        )

    def __repr__(self) -> str:
        return f"DirectorySource(tier={self.tier.value!r}, directory={str(self.directory)!r})"


class ScriptResolver:
    """Searches an ordered list of sources for a script."""

    def __init__(self, sources: Sequence[ScriptSource]):
        self.sources = list(sources)

    @classmethod
    def from_directories(cls, custom_dir: Path, builtin_dir: Path) -> "ScriptResolver":
        """Standard two-tier setup: custom overrides builtin."""
        return cls(
            [
                DirectorySource(custom_dir, ScriptTier.CUSTOM),
                DirectorySource(builtin_dir, ScriptTier.BUILTIN),
            ]
        )

    def resolve(self, name: str) -> tuple[ScriptSource, ScriptPlugin]:
        """Find the first source that provides ``name``.

        Raises:
            ScriptNotFoundError: If no source has the script
            ScriptLoadError: If the first matching file fails to import
        """
        for source in self.sources:
            plugin = source.find(name)
            if plugin is not None:
                return source, plugin

        searched = [(source.tier.value, source.location(name)) for source in self.sources]
        raise ScriptNotFoundError(name, searched)

    def listing(self) -> dict[str, list[str]]:
        """Script names per tier, builtin first."""
        result: dict[str, list[str]] = {tier.value: [] for tier in (ScriptTier.BUILTIN, ScriptTier.CUSTOM)}
        for source in self.sources:
            result.setdefault(source.tier.value, [])
            for name in source.names():
                if name not in result[source.tier.value]:
                    result[source.tier.value].append(name)
        return result
