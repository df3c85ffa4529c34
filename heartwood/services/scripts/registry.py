"""Script registry: load-once cache over a resolver, plus execution.

The registry is created once at startup and handed to the API and the
file pipeline. Loaded scripts stay cached for the life of the process;
editing a script file takes effect after a restart.
"""

import asyncio
import inspect
import logging
from collections.abc import MutableMapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

from heartwood.lib.deadline import DeadlineExceeded, run_with_deadline
from heartwood.services.errors import (
    HeartwoodError,
    InvalidScriptError,
    InvalidScriptNameError,
    ScriptExecutionError,
    ScriptTimeoutError,
)
from heartwood.services.scripts.info import default_script_info, validate_script_info
from heartwood.services.scripts.sources import ScriptPlugin, ScriptResolver, ScriptTier

if TYPE_CHECKING:
    from heartwood.lib.settings import HeartwoodSettings

logger = logging.getLogger(__name__)


@dataclass
class LoadedScript:
    """A resolved script together with its effective descriptor."""

    name: str
    tier: ScriptTier
    plugin: ScriptPlugin
    info: dict[str, Any] = field(default_factory=dict)
    info_is_default: bool = False

    @property
    def input_schema(self) -> Optional[dict[str, Any]]:
        return self.info.get("input")

    @property
    def options_schema(self) -> Optional[dict[str, Any]]:
        return self.info.get("options")


def check_script_name(name: str) -> None:
    """Reject names that could escape the script directories.

    Raises:
        InvalidScriptNameError: If the name contains a path separator
    """
    if "/" in name or "\\" in name:
        raise InvalidScriptNameError(name)


class ScriptRegistry:
    """Resolves, caches and runs scripts.

    Args:
        resolver: Ordered script sources
        cache: Backing map for loaded scripts (a new dict if None)
        timeout: Default execution deadline in seconds (None = no deadline)
    """

    def __init__(
        self,
        resolver: ScriptResolver,
        cache: Optional[MutableMapping[str, LoadedScript]] = None,
        timeout: Optional[float] = None,
    ):
        self.resolver = resolver
        self.cache: MutableMapping[str, LoadedScript] = cache if cache is not None else {}
        self.timeout = timeout
        self._listing: Optional[dict[str, list[str]]] = None

    def load(self, name: str) -> LoadedScript:
        """Return the cached script or resolve and cache it.

        Raises:
            InvalidScriptNameError: If the name contains a path separator
            ScriptNotFoundError: If no source provides the script
            ScriptLoadError: If the script file fails to import
        """
        check_script_name(name)

        cached = self.cache.get(name)
        if cached is not None:
            return cached

        source, plugin = self.resolver.resolve(name)

        info = plugin.describe()
        info_is_default = info is None
        if info is None:
            info = default_script_info(name)
        else:
            validation = validate_script_info(info)
            if not validation.is_valid:
                logger.warning(
                    f'Script "{name}" has invalid info: {"; ".join(validation.errors)}'
                )

        loaded = LoadedScript(
            name=name,
            tier=source.tier,
            plugin=plugin,
            info=info,
            info_is_default=info_is_default,
        )
        self.cache[name] = loaded
        logger.info(f"Registered script {name} from {source.tier.value} tier")
        return loaded

    async def execute(
        self,
        name: str,
        input: Any,
        options: Optional[dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """Load and run a script.

        Coroutine entrypoints are awaited on the event loop; plain
        functions run in a worker thread so they cannot stall it.

        Args:
            name: Script name
            input: Native input value
            options: Options bag (empty dict if None)
            timeout: Deadline override in seconds (registry default if None)

        Returns:
            The script's result

        Raises:
            InvalidScriptError: If the script has no callable entrypoint
            ScriptTimeoutError: If the deadline passes
            ScriptExecutionError: If the script raises
        """
        loaded = self.load(name)
        entrypoint = loaded.plugin.entrypoint
        if entrypoint is None:
            raise InvalidScriptError(name)

        deadline = timeout if timeout is not None else self.timeout
        try:
            return await run_with_deadline(
                self._invoke(loaded, input, options or {}),
                deadline,
                label=f"script {name}",
            )
        except HeartwoodError:
            raise
        except DeadlineExceeded as e:
            raise ScriptTimeoutError(name, str(e)) from e
        except Exception as e:
            logger.error(f"Script {name} failed: {e}", extra={"script_name": name})
            raise ScriptExecutionError(name, str(e)) from e

    async def _invoke(self, loaded: LoadedScript, input: Any, options: dict[str, Any]) -> Any:
        if inspect.iscoroutinefunction(loaded.plugin.entrypoint):
            result = loaded.plugin.invoke(input, options)
        else:
            result = await asyncio.to_thread(loaded.plugin.invoke, input, options)

        if inspect.isawaitable(result):
            result = await result
        return result

    def list(self, refresh: bool = False) -> dict[str, list[str]]:
        """Script names per tier (``{"builtin": [...], "custom": [...]}``).

        The listing is read once and reused; pass ``refresh=True`` to
        re-read the sources.
        """
        if self._listing is None or refresh:
            self._listing = self.resolver.listing()
        return {tier: list(names) for tier, names in self._listing.items()}

    def describe(self, name: str) -> dict[str, Any]:
        """Descriptor of a script (synthesised default if it has none)."""
        return self.load(name).info


def create_registry(settings: "HeartwoodSettings") -> ScriptRegistry:
    """Build the process registry from settings (custom tier first)."""
    resolver = ScriptResolver.from_directories(settings.custom_dir, settings.builtin_dir)
    return ScriptRegistry(resolver, timeout=settings.script_timeout)
