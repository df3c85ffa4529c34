"""Script registry: resolution, caching, execution and documentation.

Usage:
    from heartwood.services.scripts import ScriptRegistry, ScriptResolver

    resolver = ScriptResolver.from_directories(Path("custom"), builtin_dir)
    registry = ScriptRegistry(resolver, timeout=30.0)
    result = await registry.execute("default", {"a": 1})
"""

from .sources import (
    ENTRYPOINT_NAME,
    SCRIPT_SUFFIX,
    ScriptTier,
    ScriptPlugin,
    ScriptSource,
    ModuleScript,
    DirectorySource,
    ScriptResolver,
)

from .info import (
    validate_script_info,
    default_script_info,
)

from .registry import (
    LoadedScript,
    ScriptRegistry,
    check_script_name,
    create_registry,
)

from .docs import (
    generate_script_doc,
    generate_all_docs,
    generate_docs_index,
    write_docs,
)

__all__ = [
    # Sources
    "ENTRYPOINT_NAME",
    "SCRIPT_SUFFIX",
    "ScriptTier",
    "ScriptPlugin",
    "ScriptSource",
    "ModuleScript",
    "DirectorySource",
    "ScriptResolver",
    # Info
    "validate_script_info",
    "default_script_info",
    # Registry
    "LoadedScript",
    "ScriptRegistry",
    "check_script_name",
    "create_registry",
    # Docs
    "generate_script_doc",
    "generate_all_docs",
    "generate_docs_index",
    "write_docs",
]
