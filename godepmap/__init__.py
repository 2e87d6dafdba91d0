from .resolver import (
    Package,
    ResolutionError,
    PackageResolver,
    ResolverConfig,
    GoListResolver,
)

from .modfile import ModuleFileError, read_module_name

from .graph import (
    MAX_DEPTH,
    TraversalConfig,
    DependencyGraph,
    TraversalError,
    Traverser,
    discover_packages,
)

from .renderer import IgnoreRules, NodeStyle, NodeIds, RendererConfig, build_dot, write_svg

__all__ = [
    "Package",
    "ResolutionError",
    "PackageResolver",
    "ResolverConfig",
    "GoListResolver",
    "ModuleFileError",
    "read_module_name",
    "MAX_DEPTH",
    "TraversalConfig",
    "DependencyGraph",
    "TraversalError",
    "Traverser",
    "discover_packages",
    "IgnoreRules",
    "NodeStyle",
    "NodeIds",
    "RendererConfig",
    "build_dot",
    "write_svg",
]

__version__ = "0.1.0"
