from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Set, Tuple, Union

from .resolver import Package, PackageResolver, ResolutionError

__all__ = [
    "MAX_DEPTH",
    "SKIPPED_PACKAGES",
    "TraversalConfig",
    "DependencyGraph",
    "TraversalError",
    "Traverser",
    "discover_packages",
]

logger = logging.getLogger(__name__)

MAX_DEPTH = 256

# "C" is the cgo pseudo-package, there is nothing to resolve.
SKIPPED_PACKAGES: FrozenSet[str] = frozenset({"C"})


@dataclass
class TraversalConfig:
    """
    Configuration controlling how the import graph is discovered.

    Parameters
    ----------
    module_name:
        Module path from go.mod; only packages under it are recorded.
    stop_on_error:
        If True, the first resolution failure aborts the whole traversal.
        Otherwise the failure is remembered and the partial package is used.
    max_depth:
        Recursion ceiling. Packages deeper than this are silently left out
        and listed in `DependencyGraph.truncated`.
    skipped:
        Pseudo-packages that are never resolved.
    scope_to_module:
        If False, packages outside the module (standard library, third
        party) are recorded too. Their imports are still only expanded
        for non-standard packages.
    """

    module_name: str
    stop_on_error: bool = True
    max_depth: int = MAX_DEPTH
    skipped: FrozenSet[str] = SKIPPED_PACKAGES
    scope_to_module: bool = True


@dataclass
class DependencyGraph:
    """
    Everything discovered by one traversal.

    - packages     : import path -> package, first resolution wins
    - failed       : import paths whose resolution errored but were kept
    - truncated    : names skipped because of the depth ceiling
    - out_of_scope : resolved names dropped by the module scope filter
    """

    packages: Dict[str, Package] = field(default_factory=dict)
    failed: Set[str] = field(default_factory=set)
    truncated: Set[str] = field(default_factory=set)
    out_of_scope: Set[str] = field(default_factory=set)

    def sorted_paths(self) -> List[str]:
        return sorted(self.packages)

    def has_errors(self, import_path: str) -> bool:
        return import_path in self.failed


class TraversalError(RuntimeError):
    """A package failed to resolve while errors are fatal."""

    def __init__(self, name: str, level: int, imported_by: str, cause: str) -> None:
        super().__init__(
            f"failed to import {name} (imported at level {level} by {imported_by}):\n{cause}"
        )
        self.name = name
        self.level = level
        self.imported_by = imported_by


class Traverser:
    """
    Depth-first discovery of every package reachable from a root package.

    The traverser owns its `DependencyGraph`; it only ever adds to it, so a
    finished traverser's graph can be handed to the renderer as is.
    """

    def __init__(
        self,
        resolver: PackageResolver,
        config: TraversalConfig,
        graph: Optional[DependencyGraph] = None,
    ) -> None:
        self.resolver = resolver
        self.config = config
        self.graph = graph if graph is not None else DependencyGraph()
        self._root_name: Optional[str] = None

    def discover(
        self,
        root: Union[str, Path],
        package_name: str,
        depth: int = 0,
        imported_by: str = "",
    ) -> None:
        """
        Resolve `package_name` from directory `root`, record it and walk
        its imports depth first.

        The walk keeps its own stack, so `max_depth` is not limited by the
        interpreter's recursion limit. Imports are visited in declaration
        order and an import is skipped if it was recorded by the time it
        comes up.

        Raises :class:`TraversalError` when resolution fails and
        `stop_on_error` is set, or when the resolver returned nothing usable.
        """
        if depth == 0:
            self._root_name = package_name

        pending: List[Tuple[Union[str, Path], str, int, str]] = [
            (root, package_name, depth, imported_by)
        ]
        first = True
        while pending:
            root, name, depth, imported_by = pending.pop()
            if not first and (name in self.graph.packages or name in self.graph.out_of_scope):
                continue
            first = False

            package = self._visit(root, name, depth, imported_by)
            # Nothing recorded, or standard library: its dependencies are not interesting.
            if package is None or package.standard:
                continue

            next_root = package.directory or root
            for imp in reversed(package.unique_imports()):
                pending.append((next_root, imp, depth + 1, package.import_path))

    def _visit(
        self,
        root: Union[str, Path],
        package_name: str,
        depth: int,
        imported_by: str,
    ) -> Optional[Package]:
        """Resolve and record one package; returns it only if newly recorded."""
        level = depth + 1

        if depth >= self.config.max_depth:
            logger.debug("depth ceiling reached at %s (imported by %s)", package_name, imported_by)
            self.graph.truncated.add(package_name)
            return None
        if package_name in self.config.skipped:
            return None

        errored = False
        try:
            package = self.resolver.resolve(package_name, root)
        except ResolutionError as exc:
            if self.config.stop_on_error or exc.package is None:
                raise TraversalError(package_name, level, imported_by, str(exc)) from exc
            logger.debug("continuing after failed import of %s: %s", package_name, exc)
            package = exc.package
            if not package.import_path:
                package.import_path = package_name
            errored = True

        key = package.import_path
        if not self._in_scope(package, depth):
            self.graph.out_of_scope.add(package_name)
            return None
        if key in self.graph.packages:
            return None

        logger.debug(
            "package %s (root=%s, name=%s, imported by=%s)",
            key,
            root,
            package_name,
            imported_by or "-",
        )

        if errored:
            self.graph.failed.add(key)
        self.graph.packages[key] = package
        return package

    def _in_scope(self, package: Package, depth: int) -> bool:
        if depth == 0 or package.import_path == self._root_name:
            return True
        if not self.config.scope_to_module:
            return True
        module = self.config.module_name
        return package.import_path == module or package.import_path.startswith(module + "/")


def discover_packages(
    root: Union[str, Path],
    package_name: str,
    resolver: PackageResolver,
    config: TraversalConfig,
) -> DependencyGraph:
    """Run a fresh traversal and return what it found."""
    traverser = Traverser(resolver, config)
    traverser.discover(root, package_name)
    return traverser.graph
