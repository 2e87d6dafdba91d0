# godepmap/renderer.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, FrozenSet, List, Optional, Sequence

from .graph import DependencyGraph
from .resolver import Package

__all__ = [
    "IgnoreRules",
    "NodeStyle",
    "DEFAULT_STYLES",
    "classify",
    "NodeIds",
    "RendererConfig",
    "build_dot",
    "write_svg",
]

DEFAULT_DOCS_URL = "https://godoc.org/"


@dataclass
class IgnoreRules:
    """
    Decides which packages are left out of the rendered graph.

    only_prefixes:
        If non-empty, packages matching none of these prefixes are ignored.
    ignored:
        Exact import paths to ignore.
    ignored_prefixes:
        Packages under any of these prefixes are ignored.

    An ignored package gets no node and no incoming edges.
    """

    only_prefixes: Sequence[str] = ()
    ignored: FrozenSet[str] = frozenset({"C"})
    ignored_prefixes: Sequence[str] = ()

    def is_ignored(self, import_path: str) -> bool:
        if self.only_prefixes and not _has_prefix(import_path, self.only_prefixes):
            return True
        return import_path in self.ignored or _has_prefix(import_path, self.ignored_prefixes)


def _has_prefix(s: str, prefixes: Sequence[str]) -> bool:
    return any(s.startswith(p) for p in prefixes)


def is_vendored(import_path: str) -> bool:
    return "/vendor/" in import_path


@dataclass(frozen=True)
class NodeStyle:
    """One styling rule: the first rule whose `matches` returns True is used."""

    name: str
    color: str
    matches: Callable[[Package, DependencyGraph], bool]


# Order matters: a cgo package inside the standard library is styled as
# standard, a vendored package that failed to build is styled as vendored.
DEFAULT_STYLES: List[NodeStyle] = [
    NodeStyle("standard", "palegreen", lambda pkg, graph: pkg.standard),
    NodeStyle("cgo", "darkgoldenrod1", lambda pkg, graph: pkg.uses_cgo),
    NodeStyle("vendored", "palegoldenrod", lambda pkg, graph: is_vendored(pkg.import_path)),
    NodeStyle("errored", "red", lambda pkg, graph: graph.has_errors(pkg.import_path)),
    NodeStyle("default", "paleturquoise", lambda pkg, graph: True),
]


def classify(
    package: Package,
    graph: DependencyGraph,
    styles: Sequence[NodeStyle] = DEFAULT_STYLES,
) -> NodeStyle:
    for style in styles:
        if style.matches(package, graph):
            return style
    raise ValueError(f"No style matches package {package.import_path}")


class NodeIds:
    """Memoized DOT node identifiers, one per import path."""

    def __init__(self) -> None:
        self._ids: Dict[str, str] = {}

    def get(self, import_path: str) -> str:
        node_id = self._ids.get(import_path)
        if node_id is None:
            node_id = _derive_node_id(import_path)
            self._ids[import_path] = node_id
        return node_id

    def __len__(self) -> int:
        return len(self._ids)


def _derive_node_id(import_path: str) -> str:
    return f'"{_sanitize_id(import_path)}"'


@dataclass
class RendererConfig:
    """
    Controls how a `DependencyGraph` is turned into DOT.

    ignore:
        Packages to leave out, see :class:`IgnoreRules`.
    docs_url:
        Base URL; each node links to ``docs_url + import_path``.
    styles:
        Ordered styling rules, first match wins.
    graph_name:
        Name of the emitted digraph.
    """

    ignore: IgnoreRules = field(default_factory=IgnoreRules)
    docs_url: str = DEFAULT_DOCS_URL
    styles: Sequence[NodeStyle] = field(default_factory=lambda: list(DEFAULT_STYLES))
    graph_name: str = "godep"


def package_docs_url(import_path: str, base: str = DEFAULT_DOCS_URL) -> str:
    return base + import_path


def build_dot(
    graph: DependencyGraph,
    config: Optional[RendererConfig] = None,
    ids: Optional[NodeIds] = None,
) -> str:
    """
    Build a Graphviz DOT string from a finished traversal.

    This is a pure function: it neither resolves packages nor mutates the
    graph, so rendering the same graph twice gives identical output.
    Pass `ids` to share one identifier cache between several renders.
    """
    if config is None:
        config = RendererConfig()
    if ids is None:
        ids = NodeIds()
    ignore = config.ignore

    lines: List[str] = []
    lines.append(f"digraph {config.graph_name} {{")
    lines.append("splines=ortho")
    lines.append("nodesep=0.4")
    lines.append("ranksep=0.8")
    lines.append('node [shape="box",style="rounded,filled"]')
    lines.append('edge [arrowsize="0.5"]')

    edges: List[str] = []
    for import_path in graph.sorted_paths():
        pkg = graph.packages[import_path]
        if ignore.is_ignored(pkg.import_path):
            continue

        pkg_id = ids.get(import_path)
        style = classify(pkg, graph, config.styles)
        lines.append(
            f'{pkg_id} [label="{_escape_label(import_path)}" color="{style.color}" '
            f'URL="{_escape_label(package_docs_url(import_path, config.docs_url))}" target="_blank"];'
        )

        # Imports of standard library packages were never walked.
        if pkg.standard:
            continue

        for imp in pkg.unique_imports():
            imp_pkg = graph.packages.get(imp)
            if imp_pkg is None or ignore.is_ignored(imp_pkg.import_path):
                continue
            edges.append(f"{pkg_id} -> {ids.get(imp)};")

    lines.extend(edges)
    lines.append("}")
    return "\n".join(lines) + "\n"


def write_svg(dot: str, output: Path) -> None:  # pragma: no cover
    """
    Render a DOT string to an SVG file using the `graphviz` package.

    This requires the Graphviz `dot` binary to be installed on the system.
    """
    from graphviz import Source

    src = Source(dot)
    svg_bytes = src.pipe(format="svg")
    output.write_bytes(svg_bytes)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _escape_label(text: str) -> str:
    """
    Escape a label string for use in DOT.

    - backslashes and quotes are escaped
    - newlines become `\\l` (Graphviz left-justified line break)
    """
    text = text.replace("\\", "\\\\").replace('"', '\\"')
    text = text.replace("\n", "\\l")
    return text


def _sanitize_id(s: str) -> str:
    """
    Sanitize an identifier for use in DOT.

    Since we always quote IDs, this only needs to escape quotes.
    """
    return s.replace('"', '\\"')
