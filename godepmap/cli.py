# godepmap/cli.py
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List

from .graph import MAX_DEPTH, DependencyGraph, TraversalConfig, TraversalError, discover_packages
from .modfile import ModuleFileError, read_module_name
from .renderer import IgnoreRules, RendererConfig, build_dot, write_svg
from .resolver import GoListResolver, ResolverConfig

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="godepmap",
        description=(
            "Walk the import graph of a Go module's packages and print it as "
            "Graphviz DOT."
        ),
    )
    parser.add_argument(
        "package",
        nargs="?",
        default="./",
        help="Package to start from, resolved from the current directory (default: ./).",
    )
    parser.add_argument(
        "-p",
        "--gomodpath",
        default="./go.mod",
        help="Path to the go.mod file (default: ./go.mod).",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug output on stderr.",
    )

    # Resolution / traversal options
    parser.add_argument(
        "--tags",
        type=str,
        default="",
        help="Comma-separated build tags passed to 'go list'.",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=MAX_DEPTH,
        help=f"Maximum import depth to follow (default: {MAX_DEPTH}).",
    )
    parser.add_argument(
        "--keep-going",
        action="store_true",
        help="Record packages that fail to resolve instead of aborting.",
    )
    parser.add_argument(
        "--all",
        dest="scope_to_module",
        action="store_false",
        help="Also record packages outside the module (standard library, third party).",
    )

    # Filtering options
    parser.add_argument(
        "--ignore",
        action="append",
        default=[],
        metavar="PKG",
        help="Leave out this exact import path. May be repeated.",
    )
    parser.add_argument(
        "--ignore-prefix",
        action="append",
        default=[],
        metavar="PREFIX",
        help="Leave out packages under this prefix. May be repeated.",
    )
    parser.add_argument(
        "--only-prefix",
        action="append",
        default=[],
        metavar="PREFIX",
        help="Only keep packages under this prefix. May be repeated.",
    )

    # Output options
    parser.add_argument(
        "--docs-url",
        default=None,
        help="Base URL for node links (default: https://godoc.org/).",
    )
    parser.add_argument(
        "--format",
        choices=("dot", "svg", "json"),
        default="dot",
        help="Output format: 'dot' (Graphviz DOT), 'svg' (rendered SVG) or 'json'. Default: dot.",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        help="Output file path. DOT and JSON go to stdout when omitted; SVG defaults to godepmap.svg.",
    )

    return parser


def main(argv: Any | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        module_name = read_module_name(args.gomodpath)
        logger.debug("module name: %s", module_name)

        resolver = GoListResolver(ResolverConfig(build_tags=_split_csv(args.tags)))
        traversal_cfg = TraversalConfig(
            module_name=module_name,
            stop_on_error=not args.keep_going,
            max_depth=args.max_depth,
            scope_to_module=args.scope_to_module,
        )
        graph = discover_packages(os.getcwd(), args.package, resolver, traversal_cfg)
    except (ModuleFileError, TraversalError) as exc:
        print(f"godepmap: error: {exc}", file=sys.stderr)
        return 1

    if graph.truncated:
        logger.debug("depth ceiling cut off %d package(s)", len(graph.truncated))

    if args.format == "json":
        _emit(json.dumps(_graph_to_jsonable(graph), indent=2, ensure_ascii=False) + "\n", args.output)
        return 0

    renderer_cfg = RendererConfig(
        ignore=IgnoreRules(
            only_prefixes=tuple(args.only_prefix),
            ignored=IgnoreRules().ignored | frozenset(args.ignore),
            ignored_prefixes=tuple(args.ignore_prefix),
        ),
    )
    if args.docs_url is not None:
        renderer_cfg.docs_url = args.docs_url

    dot = build_dot(graph, renderer_cfg)

    if args.format == "dot":
        _emit(dot, args.output)
        return 0

    # args.format == "svg"
    output = Path(args.output) if args.output else Path("godepmap.svg")
    write_svg(dot, output)
    print(f"Wrote SVG to {output}", file=sys.stderr)
    return 0


def _split_csv(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def _emit(text: str, output: str | None) -> None:
    if output:
        Path(output).write_text(text, encoding="utf-8")
        return
    sys.stdout.write(text)


def _graph_to_jsonable(graph: DependencyGraph) -> Dict[str, Any]:
    return {
        "packages": [
            {
                "import_path": path,
                "dir": pkg.directory,
                "imports": pkg.unique_imports(),
                "standard": pkg.standard,
                "cgo": pkg.uses_cgo,
                "error": pkg.error,
            }
            for path, pkg in ((p, graph.packages[p]) for p in graph.sorted_paths())
        ],
        "failed": sorted(graph.failed),
        "truncated": sorted(graph.truncated),
    }


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
