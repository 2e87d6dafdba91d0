from __future__ import annotations

import json
import logging
import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence, Union

__all__ = [
    "Package",
    "ResolutionError",
    "PackageResolver",
    "ResolverConfig",
    "GoListResolver",
    "package_from_go_list",
]

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass
class Package:
    """
    A single resolved Go package.

    - `import_path` : canonical identifier, used as the graph key
    - `directory`   : where the package lives; its own imports are resolved from here
    - `imports`     : import paths exactly as declared (duplicates and self
                      references are possible, e.g. from external test files)
    - `standard`    : True for packages shipped with the Go toolchain
    - `cgo_files`   : source files that use cgo
    - `error`       : resolver message for best-effort descriptors
    """

    import_path: str
    directory: str = ""
    imports: List[str] = field(default_factory=list)
    standard: bool = False
    cgo_files: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def uses_cgo(self) -> bool:
        return len(self.cgo_files) > 0

    def unique_imports(self) -> List[str]:
        """Imports in declaration order, without self references or repeats."""
        seen = set()
        result: List[str] = []
        for imp in self.imports:
            # foo_test importing foo shows up as a self reference
            if imp == self.import_path or imp in seen:
                continue
            seen.add(imp)
            result.append(imp)
        return result


class ResolutionError(RuntimeError):
    """
    Raised when a package cannot be resolved.

    `package` holds whatever the resolver could still work out about the
    package, or None when nothing usable came back.
    """

    def __init__(
        self,
        message: str,
        name: str,
        search_root: PathLike,
        package: Optional[Package] = None,
    ) -> None:
        super().__init__(message)
        self.name = name
        self.search_root = str(search_root)
        self.package = package


class PackageResolver(Protocol):
    def resolve(self, name: str, search_root: PathLike) -> Package:
        ...


@dataclass
class ResolverConfig:
    """
    Configuration for :class:`GoListResolver`.

    go_binary:
        Executable used to run ``go list``.
    build_tags:
        Extra build constraints passed via ``-tags``.
    env:
        Environment overrides merged on top of ``os.environ``.
    """

    go_binary: str = "go"
    build_tags: Sequence[str] = ()
    env: Dict[str, str] = field(default_factory=dict)


class GoListResolver:
    """Resolve packages by asking the Go toolchain (``go list -e -json``)."""

    def __init__(self, config: Optional[ResolverConfig] = None) -> None:
        self.config = config if config is not None else ResolverConfig()

    def command(self, name: str) -> List[str]:
        cmd = [self.config.go_binary, "list", "-e", "-json"]
        if self.config.build_tags:
            cmd.append("-tags=" + ",".join(self.config.build_tags))
        cmd.append(name)
        return cmd

    def resolve(self, name: str, search_root: PathLike) -> Package:
        if "..." in name:
            # go list would print one object per matching package
            raise ResolutionError(
                f"{name} is a package pattern; name a single package", name, search_root
            )
        cmd = self.command(name)
        logger.debug("running %s in %s", " ".join(cmd), search_root)
        try:
            proc = subprocess.run(
                cmd,
                cwd=str(search_root),
                capture_output=True,
                text=True,
                env={**os.environ, **self.config.env},
            )
        except OSError as exc:
            raise ResolutionError(
                f"cannot run {self.config.go_binary}: {exc}", name, search_root
            ) from exc

        stderr = proc.stderr.strip()
        try:
            data = json.loads(proc.stdout)
        except ValueError:
            message = stderr or f"go list produced no usable output for {name}"
            raise ResolutionError(message, name, search_root) from None

        package = package_from_go_list(data)
        if package.error is not None:
            raise ResolutionError(package.error, name, search_root, package=package)
        if proc.returncode != 0:
            package.error = stderr or f"go list exited with status {proc.returncode}"
            raise ResolutionError(package.error, name, search_root, package=package)
        return package


def package_from_go_list(data: Dict) -> Package:
    """
    Build a :class:`Package` from one ``go list -json`` object.

    Missing list fields are omitted by ``go list``, so everything defaults.
    """
    error = data.get("Error")
    message: Optional[str] = None
    if error:
        message = error.get("Err") if isinstance(error, dict) else str(error)
    return Package(
        import_path=data.get("ImportPath", ""),
        directory=data.get("Dir", ""),
        imports=list(data.get("Imports") or []),
        standard=bool(data.get("Goroot") or data.get("Standard")),
        cgo_files=list(data.get("CgoFiles") or []),
        error=message,
    )
