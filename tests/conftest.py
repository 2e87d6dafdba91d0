from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

from godepmap.resolver import Package, ResolutionError


class FakeResolver:
    """
    In-memory stand-in for ``go list``.

    `packages` maps requested names to packages. Names listed in `errors`
    raise a ResolutionError carrying the package from `packages` (or None).
    """

    def __init__(self, packages: Dict[str, Package], errors: Optional[Dict[str, str]] = None) -> None:
        self.packages = packages
        self.errors = errors or {}
        self.calls: List[Tuple[str, str]] = []

    def resolve(self, name: str, search_root) -> Package:
        self.calls.append((name, str(search_root)))
        pkg = self.packages.get(name)
        if name in self.errors:
            raise ResolutionError(self.errors[name], name, search_root, package=pkg)
        if pkg is None:
            raise ResolutionError(f"cannot find package {name!r}", name, search_root)
        return pkg

    def names(self) -> List[str]:
        return [name for name, _ in self.calls]


def app_packages() -> Dict[str, Package]:
    """example.com/app importing its util package and fmt."""
    return {
        "./": Package(
            import_path="example.com/app",
            directory="/src/app",
            imports=["example.com/app/util", "fmt"],
        ),
        "example.com/app/util": Package(
            import_path="example.com/app/util",
            directory="/src/app/util",
            imports=["strings"],
        ),
        "fmt": Package(import_path="fmt", directory="/goroot/src/fmt", imports=["io", "os"], standard=True),
        "strings": Package(import_path="strings", directory="/goroot/src/strings", standard=True),
    }


@pytest.fixture
def app_resolver() -> FakeResolver:
    return FakeResolver(app_packages())


@pytest.fixture
def fake_resolver_cls():
    return FakeResolver


@pytest.fixture
def go_module(tmp_path: Path, monkeypatch) -> Path:
    """A working directory holding a go.mod for example.com/app."""
    (tmp_path / "go.mod").write_text("module example.com/app\n\ngo 1.21\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def app_package_map() -> Dict[str, Package]:
    return app_packages()
