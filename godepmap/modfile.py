from __future__ import annotations

from pathlib import Path
from typing import Union

__all__ = ["ModuleFileError", "read_module_name"]

MODULE_DIRECTIVE = "module "


class ModuleFileError(ValueError):
    """The go.mod file is unreadable or declares no module."""


def read_module_name(path: Union[str, Path]) -> str:
    """
    Return the module path declared in a go.mod file.

    The first line starting with ``module `` wins. A trailing ``//`` comment
    is dropped, and so are the double quotes go.mod allows around the path.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ModuleFileError(f"failed to read go.mod: {exc}") from exc

    for line in text.splitlines():
        if line.startswith(MODULE_DIRECTIVE):
            name = line[len(MODULE_DIRECTIVE):].split("//", 1)[0].strip().strip('"')
            if name:
                return name
            break

    raise ModuleFileError(f"failed to get module name from {path}")
