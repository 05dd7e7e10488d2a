from __future__ import annotations

import shutil
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from .store import TemplateStore

LINT_CONFIG_FILES = ("eslintrc.json",)
TAILWIND_CONFIG_FILES = ("tailwind.config.js", "postcss.config.js")

# Names that cannot ship dotted inside the package, and the readme placeholder.
DOTTED_NAMES = ("gitignore", "eslintrc.json")
README_TEMPLATE = "README-template.md"


def copy_exclusions(eslint: bool, tailwind: bool) -> set[str]:
    excluded: set[str] = set()
    if not eslint:
        excluded.update(LINT_CONFIG_FILES)
    if not tailwind:
        excluded.update(TAILWIND_CONFIG_FILES)
    return excluded


def rename_file(name: str) -> str:
    if name in DOTTED_NAMES:
        return "." + name
    if name == README_TEMPLATE:
        return "README.md"
    return name


def copy_template(
    store: TemplateStore,
    family: str,
    mode: str,
    target_root: Path,
    excluded: set[str],
    context: dict[str, Any],
) -> list[Path]:
    """Copy the (family, mode) tree into ``target_root``.

    Exclusions match paths relative to the tree root. The readme placeholder is
    rendered with ``context``; every other file is copied byte for byte.
    """
    source_root = store.tree_path(family, mode)
    target_root.mkdir(parents=True, exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(source_root)),
        undefined=StrictUndefined,
        autoescape=False,
        keep_trailing_newline=True,
    )

    written: list[Path] = []
    for relative in store.iter_tree(family, mode):
        if relative.as_posix() in excluded:
            continue

        destination = target_root / relative.parent / rename_file(relative.name)
        destination.parent.mkdir(parents=True, exist_ok=True)

        if relative.name == README_TEMPLATE:
            rendered = env.get_template(relative.as_posix()).render(**context)
            destination.write_text(rendered, encoding="utf-8")
        else:
            shutil.copyfile(source_root / relative, destination)
        written.append(destination)

    return written
