from __future__ import annotations

import re
from pathlib import Path

from .config import SRC_DIR_NAMES

TAILWIND_CONTENT_RE = re.compile(r"\./(\w+)/\*\*/\*\.\{js,ts,jsx,tsx,mdx\}")


def is_app_router(family: str) -> bool:
    return family.startswith("app")


def entry_page(family: str, mode: str) -> Path:
    extension = "tsx" if mode == "ts" else "js"
    if is_app_router(family):
        return Path("app") / f"page.{extension}"
    return Path("pages") / f"index.{extension}"


def move_into_src(root: Path, names: tuple[str, ...] = SRC_DIR_NAMES) -> list[str]:
    """Move the named top-level directories under ``root/src``.

    Directories the template does not have are skipped. Returns the names moved.
    """
    src = root / "src"
    src.mkdir(parents=True, exist_ok=True)

    moved: list[str] = []
    for name in names:
        try:
            (root / name).rename(src / name)
        except FileNotFoundError:
            continue
        moved.append(name)
    return moved


def patch_entry_page(root: Path, family: str, mode: str) -> Path:
    old_reference = entry_page(family, mode).with_suffix("").as_posix()
    page = root / "src" / entry_page(family, mode)
    page.write_text(
        page.read_text(encoding="utf-8").replace(old_reference, f"src/{old_reference}", 1),
        encoding="utf-8",
    )
    return page


def patch_tailwind_content(root: Path) -> Path:
    config = root / "tailwind.config.js"
    config.write_text(
        TAILWIND_CONTENT_RE.sub(r"./src/\1/**/*.{js,ts,jsx,tsx,mdx}", config.read_text(encoding="utf-8")),
        encoding="utf-8",
    )
    return config


def relocate_sources(root: Path, family: str, mode: str, src_dir: bool, tailwind: bool) -> list[str]:
    if not src_dir:
        return []

    moved = move_into_src(root)
    patch_entry_page(root, family, mode)
    if tailwind:
        patch_tailwind_content(root)
    return moved
