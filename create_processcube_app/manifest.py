from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from .config import APP_SDK_PACKAGE, framework_version

INITIAL_VERSION = "0.1.0"

RUN_SCRIPTS = {
    "dev": "next dev",
    "build": "next build",
    "start": "next start",
    "lint": "next lint",
}

TYPESCRIPT_DEPENDENCIES = ("typescript", "@types/react", "@types/node", "@types/react-dom")
TAILWIND_DEPENDENCIES = ("tailwindcss", "postcss", "autoprefixer")
AUTHORITY_DEPENDENCIES = ("next-auth",)
ESLINT_DEPENDENCIES = ("eslint", "eslint-config-next")


def build_dependencies(
    mode: str,
    tailwind: bool,
    authority: bool,
    eslint: bool,
    next_version: str | None = None,
) -> list[str]:
    """Return package specifiers in install order; duplicates are kept."""
    pinned = next_version if next_version is not None else framework_version()
    dependencies = [
        "react",
        "react-dom",
        f"next@{pinned}" if pinned else "next",
        APP_SDK_PACKAGE,
    ]
    if mode == "ts":
        dependencies.extend(TYPESCRIPT_DEPENDENCIES)
    if tailwind:
        dependencies.extend(TAILWIND_DEPENDENCIES)
    if authority:
        dependencies.extend(AUTHORITY_DEPENDENCIES)
    if eslint:
        dependencies.extend(ESLINT_DEPENDENCIES)
    return dependencies


def package_manifest(app_name: str) -> dict[str, Any]:
    return {
        "name": app_name,
        "version": INITIAL_VERSION,
        "private": True,
        "scripts": dict(RUN_SCRIPTS),
    }


def write_package_json(root: Path, app_name: str) -> Path:
    path = root / "package.json"
    path.write_text(json.dumps(package_manifest(app_name), indent=2) + os.linesep, encoding="utf-8")
    return path
