from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

from .errors import InputError

TEMPLATE_FAMILIES = ("app", "default")
LANGUAGE_MODES = ("ts", "js")
PACKAGE_MANAGERS = ("npm", "yarn", "pnpm")
BUNDLE_NAMES = ("authority", "engine")

DEFAULT_IMPORT_ALIAS = "@/*"
SRC_DIR_NAMES = ("app", "pages", "styles")

# Upper bound on files rewritten at once by the alias pass.
REWRITE_CONCURRENCY = 8

TEMPLATES_ENV_VAR = "CREATE_PROCESSCUBE_APP_TEMPLATES"
FRAMEWORK_VERSION_ENV_VAR = "NEXT_PRIVATE_TEST_VERSION"

APP_SDK_PACKAGE = "@5minds/processcube_app_sdk@^0.0.1-develop-e5b363-lki8hmms"
REGISTRY_HOST = "registry.yarnpkg.com"

PRESET_KEYS = (
    "template",
    "mode",
    "tailwind",
    "eslint",
    "src_dir",
    "import_alias",
    "authority",
    "engine",
    "package_manager",
)


def templates_root() -> Path:
    override = os.environ.get(TEMPLATES_ENV_VAR, "").strip()
    if override:
        return Path(override).expanduser().resolve()
    return Path(__file__).resolve().parent / "templates"


def framework_version() -> str | None:
    return os.environ.get(FRAMEWORK_VERSION_ENV_VAR) or None


def load_preset(path: Path) -> dict[str, Any]:
    """Read a YAML preset of default answers for ``new``."""
    if not path.exists() or not path.is_file():
        raise InputError(f"Preset file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as error:
        raise InputError(f"Invalid preset YAML in {path}: {error}") from error
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InputError(f"Preset must be a mapping of option names: {path}")

    unknown = sorted(str(key) for key in data if key not in PRESET_KEYS)
    if unknown:
        raise InputError(f"Unknown preset option(s): {', '.join(unknown)}")
    return dict(data)
