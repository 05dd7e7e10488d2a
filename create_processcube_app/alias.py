"""Import alias rewriting for a freshly copied template tree."""

from __future__ import annotations

import asyncio
from pathlib import Path

from .config import DEFAULT_IMPORT_ALIAS, REWRITE_CONCURRENCY
from .errors import TemplateError


def resolution_config_name(mode: str) -> str:
    return "jsconfig.json" if mode == "js" else "tsconfig.json"


def alias_prefix(alias: str) -> str:
    """``"@/*"`` -> ``"@/"``."""
    return alias.replace("*", "")


def patch_resolution_config(text: str, alias: str, src_dir: bool) -> str:
    default_mapping = f'"{DEFAULT_IMPORT_ALIAS}": ["./*"]'
    if default_mapping not in text:
        raise TemplateError(f"Module-resolution config has no default alias mapping {default_mapping}")

    target = "./src/*" if src_dir else "./*"
    return text.replace(default_mapping, f'"{alias}": ["{target}"]', 1)


def _rewrite_file(path: Path, old: str, new: str) -> bool:
    if path.is_dir():
        return False

    data = path.read_bytes()
    if old.encode("utf-8") not in data:
        return False
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        # Binary asset that happens to contain the byte sequence.
        return False

    path.write_text(text.replace(old, new), encoding="utf-8")
    return True


async def rewrite_alias_references(
    root: Path,
    old_prefix: str,
    new_prefix: str,
    skip: set[str],
    concurrency: int = REWRITE_CONCURRENCY,
) -> list[Path]:
    """Replace ``old_prefix`` with ``new_prefix`` in every file under ``root``.

    ``skip`` holds paths relative to ``root``. Returns the files that changed.
    """
    entries = sorted(path for path in root.rglob("*") if path.relative_to(root).as_posix() not in skip)
    semaphore = asyncio.Semaphore(concurrency)

    async def _rewrite(path: Path) -> bool:
        async with semaphore:
            return await asyncio.to_thread(_rewrite_file, path, old_prefix, new_prefix)

    results = await asyncio.gather(*(_rewrite(path) for path in entries))
    return [path for path, changed in zip(entries, results) if changed]


def rewrite_import_alias(
    root: Path,
    mode: str,
    alias: str,
    src_dir: bool,
    concurrency: int = REWRITE_CONCURRENCY,
) -> list[Path]:
    config_name = resolution_config_name(mode)
    config_path = root / config_name
    if not config_path.is_file():
        raise TemplateError(f"Module-resolution config not found: {config_path}")

    config_path.write_text(
        patch_resolution_config(config_path.read_text(encoding="utf-8"), alias, src_dir),
        encoding="utf-8",
    )

    if alias == DEFAULT_IMPORT_ALIAS:
        return []

    return asyncio.run(
        rewrite_alias_references(
            root,
            alias_prefix(DEFAULT_IMPORT_ALIAS),
            alias_prefix(alias),
            skip={config_name},
            concurrency=concurrency,
        )
    )
