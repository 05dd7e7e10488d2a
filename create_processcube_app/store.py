from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from .config import BUNDLE_NAMES, LANGUAGE_MODES, TEMPLATE_FAMILIES, templates_root
from .errors import TemplateError


@dataclass(frozen=True)
class TemplateStore:
    """Read-only catalog of base trees and integration bundles."""

    root: Path

    @classmethod
    def default(cls) -> "TemplateStore":
        return cls(root=templates_root())

    def tree_path(self, family: str, mode: str) -> Path:
        path = self.root / family / mode
        if not path.is_dir():
            raise TemplateError(f"Template not found: {family}/{mode} (looked in {path})")
        return path

    def iter_tree(self, family: str, mode: str) -> Iterable[Path]:
        """Yield template files relative to the tree root, in a stable order."""
        base = self.tree_path(family, mode)
        return sorted(path.relative_to(base) for path in base.rglob("*") if path.is_file())

    def bundle_file(self, bundle: str, name: str) -> Path:
        if bundle not in BUNDLE_NAMES:
            raise TemplateError(f"Unknown integration bundle: {bundle}")
        path = self.root / bundle / name
        if not path.is_file():
            raise TemplateError(f"Missing {bundle} bundle file: {path}")
        return path

    def read_bundle_text(self, bundle: str, name: str) -> str:
        return self.bundle_file(bundle, name).read_text(encoding="utf-8")

    def read_bundle_bytes(self, bundle: str, name: str) -> bytes:
        return self.bundle_file(bundle, name).read_bytes()

    def available_trees(self) -> list[tuple[str, str]]:
        return [
            (family, mode)
            for family in TEMPLATE_FAMILIES
            for mode in LANGUAGE_MODES
            if (self.root / family / mode).is_dir()
        ]

    def available_bundles(self) -> list[str]:
        return [name for name in BUNDLE_NAMES if (self.root / name).is_dir()]
