"""Authority and Engine integration bundles, merged into one tree."""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Iterable

from .config import BUNDLE_NAMES
from .errors import MalformedTemplateError
from .layout import is_app_router
from .store import TemplateStore

ENV_FILE = ".env"
COMPOSE_FILE = "docker-compose.yml"
TOOL_CONFIG_DIR = Path(".processcube")
AUTH_ROUTE_SEGMENTS = ("api", "auth", "[...nextauth]")

# Every compose fragment opens with a version line and the services key.
COMPOSE_HEADER_LINES = 2


def _parse_config(text: str, bundle: str) -> dict[str, Any]:
    try:
        document = json.loads(text)
    except json.JSONDecodeError as error:
        raise MalformedTemplateError(f"Invalid JSON in {bundle} config.json: {error}") from error
    if not isinstance(document, dict):
        raise MalformedTemplateError(f"{bundle} config.json must contain a JSON object")
    return document


def render_config(document: dict[str, Any]) -> str:
    return json.dumps(document, indent=2)


@dataclass(frozen=True)
class AuthorityConfig:
    settings: dict[str, Any]
    engines: list[Any] | None = None

    @classmethod
    def from_template(cls, text: str) -> "AuthorityConfig":
        settings = _parse_config(text, "authority")
        engines = settings.pop("engines", None)
        return cls(settings=settings, engines=engines)

    def to_document(self) -> dict[str, Any]:
        document = dict(self.settings)
        if self.engines is not None:
            document["engines"] = self.engines
        return document


@dataclass(frozen=True)
class EngineConfig:
    settings: dict[str, Any]
    iam: dict[str, Any] | None = None

    @classmethod
    def from_template(cls, text: str) -> "EngineConfig":
        settings = _parse_config(text, "engine")
        iam = settings.pop("iam", None)
        return cls(settings=settings, iam=iam)

    def to_document(self) -> dict[str, Any]:
        document = dict(self.settings)
        if self.iam is not None:
            document["iam"] = self.iam
        return document


@dataclass(frozen=True)
class BundleContribution:
    name: str
    env_fragment: str
    compose_fragment: str
    directories: tuple[Path, ...]
    files: tuple[tuple[Path, bytes], ...]


def auth_route_dir(src_dir: bool, family: str) -> Path:
    segments: list[str] = []
    if src_dir:
        segments.append("src")
    if is_app_router(family):
        segments.append("app")
    return Path(*segments, *AUTH_ROUTE_SEGMENTS)


def authority_contribution(store: TemplateStore, family: str, src_dir: bool, engine: bool) -> BundleContribution:
    config = AuthorityConfig.from_template(store.read_bundle_text("authority", "config.json"))
    if not engine:
        config = replace(config, engines=None)

    route_dir = auth_route_dir(src_dir, family)
    config_dir = TOOL_CONFIG_DIR / "authority"
    return BundleContribution(
        name="authority",
        env_fragment=store.read_bundle_text("authority", "env"),
        compose_fragment=store.read_bundle_text("authority", COMPOSE_FILE),
        directories=(route_dir, config_dir),
        files=(
            (Path("middleware.tsx"), store.read_bundle_bytes("authority", "middleware.tsx")),
            (route_dir / "route.ts", store.read_bundle_bytes("authority", "route.ts")),
            (config_dir / "config.json", render_config(config.to_document()).encode("utf-8")),
            (config_dir / "users.json", store.read_bundle_bytes("authority", "users.json")),
        ),
    )


def engine_contribution(store: TemplateStore, authority: bool) -> BundleContribution:
    config = EngineConfig.from_template(store.read_bundle_text("engine", "config.json"))
    if not authority:
        config = replace(config, iam=None)

    config_dir = TOOL_CONFIG_DIR / "engine" / "config"
    return BundleContribution(
        name="engine",
        env_fragment=store.read_bundle_text("engine", "env"),
        compose_fragment=store.read_bundle_text("engine", COMPOSE_FILE),
        directories=(config_dir,),
        files=((config_dir / "config.json", render_config(config.to_document()).encode("utf-8")),),
    )


def collect_contributions(
    store: TemplateStore,
    family: str,
    src_dir: bool,
    authority: bool,
    engine: bool,
) -> list[BundleContribution]:
    contributions: list[BundleContribution] = []
    if authority:
        contributions.append(authority_contribution(store, family, src_dir, engine=engine))
    if engine:
        contributions.append(engine_contribution(store, authority=authority))
    return contributions


def _canonical(contributions: Iterable[BundleContribution]) -> list[BundleContribution]:
    return sorted(contributions, key=lambda item: BUNDLE_NAMES.index(item.name))


def merge_env_fragments(contributions: Iterable[BundleContribution]) -> str:
    merged = ""
    for contribution in _canonical(contributions):
        fragment = contribution.env_fragment
        if merged and not merged.endswith("\n"):
            merged += "\n"
        merged += fragment
    return merged


def merge_compose_fragments(contributions: Iterable[BundleContribution]) -> str | None:
    """Combine compose fragments: the first whole, later ones without their header."""
    fragments = [item.compose_fragment for item in _canonical(contributions) if item.compose_fragment]
    if not fragments:
        return None

    merged = fragments[0]
    for fragment in fragments[1:]:
        if not merged.endswith("\n"):
            merged += "\n"
        merged += "\n".join(fragment.split("\n")[COMPOSE_HEADER_LINES:])
    return merged


def merge_bundles(root: Path, contributions: list[BundleContribution]) -> list[Path]:
    """Write every contribution into ``root`` and return the files touched."""
    touched: list[Path] = []
    for contribution in _canonical(contributions):
        for directory in contribution.directories:
            (root / directory).mkdir(parents=True, exist_ok=True)
        for relative, content in contribution.files:
            destination = root / relative
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(content)
            touched.append(destination)

    compose = merge_compose_fragments(contributions)
    if compose is not None:
        compose_path = root / COMPOSE_FILE
        compose_path.write_text(compose, encoding="utf-8")
        touched.append(compose_path)

    env = merge_env_fragments(contributions)
    if env:
        env_path = root / ENV_FILE
        with env_path.open("a", encoding="utf-8") as handle:
            handle.write(env)
        touched.append(env_path)

    return touched
