from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console

from .alias import rewrite_import_alias
from .bundles import collect_contributions, merge_bundles
from .config import DEFAULT_IMPORT_ALIAS, LANGUAGE_MODES, PACKAGE_MANAGERS, TEMPLATE_FAMILIES
from .copier import copy_exclusions, copy_template
from .errors import InputError
from .installer import InstallFlags, Installer, PackageManagerInstaller
from .layout import relocate_sources
from .manifest import build_dependencies, write_package_json
from .store import TemplateStore

IMPORT_ALIAS_RE = re.compile(r'^[^*"\\\x00-\x1f]+/\*\s*$')
NPM_NAME_RE = re.compile(r"^(?:@[a-z0-9~-][a-z0-9._~-]*/)?[a-z0-9~-][a-z0-9._~-]*$")
NPM_NAME_MAX_LENGTH = 214


@dataclass(frozen=True)
class InstallRequest:
    app_name: str
    target_root: Path
    package_manager: str = "npm"
    is_online: bool = True
    template: str = "app"
    mode: str = "ts"
    tailwind: bool = True
    eslint: bool = True
    src_dir: bool = False
    import_alias: str = DEFAULT_IMPORT_ALIAS
    authority: bool = False
    engine: bool = False


@dataclass(frozen=True)
class InstallResult:
    target_root: Path
    dependencies: tuple[str, ...]
    relocated: tuple[str, ...]
    bundles: tuple[str, ...]
    alias_rewrites: int


def validate_request(request: InstallRequest) -> None:
    if not request.app_name or len(request.app_name) > NPM_NAME_MAX_LENGTH:
        raise InputError(f"Invalid project name: {request.app_name!r}")
    if not NPM_NAME_RE.match(request.app_name):
        raise InputError(
            f"Invalid project name: {request.app_name!r}. Use lowercase letters, digits, '-', '.', '_' or '~'."
        )
    if not request.target_root.is_absolute():
        raise InputError(f"Target path must be absolute: {request.target_root}")
    if request.target_root.exists():
        if not request.target_root.is_dir():
            raise InputError(f"Target path exists and is not a directory: {request.target_root}")
        if any(request.target_root.iterdir()):
            raise InputError(f"Target directory is not empty: {request.target_root}")
    if request.template not in TEMPLATE_FAMILIES:
        raise InputError(f"Unsupported template: {request.template}")
    if request.mode not in LANGUAGE_MODES:
        raise InputError(f"Unsupported mode: {request.mode}")
    if request.package_manager not in PACKAGE_MANAGERS:
        raise InputError(f"Unsupported package manager: {request.package_manager}")
    if not IMPORT_ALIAS_RE.match(request.import_alias):
        raise InputError(f'Invalid import alias: {request.import_alias!r}. Expected a pattern like "@/*".')


def install_template(
    request: InstallRequest,
    store: TemplateStore | None = None,
    installer: Installer | None = None,
    console: Console | None = None,
) -> InstallResult:
    """Materialize the project described by ``request`` and install its dependencies.

    Stages run in order and each one finishes before the next starts. A failure
    aborts the run and leaves the target directory as it is.
    """
    validate_request(request)
    store = store or TemplateStore.default()
    installer = installer or PackageManagerInstaller()
    console = console or Console()
    root = request.target_root
    import_alias = request.import_alias.strip()

    console.print(f"[bold]Using {request.package_manager}.[/bold]")
    console.print(f"\nInitializing project with template: {request.template} ({request.mode})\n")

    copy_template(
        store,
        request.template,
        request.mode,
        root,
        excluded=copy_exclusions(eslint=request.eslint, tailwind=request.tailwind),
        context={
            "app_name": request.app_name,
            "package_manager": request.package_manager,
            "template": request.template,
            "mode": request.mode,
        },
    )

    rewritten = rewrite_import_alias(root, request.mode, import_alias, src_dir=request.src_dir)
    relocated = relocate_sources(root, request.template, request.mode, request.src_dir, request.tailwind)

    contributions = collect_contributions(
        store,
        request.template,
        src_dir=request.src_dir,
        authority=request.authority,
        engine=request.engine,
    )
    merge_bundles(root, contributions)
    for contribution in contributions:
        console.print(f"Added the [cyan]{contribution.name}[/cyan] integration.")

    write_package_json(root, request.app_name)
    dependencies = build_dependencies(
        request.mode,
        tailwind=request.tailwind,
        authority=request.authority,
        eslint=request.eslint,
    )

    console.print("\nInstalling dependencies:")
    for dependency in dependencies:
        console.print(f"- [cyan]{dependency}[/cyan]")
    console.print()

    installer.install(root, dependencies, InstallFlags(package_manager=request.package_manager, is_online=request.is_online))

    return InstallResult(
        target_root=root,
        dependencies=tuple(dependencies),
        relocated=tuple(relocated),
        bundles=tuple(contribution.name for contribution in contributions),
        alias_rewrites=len(rewritten),
    )
