from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any, Callable, NoReturn, Optional

import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import DEFAULT_IMPORT_ALIAS, load_preset
from .errors import InputError, InstallerError, ScaffoldError
from .installer import PackageManagerInstaller, is_online
from .scaffold import InstallRequest, install_template
from .store import TemplateStore

app = typer.Typer(help="Create ProcessCube Next.js applications from templates.")
console = Console()

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INVALID_INPUT = 2
EXIT_NOT_FOUND = 3

NEW_DEFAULTS: dict[str, Any] = {
    "template": "app",
    "mode": "ts",
    "tailwind": True,
    "eslint": True,
    "src_dir": False,
    "import_alias": DEFAULT_IMPORT_ALIAS,
    "authority": False,
    "engine": False,
    "package_manager": "npm",
}


class OutputFormat(str, Enum):
    table = "table"
    json = "json"
    md = "md"


def _json_print(payload: dict) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=True, sort_keys=True))


def _print_key_value_table(title: str, rows: list[tuple[str, str]]) -> None:
    table = Table(title=title)
    table.add_column("Field")
    table.add_column("Value")
    for key, value in rows:
        table.add_row(key, value)
    console.print(table)


def _emit_success(
    command: str,
    output_format: OutputFormat,
    data: dict,
    md_renderer: Callable[[dict], str] | None = None,
    table_renderer: Callable[[dict], None] | None = None,
) -> None:
    if output_format == OutputFormat.json:
        _json_print(
            {
                "ok": True,
                "command": command,
                "exit_code": EXIT_OK,
                "data": data,
            }
        )
        return

    if output_format == OutputFormat.md and md_renderer is not None:
        console.print(md_renderer(data))
        return

    if output_format == OutputFormat.table and table_renderer is not None:
        table_renderer(data)
        return

    if output_format == OutputFormat.md:
        lines = [f"# {command}", ""]
        lines.extend(f"- **{key}**: {value}" for key, value in data.items())
        console.print("\n".join(lines))
    else:
        _print_key_value_table(
            title=command,
            rows=[(str(key), str(value)) for key, value in data.items()],
        )


def _emit_error(
    command: str,
    output_format: OutputFormat,
    exit_code: int,
    code: str,
    message: str,
) -> NoReturn:
    if output_format == OutputFormat.json:
        _json_print(
            {
                "ok": False,
                "command": command,
                "exit_code": exit_code,
                "error": {
                    "code": code,
                    "message": message,
                },
            }
        )
    elif output_format == OutputFormat.md:
        console.print(f"# {command}\n\n- **status**: error\n- **code**: {code}\n- **message**: {message}")
    else:
        console.print(f"[red]Error ({code}):[/red] {message}")

    raise typer.Exit(code=exit_code)


def _resolve_option(key: str, cli_value: Any, preset: dict[str, Any]) -> Any:
    if cli_value is not None:
        return cli_value
    value = preset.get(key, NEW_DEFAULTS[key])
    if not isinstance(value, type(NEW_DEFAULTS[key])):
        raise InputError(f"Preset option {key!r} must be of type {type(NEW_DEFAULTS[key]).__name__}")
    return value


@app.command("new")
def new_app(
    name: str = typer.Argument(..., help="Project name, also used as the package name."),
    destination: Path = typer.Option(Path("."), "--destination", "-d", help="Directory the project folder is created in."),
    template: Optional[str] = typer.Option(None, "--template", help="Template family: app or default (pages)."),
    mode: Optional[str] = typer.Option(None, "--mode", help="Language mode: ts or js."),
    tailwind: Optional[bool] = typer.Option(None, "--tailwind/--no-tailwind", help="Include Tailwind CSS."),
    eslint: Optional[bool] = typer.Option(None, "--eslint/--no-eslint", help="Include ESLint config."),
    src_dir: Optional[bool] = typer.Option(None, "--src-dir/--no-src-dir", help="Place sources under src/."),
    import_alias: Optional[str] = typer.Option(None, "--import-alias", help='Import alias, e.g. "@/*".'),
    authority: Optional[bool] = typer.Option(None, "--authority/--no-authority", help="Add the Authority integration."),
    engine: Optional[bool] = typer.Option(None, "--engine/--no-engine", help="Add the Engine integration."),
    package_manager: Optional[str] = typer.Option(None, "--package-manager", "-p", help="npm, yarn or pnpm."),
    offline: bool = typer.Option(False, "--offline", help="Install from the package manager cache only."),
    preset: Optional[Path] = typer.Option(None, "--preset", help="YAML file with default answers."),
    output_format: OutputFormat = typer.Option(OutputFormat.table, "--format", help="Output format."),
):
    """Create a new application from a template."""
    try:
        answers = load_preset(preset) if preset else {}
        request = InstallRequest(
            app_name=name,
            target_root=(destination / name).resolve(),
            package_manager=_resolve_option("package_manager", package_manager, answers),
            is_online=not offline and is_online(),
            template=_resolve_option("template", template, answers),
            mode=_resolve_option("mode", mode, answers),
            tailwind=_resolve_option("tailwind", tailwind, answers),
            eslint=_resolve_option("eslint", eslint, answers),
            src_dir=_resolve_option("src_dir", src_dir, answers),
            import_alias=_resolve_option("import_alias", import_alias, answers),
            authority=_resolve_option("authority", authority, answers),
            engine=_resolve_option("engine", engine, answers),
        )
        result = install_template(
            request,
            installer=PackageManagerInstaller(),
            console=Console(quiet=output_format == OutputFormat.json),
        )
    except InputError as error:
        _emit_error("new", output_format, EXIT_INVALID_INPUT, "invalid_input", str(error))
    except InstallerError as error:
        _emit_error("new", output_format, EXIT_ERROR, "installer_error", str(error))
    except (ScaffoldError, OSError) as error:
        _emit_error("new", output_format, EXIT_ERROR, "scaffold_error", str(error))

    data = {
        "path": str(result.target_root),
        "template": request.template,
        "mode": request.mode,
        "src_dir": request.src_dir,
        "import_alias": request.import_alias,
        "relocated": list(result.relocated),
        "alias_rewrites": result.alias_rewrites,
        "bundles": list(result.bundles),
        "dependencies": list(result.dependencies),
    }

    def render_md(payload: dict) -> str:
        lines = [f"# Created `{payload['path']}`", ""]
        lines.append(f"- **template**: `{payload['template']}` ({payload['mode']})")
        lines.append(f"- **src_dir**: {payload['src_dir']}")
        lines.append(f"- **import_alias**: `{payload['import_alias']}`")
        lines.append(f"- **relocated**: {', '.join(payload['relocated']) if payload['relocated'] else 'none'}")
        lines.append(f"- **alias_rewrites**: {payload['alias_rewrites']}")
        lines.append(f"- **bundles**: {', '.join(payload['bundles']) if payload['bundles'] else 'none'}")
        lines.append("\n## Dependencies")
        lines.extend(f"- `{item}`" for item in payload["dependencies"])
        return "\n".join(lines)

    def render_table(payload: dict) -> None:
        _print_key_value_table(
            title="New application",
            rows=[
                ("path", payload["path"]),
                ("template", f"{payload['template']} ({payload['mode']})"),
                ("src_dir", str(payload["src_dir"])),
                ("import_alias", payload["import_alias"]),
                ("relocated", ", ".join(payload["relocated"]) if payload["relocated"] else "-"),
                ("alias_rewrites", str(payload["alias_rewrites"])),
                ("bundles", ", ".join(payload["bundles"]) if payload["bundles"] else "-"),
                ("dependencies", str(len(payload["dependencies"]))),
            ],
        )
        console.print(f"\n[green]Success![/green] Created {name} at {payload['path']}")

    _emit_success(command="new", output_format=output_format, data=data, md_renderer=render_md, table_renderer=render_table)


@app.command("templates")
def list_templates(
    output_format: OutputFormat = typer.Option(OutputFormat.table, "--format", help="Output format."),
):
    """List template trees and integration bundles."""
    store = TemplateStore.default()
    trees = [{"template": family, "mode": mode} for family, mode in store.available_trees()]
    if not trees:
        _emit_error(
            command="templates",
            output_format=output_format,
            exit_code=EXIT_NOT_FOUND,
            code="no_templates",
            message=f"No templates found in {store.root}.",
        )

    data = {"root": str(store.root), "templates": trees, "bundles": store.available_bundles()}

    def render_md(payload: dict) -> str:
        lines = [f"# Templates in `{payload['root']}`", ""]
        lines.extend(f"- `{item['template']}` ({item['mode']})" for item in payload["templates"])
        lines.append("\n## Bundles")
        lines.extend(f"- `{item}`" for item in payload["bundles"])
        return "\n".join(lines)

    def render_table(payload: dict) -> None:
        table = Table(title="Templates")
        table.add_column("Template")
        table.add_column("Mode")
        for item in payload["templates"]:
            table.add_row(item["template"], item["mode"])
        console.print(table)
        console.print(f"[bold]Bundles:[/bold] {', '.join(payload['bundles']) or '-'}")

    _emit_success(command="templates", output_format=output_format, data=data, md_renderer=render_md, table_renderer=render_table)


@app.command("version")
def version(
    output_format: OutputFormat = typer.Option(OutputFormat.table, "--format", help="Output format."),
) -> None:
    """Print version."""
    _emit_success(command="version", output_format=output_format, data={"version": __version__})


if __name__ == "__main__":
    app()
