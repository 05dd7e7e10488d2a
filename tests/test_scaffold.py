import json
from pathlib import Path

import pytest

from create_processcube_app.config import APP_SDK_PACKAGE, SRC_DIR_NAMES, templates_root
from create_processcube_app.errors import InputError, InstallerError, TemplateError
from create_processcube_app.scaffold import InstallRequest, install_template
from create_processcube_app.store import TemplateStore


def _fragment(bundle: str, name: str) -> str:
    return (templates_root() / bundle / name).read_text(encoding="utf-8")


def _request(tmp_path: Path, **overrides) -> InstallRequest:
    values = {"app_name": "my-app", "target_root": tmp_path / "my-app", "is_online": False}
    values.update(overrides)
    return InstallRequest(**values)


@pytest.mark.parametrize("template", ["app", "default"])
@pytest.mark.parametrize("mode", ["ts", "js"])
@pytest.mark.parametrize("src_dir", [False, True])
@pytest.mark.parametrize("authority", [False, True])
@pytest.mark.parametrize("engine", [False, True])
def test_option_matrix_invariants(tmp_path: Path, installer, template, mode, src_dir, authority, engine):
    request = _request(tmp_path, template=template, mode=mode, src_dir=src_dir, authority=authority, engine=engine)

    result = install_template(request, installer=installer)
    root = result.target_root

    config_name = "tsconfig.json" if mode == "ts" else "jsconfig.json"
    config = (root / config_name).read_text(encoding="utf-8")
    assert config.count('"@/*"') == 1
    assert ('"@/*": ["./src/*"]' in config) is src_dir
    assert ('"@/*": ["./*"]' in config) is not src_dir

    if src_dir:
        assert not any((root / name).exists() for name in SRC_DIR_NAMES)
        assert (root / "src").is_dir()

    compose = root / "docker-compose.yml"
    env = root / ".env"
    assert compose.exists() is (authority or engine)
    assert env.exists() is (authority or engine)
    if authority and engine:
        env_text = env.read_text(encoding="utf-8")
        assert _fragment("authority", "env") in env_text
        assert _fragment("engine", "env") in env_text
        compose_text = compose.read_text(encoding="utf-8")
        assert "  authority:\n" in compose_text
        assert "  engine:\n" in compose_text

    if authority:
        document = json.loads((root / ".processcube" / "authority" / "config.json").read_text(encoding="utf-8"))
        assert ("engines" in document) is engine
    if engine:
        document = json.loads((root / ".processcube" / "engine" / "config" / "config.json").read_text(encoding="utf-8"))
        assert ("iam" in document) is authority

    assert result.bundles == tuple(name for name, on in (("authority", authority), ("engine", engine)) if on)
    assert len(installer.calls) == 1


@pytest.mark.parametrize(
    ("template", "expected_page", "reference"),
    [
        ("app", Path("src/app/page.tsx"), "src/app/page"),
        ("default", Path("src/pages/index.tsx"), "src/pages/index"),
    ],
)
def test_entry_page_references_nested_path(tmp_path: Path, installer, template, expected_page, reference):
    root = install_template(_request(tmp_path, template=template, mode="ts", src_dir=True), installer=installer).target_root

    text = (root / expected_page).read_text(encoding="utf-8")
    assert f"<code>{reference}.tsx</code>" in text


def test_authority_only(tmp_path: Path, installer):
    root = install_template(_request(tmp_path, authority=True), installer=installer).target_root

    config = json.loads((root / ".processcube" / "authority" / "config.json").read_text(encoding="utf-8"))
    assert "engines" not in config
    assert (root / ".env").read_text(encoding="utf-8") == _fragment("authority", "env")
    assert (root / "docker-compose.yml").read_text(encoding="utf-8") == _fragment("authority", "docker-compose.yml")
    assert (root / "app" / "api" / "auth" / "[...nextauth]" / "route.ts").exists()
    assert "next-auth" in installer.calls[0][1]


def test_both_bundles_merge_manifest(tmp_path: Path, installer):
    root = install_template(_request(tmp_path, authority=True, engine=True), installer=installer).target_root

    compose = (root / "docker-compose.yml").read_text(encoding="utf-8")
    engine_header = "\n".join(_fragment("engine", "docker-compose.yml").split("\n")[:2])
    assert compose.startswith(_fragment("authority", "docker-compose.yml"))
    assert "image: 5minds/processcube_engine:latest" in compose
    assert engine_header not in compose


def test_engine_only(tmp_path: Path, installer):
    root = install_template(_request(tmp_path, engine=True), installer=installer).target_root

    config = json.loads((root / ".processcube" / "engine" / "config" / "config.json").read_text(encoding="utf-8"))
    assert "iam" not in config
    assert (root / "docker-compose.yml").read_text(encoding="utf-8") == _fragment("engine", "docker-compose.yml")
    assert not (root / "middleware.tsx").exists()


def test_minimal_js_project_installs_base_dependencies(tmp_path: Path, installer):
    request = _request(tmp_path, mode="js", tailwind=False, eslint=False, package_manager="pnpm")

    result = install_template(request, installer=installer)

    root, dependencies, flags = installer.calls[0]
    assert root == result.target_root
    assert dependencies == ["react", "react-dom", "next", APP_SDK_PACKAGE]
    assert flags.package_manager == "pnpm"
    assert flags.is_online is False
    assert not (root / "tailwind.config.js").exists()
    assert not (root / ".eslintrc.json").exists()
    assert json.loads((root / "package.json").read_text(encoding="utf-8"))["name"] == "my-app"


def test_custom_import_alias(tmp_path: Path, installer):
    result = install_template(_request(tmp_path, import_alias="~/*"), installer=installer)
    root = result.target_root

    assert result.alias_rewrites == 1
    assert result.relocated == ()

    config = (root / "tsconfig.json").read_text(encoding="utf-8")
    assert '"~/*": ["./*"]' in config
    assert '"@/*"' not in config
    assert "import '~/app/globals.css';" in (root / "app" / "layout.tsx").read_text(encoding="utf-8")
    for path in root.rglob("*"):
        if path.is_file() and path.suffix in {".ts", ".tsx", ".js", ".json", ".css", ".md"}:
            assert "@/" not in path.read_text(encoding="utf-8"), path


def test_custom_import_alias_with_src_dir(tmp_path: Path, installer):
    result = install_template(
        _request(tmp_path, template="default", import_alias="#app/*", src_dir=True), installer=installer
    )
    root = result.target_root

    assert result.relocated == ("pages", "styles")
    assert result.alias_rewrites == 1

    assert '"#app/*": ["./src/*"]' in (root / "tsconfig.json").read_text(encoding="utf-8")
    assert "import '#app/styles/globals.css';" in (root / "src" / "pages" / "_app.tsx").read_text(encoding="utf-8")


@pytest.mark.parametrize(
    "overrides",
    [
        {"app_name": "My App"},
        {"app_name": ".hidden"},
        {"import_alias": "@"},
        {"import_alias": "@/*/*"},
        {"import_alias": "a\\q/*"},
        {"import_alias": "bad\x01/*"},
        {"mode": "py"},
        {"template": "blog"},
        {"package_manager": "bun"},
    ],
)
def test_invalid_requests_write_nothing(tmp_path: Path, installer, overrides):
    request = _request(tmp_path, **overrides)

    with pytest.raises(InputError):
        install_template(request, installer=installer)

    assert not request.target_root.exists()
    assert installer.calls == []


def test_relative_target_is_rejected(tmp_path: Path, installer):
    with pytest.raises(InputError):
        install_template(_request(tmp_path, target_root=Path("relative/app")), installer=installer)


def test_non_empty_target_is_rejected(tmp_path: Path, installer):
    target = tmp_path / "my-app"
    target.mkdir()
    (target / "keep.txt").write_text("x", encoding="utf-8")

    with pytest.raises(InputError, match="not empty"):
        install_template(_request(tmp_path), installer=installer)


def test_empty_existing_target_is_accepted(tmp_path: Path, installer):
    (tmp_path / "my-app").mkdir()

    result = install_template(_request(tmp_path), installer=installer)

    assert (result.target_root / "package.json").exists()


def test_missing_template_tree(tmp_path: Path, installer):
    store = TemplateStore(root=tmp_path / "empty-store")

    with pytest.raises(TemplateError):
        install_template(_request(tmp_path), store=store, installer=installer)


def test_installer_failure_propagates(tmp_path: Path):
    class FailingInstaller:
        def install(self, root, dependencies, flags):
            raise InstallerError("npm install failed")

    with pytest.raises(InstallerError):
        install_template(_request(tmp_path), installer=FailingInstaller())

    assert (tmp_path / "my-app" / "package.json").exists()
