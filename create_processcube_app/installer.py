from __future__ import annotations

import os
import socket
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence

from .config import REGISTRY_HOST
from .errors import InstallerError


@dataclass(frozen=True)
class InstallFlags:
    package_manager: str
    is_online: bool


class Installer(Protocol):
    def install(self, root: Path, dependencies: Sequence[str], flags: InstallFlags) -> None: ...


def is_online(host: str = REGISTRY_HOST) -> bool:
    try:
        socket.gethostbyname(host)
    except OSError:
        return False
    return True


def install_command(dependencies: Sequence[str], flags: InstallFlags) -> list[str]:
    if flags.package_manager == "npm":
        return ["npm", "install", "--save-exact", "--save", "--loglevel", "error", *dependencies]

    if flags.package_manager == "yarn":
        command = ["yarn", "add", "--exact"]
    elif flags.package_manager == "pnpm":
        command = ["pnpm", "add", "--save-exact"]
    else:
        raise InstallerError(f"Unsupported package manager: {flags.package_manager}")

    if not flags.is_online:
        command.append("--offline")
    return [*command, *dependencies]


class PackageManagerInstaller:
    """Runs the selected package manager inside the new project."""

    def install(self, root: Path, dependencies: Sequence[str], flags: InstallFlags) -> None:
        if not dependencies:
            return

        command = install_command(dependencies, flags)
        env = {
            **os.environ,
            "ADBLOCK": "1",
            "NODE_ENV": "development",
            "DISABLE_OPENCOLLECTIVE": "1",
        }
        try:
            completed = subprocess.run(command, cwd=str(root), env=env, check=False)
        except FileNotFoundError as error:
            raise InstallerError(f"Package manager not found: {command[0]}") from error

        if completed.returncode != 0:
            raise InstallerError(f"`{' '.join(command)}` failed with exit code {completed.returncode}")
