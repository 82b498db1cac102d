"""Sequential dependency installation for new skills."""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence


@dataclass
class InstallStep:
    """Result of installing one dependency.

    Attributes:
        dependency: Package spec passed to the installer
        ok: Whether the installer exited successfully
        message: Installer output on failure, empty on success
    """

    dependency: str
    ok: bool
    message: str = ""


async def install_dependency(
    dependency: str, skill_dir: Path, command: Sequence[str]
) -> InstallStep:
    """Install a single dependency by running ``command + [dependency]``.

    Failures are returned as an unsuccessful InstallStep, never raised.
    """
    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            dependency,
            cwd=str(skill_dir),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
    except OSError as e:
        return InstallStep(dependency=dependency, ok=False, message=str(e))

    output, _ = await process.communicate()
    if process.returncode != 0:
        text = output.decode("utf-8", errors="replace").strip()
        return InstallStep(
            dependency=dependency,
            ok=False,
            message=text or f"exit code {process.returncode}",
        )

    return InstallStep(dependency=dependency, ok=True)


async def install_dependencies(
    dependencies: Sequence[str],
    skill_dir: Path,
    command: Sequence[str] = ("bun", "add"),
) -> list[InstallStep]:
    """Install dependencies one at a time, in declaration order.

    Each install is awaited before the next starts so console output stays
    in order. A failed install does not stop the remaining ones.

    Args:
        dependencies: Package specs to install
        skill_dir: Directory the installer runs in
        command: Installer command prefix

    Returns:
        One InstallStep per dependency, in the same order
    """
    steps = []
    for dependency in dependencies:
        steps.append(await install_dependency(dependency, skill_dir, command))
    return steps
