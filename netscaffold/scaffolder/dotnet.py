"""Orchestration of the external ``dotnet`` CLI.

Wraps every SDK interaction the service needs: detecting the installed SDK,
installing it through Microsoft's ``dotnet-install`` script, listing project
templates and creating projects, including the layered Clean Architecture
solution (API, Domain, Application, Infrastructure, IoC).

Commands are always passed as argument lists so user-supplied names never go
through a shell. Non-zero exit codes raise :class:`DotNetCommandError`; the
public ``create_project`` and ``install`` methods convert it to a failure
record instead.
"""

from __future__ import annotations

import asyncio
import platform
import re
import sys
import tempfile
from pathlib import Path

import httpx

from ..config import NetScaffoldConfig
from ..models import (
    DotNetInfo,
    DotNetInstallOptions,
    DotNetInstallResult,
    ProjectCreationResult,
    ProjectOptions,
)
from ..utils import console, format_command, run_command


# ---------------------------------------------------------------------------
# Solution layout
# ---------------------------------------------------------------------------

# Layer project -> ``dotnet new`` template, in creation order.
LAYER_TEMPLATES: dict[str, str] = {
    "API": "webapi",
    "Domain": "classlib",
    "Application": "classlib",
    "Infrastructure": "classlib",
    "IoC": "classlib",
}

LAYER_FOLDERS: dict[str, tuple[str, ...]] = {
    "API": (
        "Controllers/Contract",
        "Configurations",
        "Middleware",
        "EntityExplorerModule",
        "Properties",
    ),
    "Domain": (
        "Entities",
        "Commands/Contracts",
        "Handlers/Contracts",
        "Repositories/Contracts",
        "Validation",
        "Helpers",
    ),
    "Application": ("DTOs", "Services", "Interfaces", "Dictionary"),
    "Infrastructure": ("Data", "Repositories", "Migrations", "Configuration"),
    "IoC": (),
}

# (referencing project, referenced project)
PROJECT_REFERENCES: tuple[tuple[str, str], ...] = (
    ("API", "Application"),
    ("API", "IoC"),
    ("Application", "Domain"),
    ("Infrastructure", "Domain"),
    ("IoC", "Domain"),
    ("IoC", "Application"),
    ("IoC", "Infrastructure"),
)

FALLBACK_TEMPLATES: tuple[str, ...] = ("console", "web", "webapi", "mvc", "blazor", "classlib")

_PLATFORM_NAMES: dict[str, str] = {"win32": "windows", "darwin": "macos", "linux": "linux"}
_ARCH_NAMES: dict[str, str] = {
    "x86_64": "x64",
    "amd64": "x64",
    "i386": "x86",
    "i686": "x86",
    "x86": "x86",
    "aarch64": "arm64",
    "arm64": "arm64",
}
_RUNTIME_RE = re.compile(r"^(.+?)\s+(\d+\.\d+\.\d+\S*)")
_BASE_PATH_RE = re.compile(r"Base Path:\s+(.+)")


class DotNetCommandError(Exception):
    """Raised when a ``dotnet`` invocation fails or cannot be started."""

    def __init__(
        self,
        message: str,
        command: str = "",
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


def detect_platform() -> tuple[str, str]:
    """Return ``(platform, architecture)`` in the SDK's vocabulary.

    Unknown values are reported as-is, lower-cased.
    """
    system = _PLATFORM_NAMES.get(sys.platform, sys.platform)
    machine = platform.machine().lower()
    return system, _ARCH_NAMES.get(machine, machine)


def parse_template_list(output: str) -> list[str]:
    """Extract short names from ``dotnet new list`` output.

    Columns are separated by two or more spaces; the second column holds one
    or more comma-separated short names. Order is preserved, duplicates are
    dropped.
    """
    templates: list[str] = []
    in_table = False
    for line in output.splitlines():
        if "Template Name" in line and "Short Name" in line:
            in_table = True
            continue
        if not in_table or not line.strip() or "---" in line:
            continue
        columns = re.split(r"\s{2,}", line.strip())
        if len(columns) < 2:
            continue
        for short_name in columns[1].split(","):
            short_name = short_name.strip()
            if short_name and short_name not in templates:
                templates.append(short_name)
    return templates


def _make_folders(root: Path, folders: tuple[str, ...]) -> None:
    for folder in folders:
        (root / folder).mkdir(parents=True, exist_ok=True)


# ---------------------------------------------------------------------------
# DotNetCli
# ---------------------------------------------------------------------------


class DotNetCli:
    """Async wrapper around the ``dotnet`` executable."""

    def __init__(self, config: NetScaffoldConfig) -> None:
        self.config = config
        self.executable = config.dotnet.executable
        self.timeout = config.dotnet.command_timeout

    # -- Low level -----------------------------------------------------------

    async def run(self, args: list[str], cwd: Path | None = None) -> str:
        """Run ``dotnet <args>`` and return its stdout.

        Raises:
            DotNetCommandError: On a non-zero exit code, a timeout or a
                missing executable.
        """
        cmd = [self.executable, *args]
        try:
            returncode, stdout, stderr = await run_command(cmd, cwd=cwd, timeout=self.timeout)
        except OSError as exc:
            raise DotNetCommandError(
                f"Could not start '{self.executable}': {exc}",
                command=format_command(cmd),
            ) from exc
        if returncode != 0:
            raise DotNetCommandError(
                f"Command failed with exit code {returncode}: {format_command(cmd)}",
                command=format_command(cmd),
                returncode=returncode,
                stderr=stderr or stdout,
            )
        return stdout

    # -- Installation status -------------------------------------------------

    async def get_version(self) -> str | None:
        """Return the SDK version, or ``None`` if ``dotnet`` is unavailable."""
        try:
            version = (await self.run(["--version"])).strip()
        except DotNetCommandError:
            return None
        return version or None

    async def list_sdks(self) -> list[str]:
        try:
            output = await self.run(["--list-sdks"])
        except DotNetCommandError:
            return []
        return [line.split()[0] for line in output.splitlines() if line.strip()]

    async def list_runtimes(self) -> list[str]:
        try:
            output = await self.run(["--list-runtimes"])
        except DotNetCommandError:
            return []
        runtimes: list[str] = []
        for line in output.splitlines():
            match = _RUNTIME_RE.match(line.strip())
            if match:
                runtimes.append(f"{match.group(1)} {match.group(2)}")
        return runtimes

    async def check_installation(self) -> DotNetInfo:
        """Report whether the SDK is installed, with its SDKs and runtimes."""
        system, arch = detect_platform()
        version = await self.get_version()
        if version is None:
            return DotNetInfo(
                is_installed=False,
                platform=system,
                architecture=arch,
                error=".NET SDK not found",
            )
        return DotNetInfo(
            is_installed=True,
            version=version,
            platform=system,
            architecture=arch,
            sdk_versions=await self.list_sdks(),
            runtime_versions=await self.list_runtimes(),
        )

    async def get_install_path(self) -> str:
        """Return the ``Base Path`` reported by ``dotnet --info``."""
        try:
            output = await self.run(["--info"])
        except DotNetCommandError:
            return "Unknown"
        match = _BASE_PATH_RE.search(output)
        return match.group(1).strip() if match else "Unknown"

    # -- Installation --------------------------------------------------------

    def build_install_command(
        self, script: Path, options: DotNetInstallOptions, system: str, arch: str
    ) -> list[str]:
        """Command running the downloaded install script for *system*."""
        architecture = options.architecture or (arch if arch in ("x64", "x86", "arm64") else "x64")
        if system == "windows":
            cmd = [
                "powershell", "-NoProfile", "-ExecutionPolicy", "Bypass",
                "-File", str(script), "-Architecture", architecture,
            ]
            cmd += ["-Version", options.version] if options.version else ["-Channel", options.channel]
            if options.install_dir:
                cmd += ["-InstallDir", options.install_dir]
            return cmd

        cmd = ["bash", str(script), "--architecture", architecture]
        cmd += ["--version", options.version] if options.version else ["--channel", options.channel]
        if options.install_dir:
            cmd += ["--install-dir", options.install_dir]
        return cmd

    async def _download_install_script(self, system: str) -> Path:
        url = (
            self.config.dotnet.install_script_url_windows
            if system == "windows"
            else self.config.dotnet.install_script_url
        )
        suffix = ".ps1" if system == "windows" else ".sh"
        async with httpx.AsyncClient(follow_redirects=True, timeout=httpx.Timeout(30.0)) as client:
            response = await client.get(url)
            response.raise_for_status()
        handle = tempfile.NamedTemporaryFile(prefix="dotnet-install-", suffix=suffix, delete=False)
        handle.close()
        script = Path(handle.name)
        await asyncio.to_thread(script.write_bytes, response.content)
        return script

    async def install(self, options: DotNetInstallOptions | None = None) -> DotNetInstallResult:
        """Install the SDK with Microsoft's ``dotnet-install`` script.

        The script installs per-user (``~/.dotnet`` by default); the result
        is verified by running ``dotnet --version`` afterwards, so the
        install location must be on ``PATH`` for verification to succeed.
        """
        options = options or DotNetInstallOptions()
        system, arch = detect_platform()

        try:
            script = await self._download_install_script(system)
        except httpx.HTTPError as exc:
            return DotNetInstallResult(
                success=False,
                message="Failed to download the .NET install script",
                error=str(exc),
            )

        cmd = self.build_install_command(script, options, system, arch)
        console.print(f"[dim]Running: {format_command(cmd)}[/dim]")
        try:
            returncode, stdout, stderr = await run_command(
                cmd, timeout=self.config.dotnet.install_timeout
            )
        except OSError as exc:
            return DotNetInstallResult(
                success=False, message=".NET installation failed", error=str(exc)
            )
        finally:
            script.unlink(missing_ok=True)

        if returncode != 0:
            return DotNetInstallResult(
                success=False,
                message=".NET installation failed",
                error=stderr or stdout or f"exit code {returncode}",
            )

        info = await self.check_installation()
        if not info.is_installed:
            return DotNetInstallResult(
                success=False,
                message="Post-installation verification failed",
                error="Installation verification failed; is the install directory on PATH?",
            )
        return DotNetInstallResult(
            success=True,
            message=".NET installation completed successfully",
            version=info.version,
            install_path=await self.get_install_path(),
        )

    # -- Templates -----------------------------------------------------------

    async def list_templates(self) -> list[str]:
        """Short names of the installed project templates."""
        try:
            output = await self.run(["new", "list"])
        except DotNetCommandError:
            return list(FALLBACK_TEMPLATES)
        return parse_template_list(output) or list(FALLBACK_TEMPLATES)

    # -- Project creation ----------------------------------------------------

    def default_output_dir(self) -> Path:
        return self.config.work_dir / "projects"

    def build_create_command(self, options: ProjectOptions) -> list[str]:
        """``dotnet new`` arguments (without the executable) for a single project."""
        args = ["new", options.template, "--name", options.name]
        framework = options.framework or self.config.dotnet.default_framework
        if framework:
            args += ["--framework", framework]
        if options.language != "C#":
            args += ["--language", options.language]
        if options.force:
            args.append("--force")
        return args

    async def create_project(self, options: ProjectOptions) -> ProjectCreationResult:
        """Create the base project described by *options*.

        Returns a failure record (never raises) when the SDK is missing, the
        target directory exists without ``force``, or a CLI call fails.
        """
        if await self.get_version() is None:
            return ProjectCreationResult(
                success=False,
                message=".NET SDK is not installed. Please install the .NET SDK first.",
                error=".NET SDK not found",
            )

        output_dir = Path(options.output_path) if options.output_path else self.default_output_dir()
        project_path = output_dir / options.name
        if project_path.exists() and not options.force:
            return ProjectCreationResult(
                success=False,
                message=f"Directory '{project_path}' already exists. Use the force option to overwrite.",
                error="Directory already exists",
            )

        try:
            await asyncio.to_thread(output_dir.mkdir, parents=True, exist_ok=True)
            if options.is_clean_architecture:
                output = await self.create_clean_architecture(
                    options.name,
                    output_dir,
                    options.framework or self.config.dotnet.default_framework,
                    force=options.force,
                )
            else:
                output = await self.run(self.build_create_command(options), cwd=output_dir)
                if not project_path.is_dir():
                    raise DotNetCommandError(
                        f"'dotnet new' finished but '{project_path}' was not created"
                    )
        except DotNetCommandError as exc:
            return ProjectCreationResult(
                success=False,
                message=f"Failed to create project: {exc}",
                error=exc.stderr or str(exc),
            )
        except OSError as exc:
            return ProjectCreationResult(
                success=False, message="Failed to create project", error=str(exc)
            )

        return ProjectCreationResult(
            success=True,
            message=f"Project '{options.name}' created successfully",
            project_path=str(project_path),
            output=output,
        )

    async def create_clean_architecture(
        self,
        name: str,
        output_dir: Path,
        framework: str,
        force: bool = False,
    ) -> str:
        """Create the layered solution ``<output_dir>/<name>``.

        Runs ``dotnet new sln``, one ``dotnet new`` per layer, adds every
        layer to the solution and wires the project references. Layer
        folders are created here rather than by the CLI.

        Returns:
            The concatenated CLI output.

        Raises:
            DotNetCommandError: On the first failing CLI call.
        """
        root = output_dir / name
        await asyncio.to_thread(root.mkdir, parents=True, exist_ok=True)
        force_flag = ["--force"] if force else []
        outputs = [await self.run(["new", "sln", "--name", name, *force_flag], cwd=root)]

        for layer, template in LAYER_TEMPLATES.items():
            args = ["new", template, "--name", layer, "--framework", framework, *force_flag]
            outputs.append(await self.run(args, cwd=root))
            layer_dir = root / layer
            if template == "classlib":
                await asyncio.to_thread((layer_dir / "Class1.cs").unlink, missing_ok=True)
            await asyncio.to_thread(_make_folders, layer_dir, LAYER_FOLDERS[layer])

        for layer in LAYER_TEMPLATES:
            outputs.append(await self.run(["sln", "add", f"{layer}/{layer}.csproj"], cwd=root))

        for source, target in PROJECT_REFERENCES:
            outputs.append(
                await self.run(
                    ["add", f"{source}/{source}.csproj", "reference", f"{target}/{target}.csproj"],
                    cwd=root,
                )
            )

        return "\n".join(part for part in outputs if part)
