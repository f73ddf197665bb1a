"""``/api/dotnet`` routes: SDK status, details and installation."""

from __future__ import annotations

from fastapi import APIRouter, Body, Depends

from ..models import DotNetInstallOptions
from ..scaffolder.dotnet import DotNetCli
from . import responses
from .deps import get_cli

router = APIRouter(prefix="/api/dotnet", tags=["dotnet"])

SUPPORTED_PLATFORMS = ("windows", "linux", "macos")
DOWNLOAD_URL = "https://dotnet.microsoft.com/download"


@router.get("/status")
async def status(cli: DotNetCli = Depends(get_cli)):
    info = await cli.check_installation()
    message = (
        f".NET {info.version} is installed"
        if info.is_installed
        else ".NET SDK not found on this system"
    )
    return responses.success(info, message)


@router.get("/info")
async def info(cli: DotNetCli = Depends(get_cli)):
    """Installation status plus the SDK base path reported by ``dotnet --info``."""
    details = await cli.check_installation()
    data = details.to_json_dict()
    data["installPath"] = await cli.get_install_path() if details.is_installed else None
    return responses.success(data, ".NET information retrieved successfully")


@router.get("/compatibility")
async def compatibility(cli: DotNetCli = Depends(get_cli)):
    details = await cli.check_installation()
    data = {
        "platform": details.platform,
        "architecture": details.architecture,
        "supported": details.platform in SUPPORTED_PLATFORMS,
        "recommendedVersion": "LTS",
        "downloadUrl": DOWNLOAD_URL,
    }
    return responses.success(data, "Compatibility information retrieved successfully")


@router.post("/install")
async def install(
    options: DotNetInstallOptions | None = Body(default=None),
    cli: DotNetCli = Depends(get_cli),
):
    """Install the SDK unless one is already present."""
    current = await cli.check_installation()
    if current.is_installed:
        return responses.success(current, f".NET {current.version} is already installed")
    result = await cli.install(options)
    if not result.success:
        return responses.error(f"{result.message}: {result.error}", 500)
    return responses.success(result, result.message, 201)


@router.post("/reinstall")
async def reinstall(
    options: DotNetInstallOptions | None = Body(default=None),
    cli: DotNetCli = Depends(get_cli),
):
    result = await cli.install(options)
    if not result.success:
        return responses.error(f"{result.message}: {result.error}", 500)
    return responses.success(result, f"Reinstall: {result.message}", 201)
