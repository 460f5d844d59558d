"""Configuration API endpoints"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ValidationError

from format_modifications.models.diff import DiffOptions
from format_modifications.services.config_manager import ConfigManager
from format_modifications.services.vcs import VCS_CLIENTS

router = APIRouter()


class ConfigUpdateRequest(BaseModel):
    """Request to update configuration"""

    diff_options: dict | None = None
    format_on_save: bool | None = None
    vcs: str | None = None
    command_timeout_s: float | None = None


class ConfigResponse(BaseModel):
    """Configuration response"""

    diff_options: DiffOptions
    format_on_save: bool
    vcs: str
    command_timeout_s: float | None = None
    formatters: dict[str, dict]


class FormatterDefinition(BaseModel):
    """Formatter command as stored in the configuration"""

    command: list[str]
    range_args: list[str] | None = None
    file_args: list[str] = []
    cwd: str | None = None


@router.get("", response_model=ConfigResponse)
async def get_config() -> ConfigResponse:
    """Get current configuration"""
    config = ConfigManager.get_instance().get_config()

    return ConfigResponse(
        diff_options=DiffOptions.model_validate(config["diff_options"]),
        format_on_save=config["format_on_save"],
        vcs=config["vcs"],
        command_timeout_s=config.get("command_timeout_s"),
        formatters=config.get("formatters", {}),
    )


@router.put("")
async def update_config(request: ConfigUpdateRequest) -> dict[str, Any]:
    """Update configuration"""
    config_manager = ConfigManager.get_instance()
    current_config = config_manager.get_config()

    # Update only provided fields
    if request.diff_options is not None:
        diff_options = {**current_config["diff_options"], **request.diff_options}
        try:
            DiffOptions.model_validate(diff_options)
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=f"Invalid diff options: {e}")
        current_config["diff_options"] = diff_options
    if request.format_on_save is not None:
        current_config["format_on_save"] = request.format_on_save
    if request.vcs is not None:
        if request.vcs not in VCS_CLIENTS:
            raise HTTPException(status_code=400, detail=f"VCS {request.vcs} isn't supported")
        current_config["vcs"] = request.vcs
    if "command_timeout_s" in request.model_fields_set:
        current_config["command_timeout_s"] = request.command_timeout_s

    config_manager.save_config(current_config)

    return {"status": "success", "message": "Configuration updated"}


# ========== Formatter Client Definitions ==========


@router.get("/formatters")
async def list_formatters() -> dict[str, Any]:
    """List configured formatter clients"""
    formatters = ConfigManager.get_instance().get_formatters()
    return {
        "formatters": [
            {
                "name": name,
                "supportsRangeFormatting": definition.get("range_args") is not None,
                **definition,
            }
            for name, definition in formatters.items()
        ]
    }


@router.put("/formatters/{name}")
async def set_formatter(name: str, request: FormatterDefinition) -> dict[str, Any]:
    """Add or replace a formatter client definition"""
    if not request.command:
        raise HTTPException(status_code=400, detail="Formatter command is required")

    definition = request.model_dump()
    ConfigManager.get_instance().set_formatter(name, definition)

    return {"success": True, "message": f"Formatter {name} saved"}


@router.delete("/formatters/{name}")
async def remove_formatter(name: str) -> dict[str, Any]:
    """Remove a formatter client definition"""
    if not ConfigManager.get_instance().remove_formatter(name):
        raise HTTPException(status_code=404, detail=f"Formatter {name} not found")

    return {"success": True, "message": f"Formatter {name} removed"}
