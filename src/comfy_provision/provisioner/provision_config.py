"""
Provisioning configuration for comfy-provision.

All settings come from environment variables. Boolean flags are true only when
set to the literal "true"; unset or empty variables fall back to the default.

Workspace location:
- Default: /workspace
- Environment variable override: COMFY_PROVISION_WORKSPACE

Model download flags:
- DOWNLOAD_ALL forces every model group on
- DOWNLOAD_<GROUP> enables a single group

Installation flags:
- INSTALL_COMFYUI, INSTALL_CUSTOM_NODES (default: true)
- INSTALL_SAGE_ATTENTION, INSTALL_PYTORCH_NIGHTLY (default: false)
"""

import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, Field

from comfy_provision.core.errors import ConfigurationError

TRUTHY_VALUE = "true"

# Default workspace directory on vast.ai style instances
DEFAULT_WORKSPACE_DIR = "/workspace"

# Environment variable for overriding the workspace directory
WORKSPACE_DIR_ENV_VAR = "COMFY_PROVISION_WORKSPACE"

LISTEN_HOST_ENV_VAR = "COMFY_PROVISION_LISTEN_HOST"
LISTEN_PORT_ENV_VAR = "COMFY_PROVISION_LISTEN_PORT"

DEFAULT_LISTEN_HOST = "0.0.0.0"
DEFAULT_LISTEN_PORT = 3000

COMFYUI_DIR_NAME = "ComfyUI"

DOWNLOAD_ENV_PREFIX = "DOWNLOAD_"
DOWNLOAD_ALL_ENV_VAR = "DOWNLOAD_ALL"

INSTALL_COMFYUI_ENV_VAR = "INSTALL_COMFYUI"
INSTALL_CUSTOM_NODES_ENV_VAR = "INSTALL_CUSTOM_NODES"
INSTALL_SAGE_ATTENTION_ENV_VAR = "INSTALL_SAGE_ATTENTION"
INSTALL_PYTORCH_NIGHTLY_ENV_VAR = "INSTALL_PYTORCH_NIGHTLY"

# Environment variables holding a Hugging Face token, in priority order
HF_TOKEN_ENV_VARS = ("HF_TOKEN", "HUGGING_FACE_HUB_TOKEN")


def env_flag(name: str, default: bool, environ: Mapping[str, str] | None = None) -> bool:
    """Read a boolean flag. Only the literal "true" counts as true."""
    environ = os.environ if environ is None else environ
    value = environ.get(name)
    if not value:
        return default
    return value == TRUTHY_VALUE


def group_env_var(group_name: str) -> str:
    """Name of the environment variable that toggles a model group."""
    return f"{DOWNLOAD_ENV_PREFIX}{group_name}"


def get_group_overrides(environ: Mapping[str, str] | None = None) -> dict[str, bool]:
    """
    Collect per-group download overrides from DOWNLOAD_<GROUP> variables.

    Empty variables are treated as unset. DOWNLOAD_ALL is not a group and is
    excluded.
    """
    environ = os.environ if environ is None else environ
    overrides = {}
    for key, value in environ.items():
        if not key.startswith(DOWNLOAD_ENV_PREFIX) or key == DOWNLOAD_ALL_ENV_VAR:
            continue
        group_name = key[len(DOWNLOAD_ENV_PREFIX) :]
        if group_name and value:
            overrides[group_name] = value == TRUTHY_VALUE
    return overrides


def get_hf_token(environ: Mapping[str, str] | None = None) -> str | None:
    """
    Get the Hugging Face token.

    Priority:
    1. HF_TOKEN environment variable
    2. HUGGING_FACE_HUB_TOKEN environment variable

    Returns:
        str | None: The token, or None if not set
    """
    environ = os.environ if environ is None else environ
    for name in HF_TOKEN_ENV_VARS:
        token = environ.get(name, "").strip()
        if token:
            return token
    return None


def get_workspace_dir(environ: Mapping[str, str] | None = None) -> Path:
    """
    Get the workspace directory path.

    Priority order:
    1. COMFY_PROVISION_WORKSPACE environment variable
    2. Default: /workspace

    Returns:
        Path: Absolute path to the workspace directory
    """
    environ = os.environ if environ is None else environ
    env_dir = environ.get(WORKSPACE_DIR_ENV_VAR)
    if env_dir:
        return Path(env_dir).expanduser().resolve()
    return Path(DEFAULT_WORKSPACE_DIR)


class ProvisionSettings(BaseModel):
    """Effective configuration of a provisioning run."""

    workspace_dir: Path
    comfyui_dir_name: str = COMFYUI_DIR_NAME
    listen_host: str = DEFAULT_LISTEN_HOST
    listen_port: int = DEFAULT_LISTEN_PORT

    install_comfyui: bool = True
    install_custom_nodes: bool = True
    install_sage_attention: bool = False
    install_pytorch_nightly: bool = False

    download_all: bool = False
    group_overrides: dict[str, bool] = Field(default_factory=dict)
    hf_token: str | None = Field(default=None, repr=False)

    @property
    def comfyui_dir(self) -> Path:
        return self.workspace_dir / self.comfyui_dir_name

    @property
    def models_dir(self) -> Path:
        return self.comfyui_dir / "models"

    @property
    def custom_nodes_dir(self) -> Path:
        return self.comfyui_dir / "custom_nodes"

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        workspace_dir: Path | None = None,
    ) -> "ProvisionSettings":
        """Build settings from environment variables.

        Args:
            environ: Mapping to read from, defaults to os.environ
            workspace_dir: Explicit workspace, overrides COMFY_PROVISION_WORKSPACE
        """
        environ = os.environ if environ is None else environ
        port = environ.get(LISTEN_PORT_ENV_VAR) or DEFAULT_LISTEN_PORT
        try:
            port = int(port)
        except ValueError as e:
            raise ConfigurationError(
                f"{LISTEN_PORT_ENV_VAR} must be an integer, got {port!r}"
            ) from e
        return cls(
            workspace_dir=workspace_dir or get_workspace_dir(environ),
            listen_host=environ.get(LISTEN_HOST_ENV_VAR) or DEFAULT_LISTEN_HOST,
            listen_port=port,
            install_comfyui=env_flag(INSTALL_COMFYUI_ENV_VAR, True, environ),
            install_custom_nodes=env_flag(INSTALL_CUSTOM_NODES_ENV_VAR, True, environ),
            install_sage_attention=env_flag(
                INSTALL_SAGE_ATTENTION_ENV_VAR, False, environ
            ),
            install_pytorch_nightly=env_flag(
                INSTALL_PYTORCH_NIGHTLY_ENV_VAR, False, environ
            ),
            download_all=env_flag(DOWNLOAD_ALL_ENV_VAR, False, environ),
            group_overrides=get_group_overrides(environ),
            hf_token=get_hf_token(environ),
        )
