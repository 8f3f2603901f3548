"""ComfyUI core installation, optional performance extras, and launch."""

import logging
import shlex
import subprocess
import sys
from pathlib import Path

from comfy_provision.core.errors import BootstrapError

from .commands import pip_command, run_command
from .provision_config import ProvisionSettings

logger = logging.getLogger(__name__)

COMFYUI_REPO_URL = "https://github.com/comfyanonymous/ComfyUI.git"
SAGE_ATTENTION_REPO_URL = "https://github.com/thu-ml/SageAttention.git"
SAGE_ATTENTION_DIR_NAME = "SageAttention"

# CUDA 12.8 compatible nightly builds
PYTORCH_NIGHTLY_INDEX_URL = "https://download.pytorch.org/whl/nightly/cu128"
PYTORCH_PACKAGES = ["torch", "torchvision", "torchaudio"]

_TORCH_VERSION_SNIPPET = (
    "import torch; "
    "print(f'PyTorch {torch.version.__version__} (CUDA: {torch.version.cuda})')"
)


def log_installation_decisions(settings: ProvisionSettings) -> None:
    logger.info("Installation configuration:")
    for name, value in (
        ("INSTALL_COMFYUI", settings.install_comfyui),
        ("INSTALL_CUSTOM_NODES", settings.install_custom_nodes),
        ("INSTALL_SAGE_ATTENTION", settings.install_sage_attention),
        ("INSTALL_PYTORCH_NIGHTLY", settings.install_pytorch_nightly),
    ):
        logger.info(f"  {name}: {str(value).lower()} {'✅' if value else '❌'}")


def install_comfyui_core(settings: ProvisionSettings) -> None:
    """
    Clone ComfyUI and install its requirements if it is not already present.

    Raises:
        BootstrapError: If cloning or installing requirements fails
    """
    if not settings.install_comfyui:
        logger.info(
            "Skipping ComfyUI core installation (INSTALL_COMFYUI is not set to true)"
        )
        return

    comfyui_dir = settings.comfyui_dir
    if comfyui_dir.exists():
        logger.warning(f"ComfyUI directory already exists: {comfyui_dir}")
        return

    logger.info("Installing ComfyUI core...")
    comfyui_dir.parent.mkdir(parents=True, exist_ok=True)
    if run_command(["git", "clone", COMFYUI_REPO_URL, str(comfyui_dir)]).returncode != 0:
        raise BootstrapError(f"Failed to clone ComfyUI into {comfyui_dir}")

    requirements = comfyui_dir / "requirements.txt"
    result = run_command(pip_command("install", "-r", str(requirements)), cwd=comfyui_dir)
    if result.returncode != 0:
        raise BootstrapError("Failed to install ComfyUI requirements")
    logger.info("ComfyUI core installed")


def get_sage_attention_dir(settings: ProvisionSettings) -> Path:
    """SageAttention checkout, inside the ComfyUI directory when it exists."""
    if settings.comfyui_dir.is_dir():
        return settings.comfyui_dir / SAGE_ATTENTION_DIR_NAME
    return settings.workspace_dir / SAGE_ATTENTION_DIR_NAME


def install_sage_attention(settings: ProvisionSettings) -> bool:
    """
    Build and install SageAttention from source when enabled.

    Returns:
        True if SageAttention is installed or already present, False otherwise
    """
    if not settings.install_sage_attention:
        logger.info(
            "Skipping SageAttention installation "
            "(INSTALL_SAGE_ATTENTION is not set to true)"
        )
        return False

    sage_dir = get_sage_attention_dir(settings)
    if sage_dir.exists():
        logger.warning("SageAttention directory already exists, skipping installation")
        return True

    logger.info("Installing SageAttention library for faster attention computation...")
    if run_command(["git", "clone", SAGE_ATTENTION_REPO_URL, str(sage_dir)]).returncode != 0:
        return False
    if run_command(pip_command("install", "."), cwd=sage_dir).returncode != 0:
        return False

    logger.info("SageAttention library installed")
    return True


def install_pytorch_nightly(settings: ProvisionSettings) -> bool:
    """
    Replace the installed PyTorch with the latest nightly build when enabled.

    Runs before anything else is installed so later requirements resolve
    against the nightly torch.
    """
    if not settings.install_pytorch_nightly:
        logger.info(
            "Skipping PyTorch nightly installation "
            "(INSTALL_PYTORCH_NIGHTLY is not set to true)"
        )
        return False

    logger.info("Installing PyTorch nightly build...")
    logger.warning(
        "This will replace the current PyTorch installation with the latest nightly build"
    )
    result = run_command(
        pip_command(
            "install",
            "--upgrade",
            "--pre",
            *PYTORCH_PACKAGES,
            "--index-url",
            PYTORCH_NIGHTLY_INDEX_URL,
        )
    )
    if result.returncode != 0:
        return False

    logger.info("PyTorch nightly build installed")
    version = run_command([sys.executable, "-c", _TORCH_VERSION_SNIPPET])
    if version.returncode == 0:
        logger.info(f"Installed version: {version.stdout.strip()}")
    else:
        logger.info("Installed version: Unable to detect version")
    return True


def build_launch_command(settings: ProvisionSettings) -> list[str]:
    """Arguments that start ComfyUI, run from inside the ComfyUI directory."""
    command = [
        sys.executable,
        "main.py",
        "--listen",
        settings.listen_host,
        "--port",
        str(settings.listen_port),
    ]
    if settings.install_sage_attention:
        command.append("--use-sage-attention")
    return command


def format_launch_command(settings: ProvisionSettings) -> str:
    """Shell-ready form of the launch command, for display only."""
    return f"cd {shlex.quote(str(settings.comfyui_dir))} && " + shlex.join(
        build_launch_command(settings)
    )


def start_comfyui(settings: ProvisionSettings) -> int:
    """
    Run ComfyUI in the foreground.

    Returns:
        ComfyUI's exit code, or 0 if ComfyUI installation was skipped
    """
    if not settings.install_comfyui:
        logger.info("ComfyUI installation was skipped - cannot start ComfyUI")
        logger.info(
            "To start ComfyUI later, set INSTALL_COMFYUI=true and re-run the script"
        )
        return 0

    if settings.install_sage_attention:
        logger.info("SageAttention enabled - using --use-sage-attention flag")
    logger.info(f"Starting ComfyUI on {settings.listen_host}:{settings.listen_port}")

    return subprocess.run(build_launch_command(settings), cwd=settings.comfyui_dir).returncode
