"""
ComfyUI custom node installation.

Each node is a git repository cloned into ``custom_nodes/<repo-name>``, with its
requirements.txt installed when it ships one. Existing node directories are
left untouched.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from urllib.parse import urlparse

from .commands import pip_command, run_command

logger = logging.getLogger(__name__)

DEFAULT_CUSTOM_NODES = [
    "https://github.com/ltdrdata/ComfyUI-Manager.git",
    "https://github.com/kijai/ComfyUI-KJNodes.git",
    "https://github.com/aria1th/ComfyUI-LogicUtils.git",
    "https://github.com/Kosinkadink/ComfyUI-VideoHelperSuite.git",
    "https://github.com/Fannovel16/comfyui_controlnet_aux.git",
    "https://github.com/rgthree/rgthree-comfy.git",
    "https://github.com/city96/ComfyUI-GGUF",
    "https://github.com/yolain/ComfyUI-Easy-Use",
    "https://github.com/StableLlama/ComfyUI-basic_data_handling",
    "https://github.com/munkyfoot/ComfyUI-TextOverlay.git",
    "https://github.com/Nourepide/ComfyUI-Allor.git",
    "https://github.com/kijai/ComfyUI-segment-anything-2.git",
    "https://github.com/kijai/ComfyUI-WanVideoWrapper.git",
]


class NodeInstallStatus(str, Enum):
    INSTALLED = "installed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class NodeInstallResult:
    """Result of installing one custom node."""

    name: str
    status: NodeInstallStatus
    error_message: str | None = None


def get_node_name_from_url(url: str) -> str:
    """Repository name of a node: last URL path segment without ``.git``."""
    name = urlparse(url).path.rstrip("/").split("/")[-1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    if not name:
        raise ValueError(f"Cannot determine node name from URL: {url}")
    return name


def install_custom_node(repo_url: str, custom_nodes_dir: Path) -> NodeInstallResult:
    """
    Clone a custom node and install its requirements.

    Args:
        repo_url: Git URL of the node repository
        custom_nodes_dir: ComfyUI custom_nodes directory

    Returns:
        NodeInstallResult; failures are reported, not raised
    """
    try:
        node_name = get_node_name_from_url(repo_url)
    except ValueError as e:
        logger.error(str(e))
        return NodeInstallResult(
            name=repo_url, status=NodeInstallStatus.FAILED, error_message=str(e)
        )
    node_dir = custom_nodes_dir / node_name

    logger.info(f"Installing custom node: {node_name}")
    if node_dir.exists():
        logger.warning(f"{node_name} already exists, skipping")
        return NodeInstallResult(name=node_name, status=NodeInstallStatus.SKIPPED)

    custom_nodes_dir.mkdir(parents=True, exist_ok=True)
    clone = run_command(["git", "clone", repo_url, str(node_dir)])
    if clone.returncode != 0:
        return NodeInstallResult(
            name=node_name,
            status=NodeInstallStatus.FAILED,
            error_message=f"git clone failed: {clone.stderr.strip()}",
        )

    requirements = node_dir / "requirements.txt"
    if requirements.is_file():
        logger.info(f"Installing requirements for {node_name}")
        pip = run_command(pip_command("install", "-r", str(requirements)))
        if pip.returncode != 0:
            return NodeInstallResult(
                name=node_name,
                status=NodeInstallStatus.FAILED,
                error_message=f"pip install failed: {pip.stderr.strip()}",
            )
    else:
        logger.info(f"No requirements.txt found for {node_name}, skipping pip install")

    logger.info(f"Installed {node_name}")
    return NodeInstallResult(name=node_name, status=NodeInstallStatus.INSTALLED)


def install_custom_nodes(
    repo_urls: list[str], custom_nodes_dir: Path
) -> list[NodeInstallResult]:
    """Install custom nodes in order. A failed node does not stop the rest."""
    logger.info("Installing custom nodes...")
    results = [install_custom_node(url, custom_nodes_dir) for url in repo_urls]

    failed = [r.name for r in results if r.status == NodeInstallStatus.FAILED]
    if failed:
        logger.warning(f"Failed to install custom node(s): {', '.join(failed)}")
    else:
        logger.info("All custom nodes installed")
    return results
