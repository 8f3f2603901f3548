"""
Provision a ComfyUI instance: install ComfyUI, its custom nodes and model
files, then launch it.

Configuration is read from environment variables, see
`comfy_provision.provisioner.provision_config`.
"""

import argparse
import logging
import os
import signal
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from comfy_provision.core.errors import ProvisionError, ProvisioningInterrupted
from comfy_provision.core.model_groups import (
    get_builtin_registry,
    load_registry_from_yaml,
)
from comfy_provision.provisioner.comfyui import (
    format_launch_command,
    install_comfyui_core,
    install_pytorch_nightly,
    install_sage_attention,
    log_installation_decisions,
    start_comfyui,
)
from comfy_provision.provisioner.custom_nodes import (
    DEFAULT_CUSTOM_NODES,
    install_custom_nodes,
)
from comfy_provision.provisioner.logs_config import (
    cleanup_old_logs,
    ensure_logs_dir,
    get_current_log_file,
)
from comfy_provision.provisioner.orchestrator import provision_models
from comfy_provision.provisioner.provision_config import ProvisionSettings

logger = logging.getLogger(__name__)

# Exit code for SIGINT/SIGTERM
INTERRUPTED_EXIT_CODE = 130

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging() -> Path:
    """Configure console and rotating file logging. Returns the log file path."""
    # Ensure logs directory exists and clean up old logs
    ensure_logs_dir()
    cleanup_old_logs(max_age_days=1)  # Delete logs older than 1 day
    log_file = get_current_log_file()

    # Configure logging - set root to WARNING to keep non-app libraries quiet by default
    logging.basicConfig(level=logging.WARNING, format=LOG_FORMAT)

    # Console handler handles INFO
    root_logger = logging.getLogger()
    for handler in root_logger.handlers:
        if isinstance(handler, logging.StreamHandler) and not isinstance(
            handler, RotatingFileHandler
        ):
            handler.setLevel(logging.INFO)

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=5 * 1024 * 1024,  # 5 MB per file
        backupCount=5,  # Keep 5 backup files
    )
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(file_handler)

    logging.getLogger("comfy_provision").setLevel(logging.INFO)

    # Enable verbose logging for other libraries when needed
    if os.getenv("VERBOSE_LOGGING"):
        logging.getLogger("huggingface_hub").setLevel(logging.INFO)
        logging.getLogger("comfy_provision").setLevel(logging.DEBUG)

    return log_file


def _raise_interrupted(signum, frame):
    raise ProvisioningInterrupted(f"Received signal {signal.Signals(signum).name}")


def run(args: argparse.Namespace) -> int:
    """Execute a provisioning run. Returns the process exit code."""
    settings = ProvisionSettings.from_env(workspace_dir=args.workspace)
    if args.groups_file:
        registry = load_registry_from_yaml(args.groups_file)
    else:
        registry = get_builtin_registry()

    logger.info("Starting ComfyUI provisioning script...")
    settings.workspace_dir.mkdir(parents=True, exist_ok=True)
    log_installation_decisions(settings)

    if args.skip_bootstrap:
        logger.info("Skipping ComfyUI, extras and custom node installation")
    else:
        # PyTorch nightly must be in place before other dependencies are installed
        install_pytorch_nightly(settings)
        install_comfyui_core(settings)
        install_sage_attention(settings)
        if settings.install_custom_nodes:
            install_custom_nodes(DEFAULT_CUSTOM_NODES, settings.custom_nodes_dir)
        else:
            logger.info(
                "Skipping custom nodes installation "
                "(INSTALL_CUSTOM_NODES is not set to true)"
            )

    provision_models(registry, settings)
    logger.info("ComfyUI provisioning completed successfully!")

    if not args.setup_only:
        return start_comfyui(settings)

    if settings.install_comfyui:
        logger.info(
            f"Setup complete. Run '{format_launch_command(settings)}' to start ComfyUI"
        )
    else:
        logger.info("Setup complete. ComfyUI installation was skipped.")
        logger.info(
            "To install and start ComfyUI, set INSTALL_COMFYUI=true and re-run the script"
        )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="comfy-provision",
        description="Provision ComfyUI with custom nodes and models, then start it",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Install everything, download SDXL models and start ComfyUI
  DOWNLOAD_SDXL=true comfy-provision

  # Download every model group without starting ComfyUI
  DOWNLOAD_ALL=true comfy-provision --setup-only

  # Use a custom model group table
  comfy-provision --groups-file groups.yaml --skip-bootstrap --setup-only
        """,
    )
    parser.add_argument(
        "--setup-only",
        action="store_true",
        help="Provision but do not start ComfyUI.",
    )
    parser.add_argument(
        "--workspace",
        "-w",
        type=Path,
        default=None,
        help="Workspace directory (default: $COMFY_PROVISION_WORKSPACE or /workspace).",
    )
    parser.add_argument(
        "--groups-file",
        "-g",
        type=Path,
        default=None,
        help="YAML file with model groups, replaces the built-in table.",
    )
    parser.add_argument(
        "--skip-bootstrap",
        action="store_true",
        help="Only download models; skip ComfyUI, extras and custom nodes.",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the comfy-provision command."""
    args = build_parser().parse_args(argv)
    setup_logging()
    signal.signal(signal.SIGTERM, _raise_interrupted)

    try:
        exit_code = run(args)
    except (KeyboardInterrupt, ProvisioningInterrupted):
        logger.warning("Script interrupted. Cleaning up...")
        sys.exit(INTERRUPTED_EXIT_CODE)
    except ProvisionError as e:
        logger.error(f"Provisioning failed: {e}")
        sys.exit(1)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
