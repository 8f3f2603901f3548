"""
Idempotent model file fetcher using huggingface_hub.

A file already present at ``models/<kind>/<namespace>/<repo>/<filename>`` is
trusted as complete and never fetched again. No checksums are verified.
"""

import logging
import os
import shutil
from enum import Enum
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel

from comfy_provision.core.artifacts import DownloadTarget
from comfy_provision.core.errors import (
    ProvisioningInterrupted,
    RelocationError,
    TransferError,
)

# Disable hf_transfer to use standard download method
# This prevents errors when HF_HUB_ENABLE_HF_TRANSFER=1 is set but hf_transfer is not installed
os.environ["HF_HUB_ENABLE_HF_TRANSFER"] = "0"

from huggingface_hub import hf_hub_download  # noqa: E402
from huggingface_hub.errors import HfHubHTTPError  # noqa: E402

logger = logging.getLogger(__name__)


class FetchStatus(str, Enum):
    DOWNLOADED = "downloaded"
    ALREADY_PRESENT = "already_present"
    TRANSFER_FAILED = "transfer_failed"
    RELOCATION_FAILED = "relocation_failed"
    INVALID_ENTRY = "invalid_entry"
    INVALID_URL = "invalid_url"

    @property
    def is_present(self) -> bool:
        """Whether the artifact is staged at its flat path."""
        return self in (FetchStatus.DOWNLOADED, FetchStatus.ALREADY_PRESENT)


class FetchResult(BaseModel):
    """Outcome of one artifact in a provisioning run."""

    group: str | None = None
    entry: str
    status: FetchStatus
    path: Path | None = None
    error: str | None = None


class Transfer(Protocol):
    """Fetches one file into ``target.output_dir`` and returns where it landed."""

    def download(self, target: DownloadTarget, token: str | None) -> Path: ...


class HfHubTransfer:
    """Transfer backed by `huggingface_hub.hf_hub_download`."""

    def download(self, target: DownloadTarget, token: str | None) -> Path:
        """
        Download a single file from the hub into the target directory.

        The hub keeps the repository layout under ``local_dir``, so a file in a
        subfolder lands at ``output_dir/<subfolder>/<filename>``.

        Args:
            target: Artifact to fetch
            token: Hugging Face token, or None for anonymous access

        Returns:
            Path of the downloaded file

        Raises:
            TransferError: If the download fails for any reason
        """
        try:
            path = hf_hub_download(
                repo_id=target.repo_id,
                filename=target.filename,
                subfolder=target.subfolder or None,
                revision=target.revision,
                local_dir=str(target.output_dir),
                # False disables the locally cached login for anonymous fetches
                token=token or False,
            )
        except HfHubHTTPError as e:
            raise TransferError(
                f"Hub request failed for {target.repo_id}/{target.filename}: {e}"
            ) from e
        except ProvisioningInterrupted:
            raise
        except Exception as e:
            raise TransferError(
                f"Download of {target.repo_id}/{target.filename} failed: {e}"
            ) from e
        return Path(path)


def check_hf_token(token: str | None) -> None:
    """Log whether downloads will be authenticated."""
    if token:
        logger.info("HF_TOKEN found - will use for authenticated downloads")
    else:
        logger.warning(
            "No HF_TOKEN environment variable found. "
            "Downloads will be limited to public models only."
        )
        logger.info(
            "To access private/gated models, set HF_TOKEN environment variable "
            "with your Hugging Face token"
        )


def _remove_empty_dirs(start: Path, stop_at: Path) -> None:
    """Remove ``start`` and its parents while they are empty, up to ``stop_at``."""
    stop_at = stop_at.resolve()
    current = start.resolve()
    while current != stop_at and stop_at in current.parents:
        try:
            current.rmdir()
        except OSError:
            # Not empty or not removable, leave the rest in place
            return
        current = current.parent


def relocate_to_flat_path(source: Path, target: DownloadTarget) -> Path:
    """
    Move a downloaded file from its nested repo path to ``target.path``.

    Intermediate directories emptied by the move are removed.

    Raises:
        RelocationError: If the file cannot be moved
    """
    destination = target.path
    try:
        shutil.move(str(source), str(destination))
    except (OSError, shutil.Error) as e:
        raise RelocationError(f"Failed to move {source} to {destination}: {e}") from e

    if not destination.is_file():
        raise RelocationError(f"{destination} is missing after relocation")

    _remove_empty_dirs(source.parent, target.output_dir)
    return destination


def fetch_target(
    target: DownloadTarget,
    transfer: Transfer,
    token: str | None = None,
    group: str | None = None,
) -> FetchResult:
    """
    Ensure the artifact is present at ``target.path``.

    Args:
        target: Artifact to fetch
        transfer: Transfer used when the file is absent
        token: Hugging Face token, or None for anonymous access
        group: Model group name, recorded in the result

    Returns:
        FetchResult describing what happened. Failures are reported, never raised.
    """
    entry = f"{target.artifact.source_url}:{target.artifact.destination_kind}"
    try:
        target.output_dir.mkdir(parents=True, exist_ok=True)
        already_present = target.path.is_file()
    except OSError as e:
        logger.error(f"Cannot prepare {target.output_dir} for {target.filename}: {e}")
        return FetchResult(
            group=group, entry=entry, status=FetchStatus.TRANSFER_FAILED, error=str(e)
        )

    if already_present:
        logger.warning(f"File {target.filename} already exists, skipping download")
        return FetchResult(
            group=group,
            entry=entry,
            status=FetchStatus.ALREADY_PRESENT,
            path=target.path,
        )

    logger.info(
        f"Downloading {target.artifact.destination_kind} model: {target.filename} "
        f"from {target.repo_id} to {target.output_dir}/"
    )
    try:
        landed = transfer.download(target, token)
    except TransferError as e:
        logger.error(f"Failed to download {target.filename}: {e}")
        return FetchResult(
            group=group, entry=entry, status=FetchStatus.TRANSFER_FAILED, error=str(e)
        )

    if landed.resolve() != target.path.resolve():
        try:
            relocate_to_flat_path(landed, target)
        except RelocationError as e:
            logger.error(f"Downloaded {target.filename} but could not stage it: {e}")
            return FetchResult(
                group=group,
                entry=entry,
                status=FetchStatus.RELOCATION_FAILED,
                path=landed,
                error=str(e),
            )

    logger.info(f"Downloaded {target.filename}")
    return FetchResult(
        group=group, entry=entry, status=FetchStatus.DOWNLOADED, path=target.path
    )
