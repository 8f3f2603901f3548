"""
Batch model download across enabled model groups.

Groups, then the artifacts within a group, are processed strictly in order.
Every artifact is attempted once per run; re-running the provisioner is the
recovery path and is cheap because present files are skipped.
"""

import logging

from pydantic import BaseModel, Field

from comfy_provision.core.artifacts import build_download_target, parse_artifact_entry
from comfy_provision.core.errors import ConfigurationError, ParseError
from comfy_provision.core.group_resolver import resolve_enabled_groups
from comfy_provision.core.model_groups import ModelGroup, ModelGroupRegistry

from .download_models import (
    FetchResult,
    FetchStatus,
    HfHubTransfer,
    Transfer,
    check_hf_token,
    fetch_target,
)
from .provision_config import (
    DOWNLOAD_ALL_ENV_VAR,
    ProvisionSettings,
    group_env_var,
)

logger = logging.getLogger(__name__)


class ProvisionSummary(BaseModel):
    """Everything a provisioning run did, in processing order."""

    enabled_groups: list[str] = Field(default_factory=list)
    results: list[FetchResult] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    @property
    def present(self) -> list[FetchResult]:
        return [r for r in self.results if r.status.is_present]

    @property
    def failed(self) -> list[FetchResult]:
        return [r for r in self.results if not r.status.is_present]

    @property
    def downloaded(self) -> list[FetchResult]:
        return [r for r in self.results if r.status == FetchStatus.DOWNLOADED]


def log_download_decisions(
    registry: ModelGroupRegistry, settings: ProvisionSettings
) -> None:
    """Log the effective download flag of every group."""
    logger.info("Model download configuration:")

    if settings.download_all:
        logger.info(f"  {DOWNLOAD_ALL_ENV_VAR}: true (all models will be downloaded)")
        return

    for group in registry:
        enabled = settings.group_overrides.get(group.name, group.enabled_by_default)
        status = "✅" if enabled else "❌"
        logger.info(f"  {group_env_var(group.name)}: {str(enabled).lower()} {status}")


def download_model_group(
    group: ModelGroup,
    settings: ProvisionSettings,
    transfer: Transfer,
) -> list[FetchResult]:
    """
    Fetch every artifact of a group.

    Malformed entries and unparseable URLs are logged and reported in the
    results; they never stop the group.
    """
    results = []
    for entry in group.entries or ():
        if not entry.strip():
            continue

        try:
            artifact = parse_artifact_entry(entry)
        except ConfigurationError as e:
            logger.error(str(e))
            results.append(
                FetchResult(
                    group=group.name,
                    entry=entry,
                    status=FetchStatus.INVALID_ENTRY,
                    error=str(e),
                )
            )
            continue

        try:
            target = build_download_target(artifact, settings.models_dir)
        except ParseError as e:
            logger.error(f"Failed to parse HuggingFace URL: {artifact.source_url}")
            results.append(
                FetchResult(
                    group=group.name,
                    entry=entry,
                    status=FetchStatus.INVALID_URL,
                    error=str(e),
                )
            )
            continue

        results.append(
            fetch_target(target, transfer, token=settings.hf_token, group=group.name)
        )
    return results


def provision_models(
    registry: ModelGroupRegistry,
    settings: ProvisionSettings,
    transfer: Transfer | None = None,
) -> ProvisionSummary:
    """
    Download the models of every enabled group.

    Args:
        registry: Model groups in declaration order
        settings: Effective run configuration
        transfer: Transfer to use, defaults to HfHubTransfer

    Returns:
        ProvisionSummary with one result per attempted artifact
    """
    transfer = transfer or HfHubTransfer()

    logger.info("Starting model downloads...")
    check_hf_token(settings.hf_token)
    log_download_decisions(registry, settings)

    resolution = resolve_enabled_groups(
        registry, settings.group_overrides, settings.download_all
    )
    summary = ProvisionSummary(
        enabled_groups=resolution.enabled,
        errors=[str(e) for e in resolution.errors],
    )

    for group in registry:
        if group.name not in resolution.enabled:
            logger.info(
                f"Skipping {group.name} models "
                f"({group_env_var(group.name)} is not set to true)"
            )
            continue

        if group.entries is None:
            error = ConfigurationError(
                f"No model definition found for {group.name}"
            )
            logger.error(str(error))
            summary.errors.append(str(error))
            continue

        logger.info(f"Downloading {group.name} models...")
        results = download_model_group(group, settings, transfer)
        summary.results.extend(results)

        failed = sum(1 for r in results if not r.status.is_present)
        if failed:
            logger.warning(f"{group.name}: {failed} of {len(results)} model(s) failed")
        else:
            logger.info(f"{group.name} models downloaded")

    logger.info(
        f"Model download process completed: {len(summary.present)} present, "
        f"{len(summary.failed)} failed, {len(summary.errors)} configuration error(s)"
    )
    for result in summary.failed:
        logger.error(f"  [{result.status.value}] {result.entry}")

    return summary
