"""Decides which model groups a run downloads."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from .errors import ConfigurationError
from .model_groups import ModelGroupRegistry

logger = logging.getLogger(__name__)


@dataclass
class GroupResolution:
    """Result of group resolution."""

    enabled: list[str] = field(default_factory=list)
    errors: list[ConfigurationError] = field(default_factory=list)


def resolve_enabled_groups(
    registry: ModelGroupRegistry,
    overrides: Mapping[str, bool] | None = None,
    download_all: bool = False,
) -> GroupResolution:
    """
    Produce the ordered list of enabled group names.

    Args:
        registry: Model groups in declaration order
        overrides: Per-group enable flags, keyed by group name. Groups without
                   an override fall back to their declared default.
        download_all: Enable every group regardless of its flag

    Returns:
        GroupResolution with enabled names in registry order. Overrides that
        enable an unknown group are reported in ``errors``; disabled ones are
        ignored.
    """
    overrides = overrides or {}
    resolution = GroupResolution()

    for name, enabled in overrides.items():
        if name in registry:
            continue
        if not enabled:
            # DOWNLOAD_DIR and similar unrelated variables land here
            logger.debug(f"Ignoring disabled override for unknown group: {name}")
            continue
        error = ConfigurationError(f"Unknown model group referenced: {name}")
        logger.error(str(error))
        resolution.errors.append(error)

    for group in registry:
        if download_all or overrides.get(group.name, group.enabled_by_default):
            resolution.enabled.append(group.name)

    return resolution
