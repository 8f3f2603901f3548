"""Model group definitions, URL parsing and path derivation."""

from .artifacts import (
    ArtifactRef,
    DownloadTarget,
    build_download_target,
    get_model_output_dir,
    parse_artifact_entry,
)
from .errors import (
    BootstrapError,
    ConfigurationError,
    ParseError,
    ProvisionError,
    ProvisioningInterrupted,
    RelocationError,
    TransferError,
)
from .group_resolver import GroupResolution, resolve_enabled_groups
from .hf_url import HfFileLocation, parse_hf_url
from .model_groups import (
    ModelGroup,
    ModelGroupRegistry,
    get_builtin_registry,
    load_registry_from_yaml,
)

__all__ = [
    "ArtifactRef",
    "BootstrapError",
    "ConfigurationError",
    "DownloadTarget",
    "GroupResolution",
    "HfFileLocation",
    "ModelGroup",
    "ModelGroupRegistry",
    "ParseError",
    "ProvisionError",
    "ProvisioningInterrupted",
    "RelocationError",
    "TransferError",
    "build_download_target",
    "get_builtin_registry",
    "get_model_output_dir",
    "load_registry_from_yaml",
    "parse_artifact_entry",
    "parse_hf_url",
    "resolve_enabled_groups",
]
