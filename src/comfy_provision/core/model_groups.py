"""
Named model groups and the registry that holds them.

Built-in groups are defined here. Additional tables can be loaded from YAML
with `load_registry_from_yaml`:

    groups:
      SDXL:
        default: false
        models:
          - "https://huggingface.co/<ns>/<repo>/resolve/main/<file>:checkpoints"
"""

import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class ModelGroup(BaseModel):
    """
    A named set of model files that is downloaded as a unit.

    Attributes:
        name: Unique identifier, also used in the DOWNLOAD_<name> variable
        enabled_by_default: Whether the group downloads when no override is set
        entries: Raw ``url:kind`` entries in download order. None when the
                 group is declared but has no model definition.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    enabled_by_default: bool = False
    entries: tuple[str, ...] | None = ()


class ModelGroupRegistry:
    """Immutable, ordered mapping of group name to ModelGroup."""

    def __init__(self, groups: Iterable[ModelGroup]):
        self._groups: dict[str, ModelGroup] = {}
        for group in groups:
            if group.name in self._groups:
                raise ConfigurationError(f"Duplicate model group: {group.name}")
            self._groups[group.name] = group

    @classmethod
    def from_table(
        cls,
        defaults: Sequence[tuple[str, bool]],
        definitions: Mapping[str, Sequence[str]],
    ) -> "ModelGroupRegistry":
        """Build a registry from (name, default) pairs and per-name entry lists.

        Names present in ``defaults`` but missing from ``definitions`` are kept
        with ``entries=None`` so the orchestrator can report them.
        """
        groups = []
        for name, default in defaults:
            entries = definitions.get(name)
            groups.append(
                ModelGroup(
                    name=name,
                    enabled_by_default=default,
                    entries=tuple(entries) if entries is not None else None,
                )
            )
        return cls(groups)

    def names(self) -> list[str]:
        return list(self._groups)

    def get(self, name: str) -> ModelGroup | None:
        return self._groups.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._groups

    def __iter__(self) -> Iterator[ModelGroup]:
        return iter(self._groups.values())

    def __len__(self) -> int:
        return len(self._groups)


# Declaration order is download order.
_BUILTIN_GROUP_DEFAULTS: list[tuple[str, bool]] = [
    ("SDXL", False),
    ("FLUX", False),
    ("SD3", False),
    ("CONTROLNET_EXTRAS", False),
    ("IPADAPTER", False),
    ("WAN21T2V14B", False),
]

_BUILTIN_GROUP_MODELS: dict[str, list[str]] = {
    "SDXL": [
        "https://huggingface.co/stabilityai/stable-diffusion-xl-base-1.0/resolve/main/sd_xl_base_1.0.safetensors:checkpoints",
        "https://huggingface.co/xinsir/controlnet-union-sdxl-1.0/resolve/main/diffusion_pytorch_model_promax.safetensors:controlnet",
    ],
    "FLUX": [
        "https://huggingface.co/city96/FLUX.1-dev-gguf/resolve/main/flux1-dev-Q8_0.gguf:diffusion_models",
        "https://huggingface.co/Shakker-Labs/FLUX.1-dev-ControlNet-Union-Pro/resolve/main/diffusion_pytorch_model.safetensors:controlnet",
        "https://huggingface.co/StableDiffusionVN/Flux/resolve/main/Vae/flux_vae.safetensors:vae",
        "https://huggingface.co/city96/t5-v1_1-xxl-encoder-gguf/resolve/main/t5-v1_1-xxl-encoder-Q8_0.gguf:text_encoders",
        "https://huggingface.co/QuantStack/FLUX.1-Kontext-dev-GGUF/resolve/main/flux1-kontext-dev-Q8_0.gguf:unet",
    ],
    "SD3": [
        "https://huggingface.co/Comfy-Org/stable-diffusion-3.5-fp8/resolve/main/text_encoders/clip_l.safetensors:text_encoders",
    ],
    "CONTROLNET_EXTRAS": [],
    "IPADAPTER": [],
    "WAN21T2V14B": [
        "https://huggingface.co/city96/Wan2.1-T2V-14B-gguf/resolve/main/wan2.1-t2v-14b-Q8_0.gguf:diffusion_models",
        "https://huggingface.co/Comfy-Org/Wan_2.1_ComfyUI_repackaged/resolve/main/split_files/vae/wan_2.1_vae.safetensors:vae",
        "https://huggingface.co/Comfy-Org/Wan_2.1_ComfyUI_repackaged/resolve/main/split_files/text_encoders/umt5_xxl_fp8_e4m3fn_scaled.safetensors:text_encoders",
    ],
}


def get_builtin_registry() -> ModelGroupRegistry:
    """Get the registry of built-in model groups."""
    return ModelGroupRegistry.from_table(_BUILTIN_GROUP_DEFAULTS, _BUILTIN_GROUP_MODELS)


def load_registry_from_yaml(path: Path) -> ModelGroupRegistry:
    """
    Load a model group table from a YAML file.

    Args:
        path: YAML file with a top-level ``groups`` mapping

    Returns:
        ModelGroupRegistry in file order

    Raises:
        ConfigurationError: If the file is not a valid group table
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to read model groups from {path}: {e}") from e

    groups_data = data.get("groups") if isinstance(data, dict) else None
    if not isinstance(groups_data, dict):
        raise ConfigurationError(f"{path}: expected a top-level 'groups' mapping")

    groups = []
    for name, spec in groups_data.items():
        spec = spec or {}
        if not isinstance(spec, dict):
            raise ConfigurationError(f"{path}: group {name!r} must be a mapping")
        models = spec.get("models")
        if models is not None and not isinstance(models, list):
            raise ConfigurationError(f"{path}: 'models' of group {name!r} must be a list")
        groups.append(
            ModelGroup(
                name=str(name),
                enabled_by_default=spec.get("default") in (True, "true"),
                entries=tuple(str(m) for m in models) if models is not None else None,
            )
        )

    logger.info(f"Loaded {len(groups)} model group(s) from {path}")
    return ModelGroupRegistry(groups)
