"""Unit tests for artifact entries and download target derivation."""

from pathlib import Path

import pytest

from comfy_provision.core.artifacts import (
    ArtifactRef,
    build_download_target,
    get_model_output_dir,
    parse_artifact_entry,
)
from comfy_provision.core.errors import ConfigurationError, ParseError

FLUX_VAE_URL = (
    "https://huggingface.co/StableDiffusionVN/Flux/resolve/main/Vae/flux_vae.safetensors"
)


class TestParseArtifactEntry:
    def test_splits_on_last_colon(self):
        artifact = parse_artifact_entry(f"{FLUX_VAE_URL}:vae")

        assert artifact == ArtifactRef(source_url=FLUX_VAE_URL, destination_kind="vae")

    def test_kind_with_underscores(self):
        artifact = parse_artifact_entry(f"{FLUX_VAE_URL}:diffusion_models")

        assert artifact.destination_kind == "diffusion_models"

    def test_surrounding_whitespace_is_ignored(self):
        artifact = parse_artifact_entry(f"  {FLUX_VAE_URL}:vae\n")

        assert artifact.source_url == FLUX_VAE_URL

    @pytest.mark.parametrize(
        "entry",
        [
            "onlyoneurlnoseparator",
            # Only the scheme colon is present
            FLUX_VAE_URL,
            f"{FLUX_VAE_URL}:",
            ":vae",
            f"{FLUX_VAE_URL}:vae/extra",
        ],
    )
    def test_malformed_entries_raise_configuration_error(self, entry):
        with pytest.raises(ConfigurationError, match="expected format: url:type"):
            parse_artifact_entry(entry)


class TestDownloadTarget:
    def test_get_model_output_dir_keeps_namespace(self):
        output_dir = get_model_output_dir(Path("models"), "vae", "StableDiffusionVN/Flux")

        assert output_dir == Path("models/vae/StableDiffusionVN/Flux")

    def test_build_download_target(self):
        artifact = ArtifactRef(source_url=FLUX_VAE_URL, destination_kind="vae")

        target = build_download_target(artifact, Path("models"))

        assert target.output_dir == Path("models/vae/StableDiffusionVN/Flux")
        assert target.filename == "flux_vae.safetensors"
        assert target.subfolder == "Vae"
        assert target.repo_id == "StableDiffusionVN/Flux"
        assert target.revision == "main"
        assert target.artifact is artifact
        assert target.path == Path(
            "models/vae/StableDiffusionVN/Flux/flux_vae.safetensors"
        )

    def test_build_download_target_rejects_non_hf_url(self, tmp_path):
        artifact = ArtifactRef(
            source_url="https://example.com/model.bin", destination_kind="vae"
        )

        with pytest.raises(ParseError):
            build_download_target(artifact, tmp_path / "models")

        assert not (tmp_path / "models").exists()
