"""Unit tests for the Hugging Face URL parser."""

import pytest

from comfy_provision.core.errors import ParseError
from comfy_provision.core.hf_url import HfFileLocation, parse_hf_url

FLUX_VAE_URL = (
    "https://huggingface.co/StableDiffusionVN/Flux/resolve/main/Vae/flux_vae.safetensors"
)


class TestParseHfUrl:
    def test_url_with_subfolder(self):
        location = parse_hf_url(FLUX_VAE_URL)

        assert location.repo_id == "StableDiffusionVN/Flux"
        assert location.revision == "main"
        assert location.subfolder == "Vae"
        assert location.filename == "flux_vae.safetensors"

    def test_filename_directly_after_revision_has_empty_subfolder(self):
        location = parse_hf_url(
            "https://huggingface.co/stabilityai/stable-diffusion-xl-base-1.0"
            "/resolve/main/sd_xl_base_1.0.safetensors"
        )

        assert location.repo_id == "stabilityai/stable-diffusion-xl-base-1.0"
        assert location.filename == "sd_xl_base_1.0.safetensors"
        assert location.subfolder == ""

    def test_nested_subfolder(self):
        location = parse_hf_url(
            "https://huggingface.co/Comfy-Org/Wan_2.1_ComfyUI_repackaged/resolve/main"
            "/split_files/text_encoders/umt5_xxl_fp8_e4m3fn_scaled.safetensors"
        )

        assert location.subfolder == "split_files/text_encoders"
        assert location.repo_path == (
            "split_files/text_encoders/umt5_xxl_fp8_e4m3fn_scaled.safetensors"
        )

    def test_non_main_revision(self):
        location = parse_hf_url("https://huggingface.co/a/b/resolve/v1.0/model.bin")

        assert location.revision == "v1.0"

    def test_query_string_is_ignored(self):
        location = parse_hf_url(
            "https://huggingface.co/a/b/resolve/main/model.bin?download=true"
        )

        assert location.filename == "model.bin"

    def test_percent_escapes_are_decoded(self):
        location = parse_hf_url(
            "https://huggingface.co/a/b/resolve/main/Flux%20Klein.safetensors"
        )

        assert location.filename == "Flux Klein.safetensors"

    def test_parsing_is_pure(self):
        assert parse_hf_url(FLUX_VAE_URL) == parse_hf_url(FLUX_VAE_URL)

    def test_repo_path_without_subfolder(self):
        location = HfFileLocation(repo_id="a/b", revision="main", filename="m.bin")

        assert location.repo_path == "m.bin"

    @pytest.mark.parametrize(
        "url",
        [
            "",
            "onlyoneurlnoseparator",
            "https://example.com/a/b/resolve/main/model.bin",
            "ftp://huggingface.co/a/b/resolve/main/model.bin",
            "https://huggingface.co/a/b/blob/main/model.bin",
            "https://huggingface.co/a/b/resolve/main",
            "https://huggingface.co/a/b",
            "https://huggingface.co/a/b/resolve/main/../model.bin",
        ],
    )
    def test_malformed_urls_raise_parse_error(self, url):
        with pytest.raises(ParseError):
            parse_hf_url(url)
