"""Unit tests for ComfyUI bootstrap and launch."""

import subprocess
import sys
from unittest.mock import MagicMock, patch

import pytest

from comfy_provision.core.errors import BootstrapError
from comfy_provision.provisioner.comfyui import (
    COMFYUI_REPO_URL,
    PYTORCH_NIGHTLY_INDEX_URL,
    build_launch_command,
    format_launch_command,
    install_comfyui_core,
    install_pytorch_nightly,
    install_sage_attention,
    start_comfyui,
)
from comfy_provision.provisioner.provision_config import ProvisionSettings


def _completed(returncode=0, stdout=""):
    return subprocess.CompletedProcess([], returncode, stdout=stdout, stderr="")


class TestLaunchCommand:
    def test_default_command(self, settings):
        assert build_launch_command(settings) == [
            sys.executable,
            "main.py",
            "--listen",
            "0.0.0.0",
            "--port",
            "3000",
        ]

    def test_sage_attention_flag(self, tmp_path):
        settings = ProvisionSettings(workspace_dir=tmp_path, install_sage_attention=True)

        assert build_launch_command(settings)[-1] == "--use-sage-attention"

    def test_format_launch_command(self, settings):
        command = format_launch_command(settings)

        assert command.startswith(f"cd {settings.comfyui_dir} && ")
        assert "--port 3000" in command


class TestInstallComfyuiCore:
    def test_skipped_when_disabled(self, tmp_path):
        settings = ProvisionSettings(workspace_dir=tmp_path, install_comfyui=False)

        with patch("comfy_provision.provisioner.comfyui.run_command") as mock_run:
            install_comfyui_core(settings)

        mock_run.assert_not_called()

    def test_existing_directory_is_kept(self, settings):
        settings.comfyui_dir.mkdir()

        with patch("comfy_provision.provisioner.comfyui.run_command") as mock_run:
            install_comfyui_core(settings)

        mock_run.assert_not_called()

    def test_clones_and_installs_requirements(self, settings):
        with patch(
            "comfy_provision.provisioner.comfyui.run_command",
            return_value=_completed(),
        ) as mock_run:
            install_comfyui_core(settings)

        clone_args = mock_run.call_args_list[0].args[0]
        assert clone_args == ["git", "clone", COMFYUI_REPO_URL, str(settings.comfyui_dir)]
        pip_call = mock_run.call_args_list[1]
        assert pip_call.args[0][-2:] == [
            "-r",
            str(settings.comfyui_dir / "requirements.txt"),
        ]
        assert pip_call.kwargs["cwd"] == settings.comfyui_dir

    def test_clone_failure_raises(self, settings):
        with patch(
            "comfy_provision.provisioner.comfyui.run_command",
            return_value=_completed(128),
        ):
            with pytest.raises(BootstrapError, match="Failed to clone ComfyUI"):
                install_comfyui_core(settings)


class TestOptionalExtras:
    def test_sage_attention_disabled(self, settings):
        with patch("comfy_provision.provisioner.comfyui.run_command") as mock_run:
            assert install_sage_attention(settings) is False

        mock_run.assert_not_called()

    def test_sage_attention_install(self, tmp_path):
        settings = ProvisionSettings(workspace_dir=tmp_path, install_sage_attention=True)

        with patch(
            "comfy_provision.provisioner.comfyui.run_command",
            return_value=_completed(),
        ) as mock_run:
            assert install_sage_attention(settings) is True

        assert mock_run.call_args_list[1].kwargs["cwd"] == tmp_path / "SageAttention"

    def test_sage_attention_cloned_inside_comfyui(self, tmp_path):
        settings = ProvisionSettings(workspace_dir=tmp_path, install_sage_attention=True)
        settings.comfyui_dir.mkdir()

        with patch(
            "comfy_provision.provisioner.comfyui.run_command",
            return_value=_completed(),
        ) as mock_run:
            assert install_sage_attention(settings) is True

        sage_dir = settings.comfyui_dir / "SageAttention"
        assert mock_run.call_args_list[0].args[0][-1] == str(sage_dir)
        assert mock_run.call_args_list[1].kwargs["cwd"] == sage_dir

    def test_sage_attention_already_present(self, tmp_path):
        settings = ProvisionSettings(workspace_dir=tmp_path, install_sage_attention=True)
        (tmp_path / "SageAttention").mkdir()

        with patch("comfy_provision.provisioner.comfyui.run_command") as mock_run:
            assert install_sage_attention(settings) is True

        mock_run.assert_not_called()

    def test_pytorch_nightly_disabled(self, settings):
        with patch("comfy_provision.provisioner.comfyui.run_command") as mock_run:
            assert install_pytorch_nightly(settings) is False

        mock_run.assert_not_called()

    def test_pytorch_nightly_install(self, tmp_path, caplog):
        caplog.set_level("INFO")
        settings = ProvisionSettings(workspace_dir=tmp_path, install_pytorch_nightly=True)

        with patch(
            "comfy_provision.provisioner.comfyui.run_command",
            side_effect=[_completed(), _completed(stdout="PyTorch 2.9.0 (CUDA: 12.8)\n")],
        ) as mock_run:
            assert install_pytorch_nightly(settings) is True

        pip_args = mock_run.call_args_list[0].args[0]
        assert "--pre" in pip_args
        assert pip_args[-2:] == ["--index-url", PYTORCH_NIGHTLY_INDEX_URL]
        assert "Installed version: PyTorch 2.9.0 (CUDA: 12.8)" in caplog.text


class TestStartComfyui:
    def test_not_started_when_install_skipped(self, tmp_path):
        settings = ProvisionSettings(workspace_dir=tmp_path, install_comfyui=False)

        with patch("comfy_provision.provisioner.comfyui.subprocess.run") as mock_run:
            assert start_comfyui(settings) == 0

        mock_run.assert_not_called()

    def test_runs_in_comfyui_directory(self, settings):
        with patch("comfy_provision.provisioner.comfyui.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=3)

            assert start_comfyui(settings) == 3

        args, kwargs = mock_run.call_args
        assert args[0] == build_launch_command(settings)
        assert kwargs["cwd"] == settings.comfyui_dir
