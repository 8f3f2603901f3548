"""Shared pytest fixtures."""

import os
from pathlib import Path

import pytest

from comfy_provision.provisioner.provision_config import (
    DOWNLOAD_ENV_PREFIX,
    HF_TOKEN_ENV_VARS,
    ProvisionSettings,
)

from .provision_helpers import FakeTransfer


@pytest.fixture
def fake_transfer():
    return FakeTransfer()


@pytest.fixture
def clean_env(monkeypatch):
    """Remove provisioning variables inherited from the developer's shell."""
    for key in list(os.environ):
        if key.startswith(DOWNLOAD_ENV_PREFIX) or key.startswith("INSTALL_"):
            monkeypatch.delenv(key, raising=False)
    for key in HF_TOKEN_ENV_VARS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("COMFY_PROVISION_WORKSPACE", raising=False)


@pytest.fixture
def settings(tmp_path: Path) -> ProvisionSettings:
    return ProvisionSettings(workspace_dir=tmp_path)
