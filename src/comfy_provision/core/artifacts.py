"""
An artifact is a single model file a group asks for, plus where it goes.

Artifact entries are declared as ``"<url>:<kind>"`` strings. The kind names the
ComfyUI ``models/`` subdirectory the file belongs in (e.g. "checkpoints",
"vae", "controlnet").
"""

import re
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from .errors import ConfigurationError
from .hf_url import parse_hf_url

# A kind is a plain directory name. Anything with a slash means the split
# landed on the URL scheme colon instead of a real separator.
_KIND_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


class ArtifactRef(BaseModel):
    """
    Represents one ``url:kind`` entry of a model group.

    Attributes:
        source_url: Remote URL of the file
        destination_kind: Category label mapping to ``models/<kind>``
    """

    model_config = ConfigDict(frozen=True)

    source_url: str
    destination_kind: str


class DownloadTarget(BaseModel):
    """
    Where and how a single artifact is fetched. Computed per run, never stored.

    Attributes:
        output_dir: ``models/<kind>/<namespace>/<repo>`` for the artifact
        filename: Final path segment of the source URL
        subfolder: Repo path between revision and filename, dropped locally
        repo_id: Hugging Face repository ID
        revision: Revision to fetch
        artifact: The entry this target was derived from
    """

    model_config = ConfigDict(frozen=True)

    output_dir: Path
    filename: str
    subfolder: str = ""
    repo_id: str
    revision: str = "main"
    artifact: ArtifactRef

    @property
    def path(self) -> Path:
        """Flat on-disk location of the artifact."""
        return self.output_dir / self.filename


def parse_artifact_entry(entry: str) -> ArtifactRef:
    """
    Split a ``url:kind`` entry on its last colon.

    Raises:
        ConfigurationError: If the entry has no usable separator or either
            side is empty
    """
    entry = entry.strip()
    url, sep, kind = entry.rpartition(":")
    if not sep or not url or not _KIND_PATTERN.match(kind):
        raise ConfigurationError(
            f"Invalid model entry format: {entry!r} (expected format: url:type)"
        )
    return ArtifactRef(source_url=url, destination_kind=kind)


def get_model_output_dir(models_root: Path, destination_kind: str, repo_id: str) -> Path:
    """
    Get the directory an artifact is stored in.

    The remote ``namespace/repo`` is mirrored locally so files from different
    providers never collide.
    """
    return models_root / destination_kind / repo_id


def build_download_target(artifact: ArtifactRef, models_root: Path) -> DownloadTarget:
    """
    Derive the download target for an artifact.

    Raises:
        ParseError: If the source URL is not a Hugging Face resolve URL
    """
    location = parse_hf_url(artifact.source_url)
    return DownloadTarget(
        output_dir=get_model_output_dir(
            models_root, artifact.destination_kind, location.repo_id
        ),
        filename=location.filename,
        subfolder=location.subfolder,
        repo_id=location.repo_id,
        revision=location.revision,
        artifact=artifact,
    )
