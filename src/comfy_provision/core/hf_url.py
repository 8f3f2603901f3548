"""
Parser for Hugging Face file URLs.

Only the ``resolve`` form is accepted::

    https://huggingface.co/<namespace>/<repo>/resolve/<revision>/[<subfolder>/]<filename>
"""

from urllib.parse import unquote, urlparse

from pydantic import BaseModel, ConfigDict

from .errors import ParseError

HF_HOSTS = {"huggingface.co", "www.huggingface.co"}
RESOLVE_MARKER = "resolve"


class HfFileLocation(BaseModel):
    """
    Location of a single file inside a Hugging Face repository.

    Attributes:
        repo_id: Repository ID (e.g., "StableDiffusionVN/Flux")
        revision: Branch, tag or commit following the resolve marker
        subfolder: Path between the revision and the filename, "" if none
        filename: Final path segment of the URL
    """

    model_config = ConfigDict(frozen=True)

    repo_id: str
    revision: str
    subfolder: str = ""
    filename: str

    @property
    def repo_path(self) -> str:
        """Path of the file relative to the repository root."""
        if self.subfolder:
            return f"{self.subfolder}/{self.filename}"
        return self.filename


def parse_hf_url(url: str) -> HfFileLocation:
    """
    Parse a Hugging Face ``resolve`` URL into its repository coordinates.

    Args:
        url: Source URL of a model file

    Returns:
        HfFileLocation for the URL

    Raises:
        ParseError: If the URL does not point at a file on huggingface.co
    """
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or parsed.hostname not in HF_HOSTS:
        raise ParseError(f"Not a Hugging Face URL: {url!r}")

    segments = [unquote(s) for s in parsed.path.split("/") if s]
    # namespace, repo, resolve, revision, filename
    if len(segments) < 5 or segments[2] != RESOLVE_MARKER:
        raise ParseError(
            f"Expected '<namespace>/<repo>/resolve/<revision>/<filename>' in {url!r}"
        )
    if any(s in (".", "..") for s in segments):
        raise ParseError(f"Relative path segments are not allowed: {url!r}")

    namespace, repo_name, _, revision = segments[:4]
    *subfolder_parts, filename = segments[4:]

    return HfFileLocation(
        repo_id=f"{namespace}/{repo_name}",
        revision=revision,
        subfolder="/".join(subfolder_parts),
        filename=filename,
    )
