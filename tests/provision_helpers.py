"""Test doubles shared by the provisioning tests."""

from comfy_provision.core.errors import TransferError


class FakeTransfer:
    """Transfer that writes placeholder files the way the hub lays them out."""

    def __init__(self, fail_for: set[str] | None = None):
        self.fail_for = fail_for or set()
        self.calls = []

    def download(self, target, token):
        self.calls.append((target, token))
        if target.filename in self.fail_for:
            raise TransferError(f"404 Client Error: {target.filename}")

        dest = target.output_dir
        if target.subfolder:
            dest = dest / target.subfolder
        dest = dest / target.filename
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(b"weights")
        return dest

    @property
    def downloaded_filenames(self) -> list[str]:
        return [target.filename for target, _ in self.calls]
