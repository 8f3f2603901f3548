"""
Error kinds raised while provisioning.

Everything except ProvisioningInterrupted is recovered locally: the offending
group or artifact is skipped and the batch continues.
"""


class ProvisionError(Exception):
    """Base class for all provisioning errors."""


class ConfigurationError(ProvisionError):
    """Unknown group referenced, or malformed ``url:kind`` artifact entry."""


class ParseError(ProvisionError):
    """Source URL does not have the expected Hugging Face ``resolve`` shape."""


class TransferError(ProvisionError):
    """The hub transfer failed (network, auth, not found)."""


class RelocationError(ProvisionError):
    """A fetched file could not be moved to its flat location."""


class ProvisioningInterrupted(ProvisionError):
    """The run received SIGINT/SIGTERM and must abort."""


class BootstrapError(ProvisionError):
    """An install step (git/pip) the run depends on failed."""
