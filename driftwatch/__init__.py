"""Drift audit for Atlantis-managed Terraform repositories."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("driftwatch")
except PackageNotFoundError:
    # running from a source tree without an install
    __version__ = "0.0.0"

__all__ = ["__version__"]
