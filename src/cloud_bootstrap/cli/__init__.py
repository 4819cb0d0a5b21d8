"""Command-line interface for cloud-bootstrap."""

from cloud_bootstrap.cli.main import cli

__all__ = ["cli"]
