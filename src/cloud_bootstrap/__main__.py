"""Allow ``python -m cloud_bootstrap``."""

from cloud_bootstrap.cli.main import cli

if __name__ == "__main__":
    cli()
