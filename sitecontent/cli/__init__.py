"""Site content CLI.

Command-line access to the content store, built with Click and Rich.
"""

from sitecontent.cli.main import cli

__all__ = ["cli"]
