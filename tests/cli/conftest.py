"""Fixtures for CLI tests."""

import pytest
from click.testing import CliRunner

from sitecontent.cli.main import cli


@pytest.fixture
def data_dir(tmp_path):
    """Local data directory used by the filesystem driver."""
    return tmp_path / "content-data"


@pytest.fixture
def invoke(data_dir):
    """Run the CLI against local file storage."""
    runner = CliRunner()

    def _invoke(args, input=None, local=True):
        if local:
            args = ["--driver", "filesystem", "--data-dir", str(data_dir), *args]
        return runner.invoke(cli, args, input=input)

    return _invoke
