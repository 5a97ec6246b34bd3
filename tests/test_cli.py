# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the buffer-sweeper command line.
"""

import pytest
import yaml

from buffer_sweeper import __version__
from buffer_sweeper.cli import main


class TestCli:
    """Tests for cli.main()."""

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main(["--version"])
        assert excinfo.value.code == 0
        assert __version__ in capsys.readouterr().out

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "buffer-sweeper" in capsys.readouterr().out

    def test_show_defaults_is_valid_yaml(self, capsys):
        assert main(["show-defaults"]) == 0
        data = yaml.safe_load(capsys.readouterr().out)
        assert data["sweeper"]["inactivity_threshold_seconds"] == 1800
        assert data["sweeper"]["rules"][-1] == {"kill-property": "inactive"}

    def test_validate_prints_rules(self, tmp_path, capsys):
        path = tmp_path / "sweeper.yaml"
        path.write_text("sweeper:\n  rules:\n    - keep-name: notes\n    - return: kill\n")
        assert main(["validate", str(path)]) == 0
        out = capsys.readouterr().out
        assert "1. keep-name=notes" in out
        assert "2. return=kill" in out

    def test_validate_reports_errors(self, tmp_path, capsys):
        path = tmp_path / "sweeper.yaml"
        path.write_text("sweeper:\n  rules:\n    - keep-property: shiny\n")
        assert main(["validate", str(path)]) == 1
        assert "shiny" in capsys.readouterr().err
