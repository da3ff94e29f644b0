"""Tests for the command-line interface."""

import json
import textwrap

from click.testing import CliRunner

from deferunit.cli import main

SUITE_MODULE = textwrap.dedent(
    """
    from deferunit import Assert, TestSuite, decorators as du


    class Cases:
        @du.test
        def passes(self):
            Assert.is_true(True)


    class Broken:
        @du.test
        def fails(self):
            Assert.fail("broken")


    class Green(TestSuite):
        def __init__(self):
            super().__init__()
            self.add(Cases)


    class Red(TestSuite):
        def __init__(self):
            super().__init__()
            self.add(Cases)
            self.add(Broken)
    """
)


def write_project(tmp_path, suites):
    (tmp_path / "cli_sample_suites.py").write_text(SUITE_MODULE)
    config_path = tmp_path / "deferunit.json"
    config_path.write_text(
        json.dumps(
            {
                "suites": suites,
                "report": {"html": True, "output_dir": "out", "filename": "report.html"},
            }
        )
    )
    return config_path


class TestInit:
    """Tests for the init command."""

    def test_creates_config(self, tmp_path):
        """Test init writes a configuration file."""
        output = tmp_path / "deferunit.json"
        result = CliRunner().invoke(main, ["init", "--output", str(output)])

        assert result.exit_code == 0
        assert json.loads(output.read_text())["suites"] == ["tests.suite:AllTests"]

    def test_refuses_overwrite(self, tmp_path):
        """Test init does not overwrite without --force."""
        output = tmp_path / "deferunit.json"
        output.write_text("{}")

        result = CliRunner().invoke(main, ["init", "--output", str(output)])
        assert result.exit_code == 1
        assert output.read_text() == "{}"


class TestRun:
    """Tests for the run command."""

    def test_successful_run(self, tmp_path):
        """Test a passing suite exits 0 and writes the HTML report."""
        config_path = write_project(tmp_path, ["cli_sample_suites:Green"])
        result = CliRunner().invoke(main, ["--config", str(config_path), "run"])

        assert result.exit_code == 0, result.output
        assert (tmp_path / "out" / "report.html").exists()

    def test_failing_run(self, tmp_path):
        """Test a failing suite exits 1."""
        config_path = write_project(tmp_path, ["cli_sample_suites:Green"])
        result = CliRunner().invoke(
            main,
            ["--config", str(config_path), "run", "cli_sample_suites:Red", "--no-report"],
        )

        assert result.exit_code == 1
        assert "broken" in result.output
        assert not (tmp_path / "out" / "report.html").exists()

    def test_bad_suite_path(self, tmp_path):
        """Test an invalid suite path is rejected."""
        config_path = write_project(tmp_path, [])
        result = CliRunner().invoke(main, ["--config", str(config_path), "run", "nocolon"])

        assert result.exit_code != 0
