"""Tests for the command-line interface."""

import pytest
from click.testing import CliRunner
from sqlalchemy import text

from finseed.cli import cli
from finseed.output import create_engine_from_url


@pytest.fixture
def runner():
    return CliRunner()


class TestGenerateCommand:

    def test_file_generation(self, runner, tmp_path):
        output = tmp_path / "data.sql"
        result = runner.invoke(cli, [
            "generate", "--sink", "file", "--output", str(output),
            "--users", "5", "--transactions-per-account", "1",
            "--seed", "1", "--no-progress",
        ])

        assert result.exit_code == 0, result.output
        assert "Generation complete" in result.output
        script = output.read_text(encoding="utf-8")
        assert sum(1 for l in script.splitlines() if l.startswith("INSERT INTO users ")) == 5
        assert sum(1 for l in script.splitlines() if l.startswith("INSERT INTO transactions ")) == 10

    def test_db_generation(self, runner, tmp_path):
        url = f"sqlite:///{tmp_path / 'cli.db'}"
        result = runner.invoke(cli, [
            "generate", "--sink", "db", "--database-url", url,
            "--users", "4", "--batch-size", "3", "--no-progress",
        ])

        assert result.exit_code == 0, result.output
        with create_engine_from_url(url).connect() as conn:
            assert conn.execute(text("SELECT COUNT(*) FROM accounts")).scalar() == 8

    def test_database_url_from_environment(self, runner, tmp_path):
        url = f"sqlite:///{tmp_path / 'env.db'}"
        result = runner.invoke(
            cli,
            ["generate", "--sink", "db", "--users", "2", "--no-progress"],
            env={"FINSEED_DATABASE_URL": url},
        )

        assert result.exit_code == 0, result.output
        assert (tmp_path / "env.db").exists()

    def test_config_file_with_override(self, runner, tmp_path):
        config = tmp_path / "finseed.yaml"
        output = tmp_path / "from_config.sql"
        config.write_text(f"sink: file\noutput_file: {output}\nusers: 50\nseed: 5\n")

        result = runner.invoke(cli, [
            "generate", "--config", str(config), "--users", "3", "--no-progress",
        ])

        assert result.exit_code == 0, result.output
        script = output.read_text(encoding="utf-8")
        assert sum(1 for l in script.splitlines() if l.startswith("INSERT INTO users ")) == 3

    def test_invalid_sink_rejected(self, runner, tmp_path):
        result = runner.invoke(cli, [
            "generate", "--sink", "parquet", "--output", str(tmp_path / "x.sql"),
        ])
        assert result.exit_code != 0

    def test_invalid_sink_in_config_file(self, runner, tmp_path):
        config = tmp_path / "bad.yaml"
        config.write_text("sink: csv\noutput_file: out.sql\n")

        result = runner.invoke(cli, ["generate", "--config", str(config)])

        assert result.exit_code != 0
        assert "Configuration error" in result.output
        assert not (tmp_path / "out.sql").exists()

    def test_quoted_count_in_config_file(self, runner, tmp_path):
        config = tmp_path / "typed.yaml"
        config.write_text(f"sink: file\noutput_file: {tmp_path / 'out.sql'}\nusers: '10'\n")

        result = runner.invoke(cli, ["generate", "--config", str(config), "--no-progress"])

        assert result.exit_code == 2
        assert "Configuration error" in result.output
        assert "users must be an integer" in result.output
        assert not (tmp_path / "out.sql").exists()

    def test_malformed_config_file(self, runner, tmp_path):
        config = tmp_path / "broken.yaml"
        config.write_text("sink: [file\noutput_file: out.sql\n")

        result = runner.invoke(cli, ["generate", "--config", str(config)])

        assert result.exit_code == 2
        assert "Configuration error" in result.output
        assert "Invalid YAML" in result.output

    def test_missing_output_path(self, runner):
        result = runner.invoke(cli, ["generate", "--sink", "file", "--users", "1"])

        assert result.exit_code != 0
        assert "output file" in result.output

    def test_generation_failure_exits_non_zero(self, runner, tmp_path):
        result = runner.invoke(cli, [
            "generate", "--sink", "file", "--output", str(tmp_path / "x.sql"),
            "--users", "1", "--accounts-per-user", "1", "--no-progress",
        ])

        assert result.exit_code == 1
        assert "Generation failed" in result.output
        assert "transactions" in result.output


class TestDdlCommand:

    def test_prints_schema(self, runner):
        result = runner.invoke(cli, ["ddl"])

        assert result.exit_code == 0
        assert "CREATE TABLE loans" in result.output
        assert result.output.count("CREATE INDEX") == 10

    def test_writes_schema_file(self, runner, tmp_path):
        target = tmp_path / "schema.sql"
        result = runner.invoke(cli, ["ddl", "--no-indexes", "--output", str(target)])

        assert result.exit_code == 0
        content = target.read_text(encoding="utf-8")
        assert "CREATE TABLE users" in content
        assert "CREATE INDEX" not in content
