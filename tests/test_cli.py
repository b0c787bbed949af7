"""Tests for the sloreport CLI commands."""

import json

import pytest
import yaml
from conftest import make_record

from sloreport.cli.fetch import fetch_command
from sloreport.cli.init import init_command
from sloreport.cli.main import build_parser, main
from sloreport.cli.render import render_command
from sloreport.cli.summary import summary_command
from sloreport.config import load_config
from sloreport.core.errors import ExitCode
from sloreport.fetch import ReportData, write_snapshot


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        yaml.dump(
            {
                "slo_ids": ["slo-a", "slo-b"],
                "title": "Payments - SLO Report",
                "ticket": {"area_path": "Payments"},
            }
        )
    )
    return path


def write_data(tmp_path, values_a):
    data = ReportData(
        report_date="2026-03-02",
        slos=[
            make_record("slo-a", "Checkout", 99.0, values_a),
            make_record("slo-b", "Search", 98.0, (98.5, 98.5, 98.5, 98.5)),
        ],
    )
    return write_snapshot(data, tmp_path / "snapshot.json")


@pytest.fixture
def breach_snapshot(tmp_path):
    return write_data(tmp_path, (99.5, 99.2, 98.0, 97.5))


@pytest.fixture
def healthy_snapshot(tmp_path):
    return write_data(tmp_path, (99.5, 99.5, 99.5, 99.5))


class TestRenderCommand:
    """Tests for render_command()."""

    def test_writes_markdown(self, tmp_path, config_file, healthy_snapshot):
        output = tmp_path / "report.md"
        code = render_command(str(config_file), str(healthy_snapshot), output=str(output))

        assert code == ExitCode.SUCCESS
        assert output.read_text().startswith("# Payments - SLO Report")

    def test_prints_to_stdout(self, config_file, healthy_snapshot, capsys):
        code = render_command(str(config_file), str(healthy_snapshot))

        assert code == ExitCode.SUCCESS
        assert "## Executive Summary" in capsys.readouterr().out

    def test_breach_writes_ticket(self, tmp_path, config_file, breach_snapshot):
        ticket = tmp_path / "ticket.json"
        code = render_command(
            str(config_file),
            str(breach_snapshot),
            output=str(tmp_path / "report.md"),
            ticket_output=str(ticket),
        )

        assert code == ExitCode.SUCCESS
        data = json.loads(ticket.read_text())
        assert data["failing_slo_ids"] == ["slo-a"]
        assert data["area_path"] == "Payments"

    def test_fail_on_breach(self, tmp_path, config_file, breach_snapshot):
        code = render_command(
            str(config_file),
            str(breach_snapshot),
            output=str(tmp_path / "report.md"),
            fail_on_breach=True,
        )
        assert code == ExitCode.WARNING

    def test_no_ticket_without_breach(self, tmp_path, config_file, healthy_snapshot):
        ticket = tmp_path / "ticket.json"
        render_command(
            str(config_file),
            str(healthy_snapshot),
            output=str(tmp_path / "report.md"),
            ticket_output=str(ticket),
            fail_on_breach=True,
        )
        assert not ticket.exists()

    def test_missing_config(self, tmp_path, healthy_snapshot):
        code = render_command(str(tmp_path / "missing.yaml"), str(healthy_snapshot))
        assert code == ExitCode.CONFIG_ERROR

    def test_missing_snapshot(self, tmp_path, config_file):
        code = render_command(str(config_file), str(tmp_path / "missing.json"))
        assert code == ExitCode.VALIDATION_ERROR


class TestSummaryCommand:
    """Tests for summary_command()."""

    def test_json_output(self, config_file, breach_snapshot, capsys):
        code = summary_command(str(config_file), str(breach_snapshot), format="json")

        assert code == ExitCode.SUCCESS
        output = json.loads(capsys.readouterr().out)
        assert output["report_date"] == "2026-03-02"
        assert output["summary"]["failing"] == 1
        assert output["categories"]["failing"][0]["trend"] == "degrading"

    def test_table_output(self, config_file, breach_snapshot, capsys):
        code = summary_command(str(config_file), str(breach_snapshot))

        assert code == ExitCode.SUCCESS
        out = capsys.readouterr().out
        assert "BREACH" in out
        assert "Checkout" in out

    def test_bracketed_name_printed_verbatim(self, tmp_path, config_file, capsys):
        data = ReportData(
            report_date="2026-03-02",
            slos=[make_record("slo-a", "[prod] Checkout", 99.0, (99.5, 99.5, 99.5, 99.5))],
        )
        snapshot = write_snapshot(data, tmp_path / "snapshot.json")

        assert summary_command(str(config_file), str(snapshot)) == ExitCode.SUCCESS
        assert "[prod] Checkout" in capsys.readouterr().out


class TestFetchCommand:
    """Tests for fetch_command()."""

    def test_requires_credentials(self, tmp_path, config_file):
        code = fetch_command(str(config_file), str(tmp_path / "snapshot.json"))
        assert code == ExitCode.CONFIG_ERROR


class TestInitCommand:
    """Tests for init_command()."""

    def test_writes_starter_config(self, tmp_path):
        path = tmp_path / ".sloreport" / "config.yaml"
        assert init_command(str(path)) == ExitCode.SUCCESS

        config = load_config(path)
        assert config.slo_ids == ["your-slo-id-1", "your-slo-id-2"]
        assert config.explained_link is None

    def test_refuses_to_overwrite(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("slo_ids: [keep-me]\n")

        assert init_command(str(path)) == ExitCode.CONFIG_ERROR
        assert "keep-me" in path.read_text()

    def test_force_overwrites(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("slo_ids: [keep-me]\n")

        assert init_command(str(path), force=True) == ExitCode.SUCCESS
        assert "your-slo-id-1" in path.read_text()


class TestMain:
    """Tests for argument parsing and dispatch."""

    @pytest.fixture(autouse=True)
    def keep_test_logging(self, monkeypatch):
        monkeypatch.setattr("sloreport.cli.main.configure_logging", lambda *args: None)

    def test_parser_render_args(self):
        args = build_parser().parse_args(
            ["render", "--config", "c.yaml", "-s", "snap.json", "--fail-on-breach"]
        )
        assert args.command == "render"
        assert args.config_path == "c.yaml"
        assert args.snapshot == "snap.json"
        assert args.fail_on_breach is True
        assert args.output is None

    def test_main_exits_with_command_code(self, tmp_path, config_file, breach_snapshot):
        with pytest.raises(SystemExit) as exc:
            main(
                [
                    "render",
                    "--config",
                    str(config_file),
                    "--snapshot",
                    str(breach_snapshot),
                    "--output",
                    str(tmp_path / "report.md"),
                    "--fail-on-breach",
                ]
            )
        assert exc.value.code == ExitCode.WARNING

    def test_no_command_prints_help(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 0
        assert "usage: sloreport" in capsys.readouterr().out

    def test_invalid_setting_exits_with_config_error(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv("SLOREPORT_LOG_FORMAT", "text")
        with pytest.raises(SystemExit) as exc:
            main(["init", "--output", str(tmp_path / "config.yaml")])

        assert exc.value.code == ExitCode.CONFIG_ERROR
        assert "invalid settings" in capsys.readouterr().err
        assert not (tmp_path / "config.yaml").exists()
