"""
Unit tests for CLI module

Tests argument parsing, settings assembly and the list / plan / watch
commands against a scripted dialect.
"""

import os
from unittest.mock import MagicMock, patch

import pytest

from connector.cli import main
from connector.cli.commands import build_config, format_assignment
from connector.cli.parser import create_parser
from discovery import __version__
from discovery.dialect import PostgresDialect

URL = "postgresql://localhost:5432/warehouse"


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep SOURCE_* variables from the outer environment out of CLI runs."""
    for key in list(os.environ):
        if key.startswith("SOURCE_"):
            monkeypatch.delenv(key)
    monkeypatch.delenv("OTLP_ENDPOINT", raising=False)


@pytest.fixture
def no_logging_setup():
    with patch("connector.cli.setup_logging") as mock_setup:
        yield mock_setup


class TestParser:
    """Tests for create_parser"""

    def test_list_arguments(self):
        args = create_parser().parse_args(
            ["list", "--url", URL, "--whitelist", "public.a", "--table-types", "TABLE,VIEW"]
        )

        assert args.command == "list"
        assert args.url == URL
        assert args.whitelist == "public.a"
        assert args.table_types == "TABLE,VIEW"

    def test_global_options(self):
        args = create_parser().parse_args(
            ["--log-level", "DEBUG", "--json-logs", "--metrics-port", "9100", "plan", "--max-tasks", "3"]
        )

        assert args.log_level == "DEBUG"
        assert args.json_logs is True
        assert args.metrics_port == 9100
        assert args.max_tasks == 3

    def test_watch_defaults(self):
        args = create_parser().parse_args(["watch"])

        assert args.max_tasks is None
        assert args.poll_interval_ms is None
        assert args.query is None

    def test_invalid_log_level(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["--log-level", "TRACE", "list"])


class TestBuildConfig:
    """Tests for build_config"""

    def test_options_override_environment(self, monkeypatch):
        monkeypatch.setenv("SOURCE_CONNECTION_URL", "postgresql://env/db")
        monkeypatch.setenv("SOURCE_CONNECTION_USER", "env_user")
        args = create_parser().parse_args(
            ["watch", "--url", URL, "--max-tasks", "4", "--poll-interval-ms", "250"]
        )

        config = build_config(args)

        assert config.connection_url == URL
        assert config.connection_user == "env_user"
        assert config.tasks_max == 4
        assert config.table_poll_interval_ms == 250

    def test_tasks_max_from_environment(self, monkeypatch):
        monkeypatch.setenv("SOURCE_TASKS_MAX", "3")

        config = build_config(create_parser().parse_args(["plan", "--url", URL]))

        assert config.tasks_max == 3

    def test_max_tasks_option_beats_environment(self, monkeypatch):
        monkeypatch.setenv("SOURCE_TASKS_MAX", "3")

        config = build_config(create_parser().parse_args(["plan", "--url", URL, "--max-tasks", "5"]))

        assert config.tasks_max == 5

    def test_list_has_no_task_options(self):
        args = create_parser().parse_args(["list", "--url", URL])

        config = build_config(args)

        assert config.tasks_max == 1
        assert config.query_mode is False


class TestFormatAssignment:
    """Tests for format_assignment"""

    def test_lines_per_task(self, make_tables):
        dialect = PostgresDialect(URL)
        groups = [make_tables("public.a", "public.b"), make_tables("public.c")]

        assert format_assignment(groups, dialect) == [
            'task-0: "public"."a", "public"."b"',
            'task-1: "public"."c"',
        ]

    def test_no_groups(self):
        assert format_assignment([], PostgresDialect(URL)) == ["no tables to assign"]

    def test_query_group(self):
        assert format_assignment([[]], PostgresDialect(URL)) == ["task-0: <query>"]


class TestListCommand:
    """Tests for the list command"""

    def test_prints_filtered_tables(self, no_logging_setup, fake_dialect_factory, make_tables, capsys):
        dialect = fake_dialect_factory([make_tables("public.a", "public.b", "sales.c")])

        with patch("connector.cli.commands.find_dialect_for", return_value=dialect):
            main(["list", "--url", URL, "--blacklist", "public.b"])

        assert capsys.readouterr().out.splitlines() == ['"public"."a"', '"sales"."c"']
        assert dialect.closed is True
        assert all(conn.closed for conn in dialect.connections)
        no_logging_setup.assert_called_once_with(level="INFO", json_format=False)

    def test_duplicate_names_exit_with_error(self, no_logging_setup, fake_dialect_factory, make_tables):
        dialect = fake_dialect_factory([make_tables("public.users", "archive.users")])

        with patch("connector.cli.commands.find_dialect_for", return_value=dialect):
            with pytest.raises(SystemExit) as exc_info:
                main(["list", "--url", URL])

        assert exc_info.value.code == 1

    def test_unreachable_database_exits_with_error(self, no_logging_setup, fake_dialect_factory):
        dialect = fake_dialect_factory([ConnectionError("refused")])

        with patch("connector.cli.commands.find_dialect_for", return_value=dialect):
            with pytest.raises(SystemExit) as exc_info:
                main(["list", "--url", URL, "--table-types", "TABLE"])

        assert exc_info.value.code == 1

    def test_missing_url_exits_with_error(self, no_logging_setup):
        with pytest.raises(SystemExit) as exc_info:
            main(["list"])

        assert exc_info.value.code == 1


class TestPlanCommand:
    """Tests for the plan command"""

    def test_prints_assignment(self, no_logging_setup, fake_dialect_factory, make_tables, capsys):
        dialect = fake_dialect_factory(
            [make_tables("public.a", "public.b", "public.c", "public.d", "public.e")]
        )

        with patch("connector.cli.commands.find_dialect_for", return_value=dialect):
            main(["plan", "--url", URL, "--max-tasks", "2"])

        assert capsys.readouterr().out.splitlines() == [
            'task-0: "public"."a", "public"."b", "public"."c"',
            'task-1: "public"."d", "public"."e"',
        ]

    def test_query_from_environment_plans_single_task(
        self, no_logging_setup, fake_dialect_factory, make_tables, monkeypatch, capsys
    ):
        monkeypatch.setenv("SOURCE_QUERY", "SELECT * FROM public.a")
        dialect = fake_dialect_factory([make_tables("public.a", "public.b")])

        with patch("connector.cli.commands.find_dialect_for", return_value=dialect):
            main(["plan", "--url", URL, "--max-tasks", "3"])

        assert capsys.readouterr().out.splitlines() == ["task-0: <query>"]

    def test_query_option_plans_single_task(self, no_logging_setup, fake_dialect_factory, make_tables, capsys):
        dialect = fake_dialect_factory([make_tables("public.a")])

        with patch("connector.cli.commands.find_dialect_for", return_value=dialect):
            main(["plan", "--url", URL, "--query", "SELECT 1"])

        assert capsys.readouterr().out.splitlines() == ["task-0: <query>"]

    def test_tasks_max_from_environment(
        self, no_logging_setup, fake_dialect_factory, make_tables, monkeypatch, capsys
    ):
        monkeypatch.setenv("SOURCE_TASKS_MAX", "2")
        dialect = fake_dialect_factory([make_tables("public.a", "public.b")])

        with patch("connector.cli.commands.find_dialect_for", return_value=dialect):
            main(["plan", "--url", URL])

        assert capsys.readouterr().out.splitlines() == [
            'task-0: "public"."a"',
            'task-1: "public"."b"',
        ]

    def test_conflicting_filters(self, no_logging_setup):
        with patch("connector.cli.commands.find_dialect_for") as mock_find:
            with pytest.raises(SystemExit) as exc_info:
                main(["plan", "--url", URL, "--whitelist", "a", "--blacklist", "b"])

        assert exc_info.value.code == 1
        mock_find.assert_not_called()


class TestWatchCommand:
    """Tests for the watch command"""

    def test_prints_assignment_until_monitor_fails(
        self, no_logging_setup, fake_dialect_factory, make_tables, capsys
    ):
        dialect = fake_dialect_factory([make_tables("public.a"), RuntimeError("catalog gone")])

        with patch("connector.source.find_dialect_for", return_value=dialect):
            with pytest.raises(SystemExit) as exc_info:
                main(["watch", "--url", URL, "--poll-interval-ms", "5"])

        assert exc_info.value.code == 1
        output = capsys.readouterr().out
        assert "1 task(s):" in output
        assert 'task-0: "public"."a"' in output
        assert dialect.closed is True

    def test_query_mode_prints_single_task(self, no_logging_setup, fake_dialect_factory, capsys):
        dialect = fake_dialect_factory([[], RuntimeError("stop")])

        with patch("connector.source.find_dialect_for", return_value=dialect):
            with pytest.raises(SystemExit):
                main(["watch", "--url", URL, "--query", "SELECT 1", "--poll-interval-ms", "5"])

        assert "task-0: <query>" in capsys.readouterr().out

    def test_keyboard_interrupt_stops_connector(self, no_logging_setup, fake_dialect_factory, make_tables):
        dialect = fake_dialect_factory([make_tables("public.a")])

        with patch("connector.source.find_dialect_for", return_value=dialect), \
                patch(
                    "connector.context.RecordingContext.wait_for_reconfiguration",
                    side_effect=KeyboardInterrupt,
                ):
            main(["watch", "--url", URL])

        assert dialect.closed is True

    def test_metrics_port_starts_server(self, no_logging_setup):
        metrics = {"discovery": MagicMock()}

        with patch("connector.cli.initialize_metrics", return_value=metrics) as mock_init, \
                patch("connector.cli.cmd_watch") as mock_watch:
            main(["--metrics-port", "9100", "watch", "--url", URL])

        mock_init.assert_called_once_with(port=9100, version=__version__)
        assert mock_watch.call_args.kwargs["metrics"] is metrics["discovery"]


class TestMain:
    """Tests for main dispatch"""

    def test_no_command_prints_help(self, no_logging_setup):
        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 1

    def test_otlp_endpoint_enables_tracing(self, no_logging_setup):
        with patch("connector.cli.initialize_tracing") as mock_init, \
                patch("connector.cli.shutdown_tracing") as mock_shutdown, \
                patch("connector.cli.cmd_list") as mock_list:
            main(["--otlp-endpoint", "localhost:4317", "list", "--url", URL])

        mock_init.assert_called_once_with(otlp_endpoint="localhost:4317")
        mock_list.assert_called_once()
        mock_shutdown.assert_called_once_with()

    def test_tracing_off_by_default(self, no_logging_setup):
        with patch("connector.cli.initialize_tracing") as mock_init, \
                patch("connector.cli.cmd_list"):
            main(["list", "--url", URL])

        mock_init.assert_not_called()
