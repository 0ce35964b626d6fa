"""Tests for the command-line entry point (create_absolute.cli)."""

from __future__ import annotations

import errno
import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from create_absolute.cli import build_parser, main, parse_directory_overrides, raw_options
from create_absolute.options.rules import ConfigurationError, parse_options

pytestmark = pytest.mark.unit


class TestParseDirectoryOverrides:
    def test_pairs(self):
        assert parse_directory_overrides(["react=web", " html = static "]) == {
            "react": "web",
            "html": " static ",
        }

    def test_empty_directory_allowed(self):
        assert parse_directory_overrides(["react="]) == {"react": ""}

    @pytest.mark.parametrize("value", ["react", "=web"])
    def test_invalid(self, value):
        with pytest.raises(ConfigurationError, match="FRONTEND=DIR"):
            parse_directory_overrides([value])


class TestRawOptions:
    def test_defaults(self):
        args = build_parser().parse_args(["new", "my-app"])
        raw = raw_options(args, environ={})
        assert raw["frontends"] == ["react"]
        assert raw["package_manager"] == "bun"
        assert raw["format_files"] is True
        assert raw["initialize_git"] is False

        options = parse_options(raw)
        assert options.project_name == "my-app"
        assert options.database_directory == "db"

    def test_package_manager_from_user_agent(self):
        args = build_parser().parse_args(["new", "my-app"])
        raw = raw_options(args, environ={"npm_config_user_agent": "pnpm/9.1.0 npm/? node/v20.11.0"})
        assert raw["package_manager"] == "pnpm"

    def test_explicit_package_manager_wins(self):
        args = build_parser().parse_args(["new", "my-app", "--package-manager", "yarn"])
        raw = raw_options(args, environ={"npm_config_user_agent": "pnpm/9.1.0"})
        assert raw["package_manager"] == "yarn"

    def test_full_selection(self):
        args = build_parser().parse_args(
            [
                "dev", "shop",
                "-f", "react", "-f", "html",
                "--directory", "html=static",
                "--database", "postgresql", "--orm", "drizzle", "--host", "neon",
                "--auth", "absoluteAuth", "--code-quality", "none",
                "--tailwind", "--git", "--no-format",
                "--database-directory", "data",
            ]
        )
        options = parse_options(raw_options(args, environ={}))
        assert [f.value for f in options.frontends] == ["react", "html"]
        assert options.directory_config.value == "custom"
        assert options.directory_overrides == {options.frontends[1]: "static"}
        assert options.code_quality_tool is None
        assert options.use_tailwind and options.initialize_git
        assert not options.format_files
        assert options.database_directory == "data"


class TestMain:
    def test_matrix_generate_and_verify(self, tmp_path: Path, capsys):
        path = tmp_path / "test-matrix.json"
        main(["matrix", "generate", "-o", str(path)])
        assert len(json.loads(path.read_text(encoding="utf-8"))) == 1840
        main(["matrix", "verify", str(path)])
        out = " ".join(capsys.readouterr().out.split())
        assert "1840 configurations verified" in out

    def test_matrix_verify_missing_file_exits(self, tmp_path: Path):
        with pytest.raises(SystemExit) as exc_info:
            main(["matrix", "verify", str(tmp_path / "missing.json")])
        assert exc_info.value.code == 1

    def test_new_project(self, tmp_path: Path):
        main(["new", "cli-app", "--output", str(tmp_path), "--package-manager", "bun"])
        assert (tmp_path / "cli-app" / "src" / "frontend" / "pages" / "ReactExample.tsx").is_file()

    def test_unknown_value_exits(self, tmp_path: Path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["new", "cli-app", "--frontend", "solid", "--output", str(tmp_path)])
        assert exc_info.value.code == 1
        assert "Unknown frontend 'solid'" in capsys.readouterr().out
        assert list(tmp_path.iterdir()) == []

    def test_unsupported_feature_exits(self, tmp_path: Path):
        with pytest.raises(SystemExit) as exc_info:
            main(["new", "cli-app", "--frontend", "angular", "--output", str(tmp_path)])
        assert exc_info.value.code == 1
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.parametrize(
        ("variable", "value"),
        [("ABSOLUTE_REMOVE_ATTEMPTS", "0"), ("ABSOLUTE_COMMAND_TIMEOUT", "abc")],
    )
    def test_invalid_environment_setting_exits(self, tmp_path: Path, capsys, monkeypatch, variable, value):
        monkeypatch.setenv(variable, value)
        with pytest.raises(SystemExit) as exc_info:
            main(["new", "cli-app", "--output", str(tmp_path)])
        assert exc_info.value.code == 1
        assert "Invalid ABSOLUTE_* environment setting" in " ".join(capsys.readouterr().out.split())
        assert list(tmp_path.iterdir()) == []

    def test_os_error_exits(self, tmp_path: Path, capsys):
        broken = OSError(errno.EROFS, "Read-only file system")
        with patch("create_absolute.cli.rescaffold", AsyncMock(side_effect=broken)):
            with pytest.raises(SystemExit) as exc_info:
                main(["dev", "cli-app", "--output", str(tmp_path)])
        assert exc_info.value.code == 1
        assert "Read-only file system" in capsys.readouterr().out

    def test_missing_command(self):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 2
