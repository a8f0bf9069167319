"""Unit tests for the command-line surface."""

from __future__ import annotations

import json

import pytest

from pkgdoc import cli
from pkgdoc.builder import SourceBuilder
from pkgdoc.models.doc import CandidateFile
from pkgdoc.models.index import IndexRecord
from tests.helpers import GO_LIBRARY


class TestParser:
    def test_get_with_json(self) -> None:
        args = cli._build_parser().parse_args(["get", "fmt", "--json"])
        assert args.command == "get"
        assert args.import_path == "fmt"
        assert args.json is True

    def test_list_takes_no_path(self) -> None:
        args = cli._build_parser().parse_args(["list"])
        assert args.command == "list"

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            cli._build_parser().parse_args([])


class TestFormatting:
    def test_format_doc(self) -> None:
        doc = SourceBuilder().build(
            "github.com/user/mux",
            "github.com/user/mux",
            "mux",
            "https://github.com/user/mux/",
            "1-abc",
            "#L%d",
            [CandidateFile("mux.go", "https://x/mux.go", data=GO_LIBRARY)],
        )
        lines = cli.format_doc(doc).splitlines()

        assert "ImportPath:   github.com/user/mux" in lines
        assert "Name:         mux" in lines
        assert "IsCmd:        False" in lines
        assert "    mux.go https://x/mux.go" in lines
        assert "    net/http" in lines
        assert "    Decl:  func Vars(req *http.Request) map[string]string" in lines
        assert "    Method:" in lines
        assert lines.count("Type:") == 2

    def test_format_packages_commands_last(self) -> None:
        records = [
            IndexRecord(import_path="example.org/cmd/tool", synopsis="Tool.", is_cmd=True),
            IndexRecord(import_path="example.org/lib", synopsis="Lib."),
        ]
        assert cli.format_packages(records) == (
            "example.org/lib\tLib.\n\nCommands:\nexample.org/cmd/tool\tTool."
        )

    def test_format_packages_without_commands(self) -> None:
        records = [IndexRecord(import_path="example.org/lib", synopsis="Lib.")]
        assert cli.format_packages(records) == "example.org/lib\tLib."


class TestMain:
    def test_error_reported_as_json(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.setattr(cli, "configure_logging", lambda settings: None)

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["print", "favicon.ico"])

        assert exc_info.value.code == 1
        payload = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert payload["error"]["code"] == "INVALID_IMPORT_PATH"
        assert payload["error"]["recoverable"] is False
