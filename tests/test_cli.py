"""
Tests for the command-line interface.
"""

import pytest
from efis_checklists.config.settings import settings
from efis_checklists.data.models import ChecklistFormat
from efis_checklists.formats.ace import AceCodec
from efis_checklists.formats.json_format import JsonCodec
from efis_checklists.io.files import get_recent_files
from efis_checklists.ui.cli import create_parser, main


@pytest.fixture
def json_path(tmp_path, sample_file):
    path = tmp_path / "sample.json"
    path.write_text(JsonCodec().serialize(sample_file), encoding="utf-8")
    return path


class TestCLI:
    """Test cases for the CLI subcommands."""

    def test_detect(self, json_path, capsys):
        assert main(["detect", str(json_path)]) == 0
        assert capsys.readouterr().out.strip() == "json"

    def test_detect_grt_text(self, tmp_path, capsys):
        path = tmp_path / "list.txt"
        path.write_bytes(b"LIST Preflight\r\nITEM Master - ON\r\n")

        assert main(["detect", str(path)]) == 0
        assert capsys.readouterr().out.strip() == "grt"

    def test_detect_unknown(self, capsys):
        assert main(["detect", "file.xyz"]) == 1
        assert "Unknown format" in capsys.readouterr().out

    def test_info(self, json_path, capsys):
        assert main(["info", str(json_path)]) == 0

        out = capsys.readouterr().out
        assert "----- Sample -----" in out
        assert "Make and model: Cessna 172S" in out
        assert "Normal [normal]: 2 checklists, 8 items" in out
        assert "Emergency [emergency]: 1 checklists, 2 items" in out

    def test_convert_by_extension(self, json_path, tmp_path, sample_file):
        destination = tmp_path / "out.ace"

        assert main(["convert", str(json_path), str(destination)]) == 0
        parsed = AceCodec().parse(destination.read_bytes(), "out.ace")
        assert parsed.name == sample_file.name
        assert [g.name for g in parsed.groups] == ["Normal", "Emergency"]

    def test_convert_with_explicit_target(self, json_path, tmp_path):
        destination = tmp_path / "out.bin"

        assert main(["convert", str(json_path), str(destination), "--to", "foreflight"]) == 0
        assert destination.stat().st_size > 16

    def test_convert_unknown_extension_uses_default_format(self, json_path, tmp_path, monkeypatch):
        monkeypatch.setitem(settings._settings, 'default_export_format', 'ace')
        destination = tmp_path / "out.xyz"

        assert main(["convert", str(json_path), str(destination)]) == 0
        parsed = AceCodec().parse(destination.read_bytes(), "out.ace")
        assert parsed.name == "Sample"

    def test_convert_unknown_target(self, json_path, tmp_path, monkeypatch, capsys):
        monkeypatch.setitem(settings._settings, 'default_export_format', 'not-a-format')

        assert main(["convert", str(json_path), str(tmp_path / "out.xyz")]) == 1
        assert "--to" in capsys.readouterr().out
        assert not (tmp_path / "out.xyz").exists()

    def test_invalid_file(self, tmp_path, capsys):
        path = tmp_path / "broken.json"
        path.write_bytes(b"[")

        assert main(["info", str(path)]) == 1
        assert "Error:" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        assert main(["info", str(tmp_path / "missing.json")]) == 1
        assert "Error:" in capsys.readouterr().err

    def test_recent(self, json_path, capsys):
        assert main(["recent"]) == 0
        assert "No recent files" in capsys.readouterr().out

        main(["info", str(json_path)])
        capsys.readouterr()

        assert main(["recent"]) == 0
        out = capsys.readouterr().out
        assert "1: Sample (json," in out
        assert get_recent_files()[0].format == ChecklistFormat.JSON

    def test_parser_requires_command(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args([])
