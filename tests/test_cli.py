import json

import pytest

import hansard_mine.config.settings as config_settings
from hansard_mine.cli import main


@pytest.fixture()
def workspace(tmp_path, monkeypatch, sample_transcript):
    monkeypatch.setattr(config_settings, "_DEFAULT_CONFIG_LOCATIONS", (tmp_path / "absent.json",))
    monkeypatch.setenv("HANSARD_STORAGE_DATABASE_URL", f"sqlite:///{(tmp_path / 'cli.db').as_posix()}")
    transcripts = tmp_path / "transcripts"
    transcripts.mkdir()
    (transcripts / "DR-01032023.txt").write_text(sample_transcript, encoding="utf8")
    roster = tmp_path / "roster.json"
    roster.write_text(
        json.dumps(
            [
                {"name": "John Tan", "constituency": "Kota Bharu"},
                {"name": "Siti Aminah binti Abdullah", "constituency": "Sungai Petani"},
            ]
        ),
        encoding="utf8",
    )
    return tmp_path


def test_sync_import_and_list(workspace, capsys):
    assert main(["sync-members", "--file", str(workspace / "roster.json")]) == 0
    assert main(["import", "--source", str(workspace / "transcripts")]) == 0

    capsys.readouterr()
    assert main(["sessions"]) == 0
    assert "DR.01.03.2023" in capsys.readouterr().out

    assert main(["members"]) == 0
    output = capsys.readouterr().out
    assert "John Tan" in output
    assert "1 sessions\t2 instances" in output

    assert main(["unmatched"]) == 0
    assert "presiding officer" in capsys.readouterr().out


def test_reseed_then_remap_and_aggregate(workspace):
    assert main(["sync-members", "--file", str(workspace / "roster.json")]) == 0
    assert main(["import", "--source", str(workspace / "transcripts")]) == 0
    assert main(["sync-members", "--file", str(workspace / "roster.json"), "--reseed"]) == 0
    assert main(["remap"]) == 0
    assert main(["aggregate"]) == 0


def test_import_without_source_directory_fails(workspace):
    assert main(["import", "--source", str(workspace / "missing")]) != 0


def test_import_explicit_files(workspace, sample_transcript, capsys):
    single = workspace / "DR-07032023.txt"
    single.write_text(sample_transcript, encoding="utf8")
    assert main(["sync-members", "--file", str(workspace / "roster.json")]) == 0

    assert main(["import", "--file", str(single)]) == 0

    capsys.readouterr()
    assert main(["sessions"]) == 0
    output = capsys.readouterr().out
    assert "DR.07.03.2023" in output
    assert "DR.01.03.2023" not in output
