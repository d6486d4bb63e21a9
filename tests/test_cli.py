import json

from clanwarfare import cli
from clanwarfare.errors import SectionError


def test_write_snapshot_replaces_file_atomically(tmp_path):
    path = tmp_path / "out" / "snapshot.json"
    cli.write_snapshot({"clans": []}, path)
    cli.write_snapshot({"clans": [{"id": "1"}]}, path)

    assert json.loads(path.read_text()) == {"clans": [{"id": "1"}]}
    assert [p.name for p in path.parent.iterdir()] == ["snapshot.json"]


def test_fetch_writes_snapshot_and_exits_zero(monkeypatch, settings, upstream):
    monkeypatch.setattr(cli, "SETTINGS", settings)
    real_fetch = cli.fetch_snapshot

    async def fetch(s):
        return await real_fetch(s, transport=upstream.transport())

    monkeypatch.setattr(cli, "fetch_snapshot", fetch)
    out = settings.snapshot_file.parent / "custom.json"

    assert cli.main(["fetch", "--output", str(out)]) == 0
    doc = json.loads(out.read_text())
    assert len(doc["members"]) == 3
    assert doc["apiStatus"]["alert"] == "Welcome back"


def test_fetch_failure_exits_non_zero_without_writing(monkeypatch, settings):
    monkeypatch.setattr(cli, "SETTINGS", settings)

    async def fetch(s):
        raise SectionError("Clans", RuntimeError("down"))

    monkeypatch.setattr(cli, "fetch_snapshot", fetch)

    assert cli.main(["fetch"]) == 1
    assert not settings.snapshot_file.exists()


def test_settings_never_prints_the_api_key(monkeypatch, settings, capsys):
    monkeypatch.setattr(cli, "SETTINGS", settings)
    cli.main(["settings"])
    out = capsys.readouterr().out
    assert "bungie_api_key" not in out
    assert "enable_match_history = True" in out


def test_sections_lists_the_graph(monkeypatch, settings, capsys):
    monkeypatch.setattr(cli, "SETTINGS", settings)
    cli.main(["sections"])
    out = capsys.readouterr().out
    assert "[last-updated]" in out
    assert "skip: Bungie API status check disabled" in out


def test_clear_cache(monkeypatch, settings, capsys):
    monkeypatch.setattr(cli, "SETTINGS", settings)
    (settings.data_dir / "Clan").mkdir(parents=True)
    (settings.data_dir / "Clan" / "GetAllClans.json").write_text("[]")

    cli.main(["clear-cache"])

    assert "Removed 1 cached payloads" in capsys.readouterr().out
    assert not settings.data_dir.exists()


def test_no_command_prints_help():
    assert cli.main([]) == 2
