"""Tests for the collect.py command line."""

import pytest

import collect
from jobcollector.models import JobRecord


@pytest.fixture
def cli(controller, monkeypatch):
    monkeypatch.setattr(collect, "build_controller", lambda: controller)
    return controller


@pytest.mark.unit
def test_resolve_command(capsys):
    assert collect.main(["resolve", "https://www.google.com/careers"]) == 0
    assert "Google" in capsys.readouterr().out
    assert collect.main(["resolve", "jobs.com"]) == 1


@pytest.mark.unit
def test_url_command_captures(cli, fake_client, capsys):
    fake_client.completions.queue({"title": "Go Developer"})
    assert collect.main(["url", "https://www.zhaopin.com/jobs/1"]) == 0
    out = capsys.readouterr().out
    assert "Go Developer @ Zhaopin (智联招聘)" in out
    assert len(cli.records()) == 1


@pytest.mark.unit
def test_url_command_ai_failure_exits_nonzero(cli, fake_client, capsys):
    fake_client.completions.queue(RuntimeError("boom"))
    assert collect.main(["url", "https://example.com/x", "--ai"]) == 2
    assert "✗" in capsys.readouterr().out
    assert cli.records() == ()


@pytest.mark.unit
def test_text_command_reads_file(cli, fake_client, tmp_path):
    posting = tmp_path / "posting.txt"
    posting.write_text("Hiring a PM at Acme", encoding="utf-8")
    fake_client.completions.queue({"title": "PM", "company": "Acme"})
    assert collect.main(["text", str(posting)]) == 0
    assert "Hiring a PM at Acme" in fake_client.completions.calls[0]["messages"][0]["content"]


@pytest.mark.unit
def test_list_status_edit_delete(cli, capsys, monkeypatch):
    cli.store.add(JobRecord(id="item_1", title="Analyst", company="Apple"))

    assert collect.main(["list", "-q", "apple"]) == 0
    assert "item_1" in capsys.readouterr().out

    assert collect.main(["status", "item_1", "applied"]) == 0
    assert cli.store.get("item_1").status == "applied"

    assert collect.main(["edit", "item_1", "--salary", "40k", "--requirement", "SQL", "--requirement", "Excel"]) == 0
    stored = cli.store.get("item_1")
    assert stored.salary == "40k"
    assert stored.requirements == ["SQL", "Excel"]
    assert stored.status == "applied"

    monkeypatch.setattr("builtins.input", lambda _prompt: "n")
    assert collect.main(["delete", "item_1"]) == 1
    assert cli.store.get("item_1") is not None

    assert collect.main(["delete", "item_1", "--yes"]) == 0
    assert cli.records() == ()


@pytest.mark.unit
def test_edit_unknown_id(cli):
    assert collect.main(["edit", "item_nope", "--title", "x"]) == 1


@pytest.mark.unit
def test_export_command(cli, tmp_path, capsys):
    cli.store.add(JobRecord(id="item_1", title="Analyst", company="Apple"))
    assert collect.main(["export", "--out", str(tmp_path)]) == 0
    files = list(tmp_path.glob("job_applications_*.csv"))
    assert len(files) == 1
    assert '"Analyst","Apple"' in files[0].read_text(encoding="utf-8")
