"""Tests for the devdose command line."""

from __future__ import annotations

import json

import pytest

from devdose.models import PublishingResult
from devdose.pipeline import cli
from devdose.pipeline.orchestrator import PipelineError
from devdose.processing.reports import ReportOutcome
from devdose.storage.checkpoint_store import CheckpointStore
from devdose.storage.connection import close_connection
from devdose.storage.post_store import PostStore
from devdose.storage.schema import initialize_database
from tests.conftest import make_post_row


class _FakePipeline:
    calls: list = []
    fail = False

    def __init__(self, settings):
        self.settings = settings

    async def run(self, start_stage="discovery", include_docs=False):
        _FakePipeline.calls.append(("run", start_stage, include_docs))
        if _FakePipeline.fail:
            raise PipelineError(start_stage, RuntimeError("boom"))
        return {"publishing": {"published": 3, "duplicates": 1, "failed": 0}}

    async def run_stage(self, stage, include_docs=False):
        _FakePipeline.calls.append(("stage", stage, include_docs))
        return PublishingResult(published=2)

    async def run_source(self, url, include_docs=False):
        _FakePipeline.calls.append(("source", url, include_docs))
        return {"extraction": {"snippets": 0, "duplicates_removed": 0}}


@pytest.fixture
def patched(monkeypatch, settings):
    _FakePipeline.calls = []
    _FakePipeline.fail = False
    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    monkeypatch.setattr(cli, "Pipeline", _FakePipeline)
    monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: None)
    yield settings
    close_connection(settings.db_path)


def test_run_prints_summary_line(patched, capsys):
    assert cli.main(["run", "--from-stage", "quality", "--with-docs"]) == 0
    assert _FakePipeline.calls == [("run", "quality", True)]
    assert capsys.readouterr().out.strip() == "stage=publishing published=3 duplicates=1 failed=0"


def test_single_stage(patched, capsys):
    assert cli.main(["publishing"]) == 0
    assert _FakePipeline.calls == [("stage", "publishing", False)]
    assert "stage=publishing published=2 duplicates=0 failed=0" in capsys.readouterr().out


def test_failure_returns_one(patched):
    _FakePipeline.fail = True
    assert cli.main(["run"]) == 1


def test_unknown_stage_is_rejected(patched):
    with pytest.raises(SystemExit):
        cli.main(["run", "--from-stage", "deployment"])


def test_verify(patched, monkeypatch, capsys):
    async def fake_handle_report(post_id, store, processor):
        return ReportOutcome(corrected=True, post=make_post_row(id=post_id, title="Fixed"))

    monkeypatch.setattr(cli, "handle_report", fake_handle_report)
    monkeypatch.setattr(cli, "create_completion_client", lambda settings: object())

    assert cli.main(["verify", "12"]) == 0
    assert capsys.readouterr().out.strip() == "post_id=12 corrected=True title='Fixed'"


def test_run_source(patched, capsys):
    assert cli.main(["run-source", "https://github.com/vuejs/core", "--with-docs"]) == 0
    assert _FakePipeline.calls == [("source", "https://github.com/vuejs/core", True)]
    assert capsys.readouterr().out.strip() == "stage=extraction snippets=0 duplicates_removed=0"


def test_import_sources(patched, tmp_path, capsys):
    sources = tmp_path / "sources.json"
    sources.write_text(
        json.dumps(
            [
                {"type": "github", "name": "vuejs/core", "url": "https://github.com/vuejs/core"},
                {"type": "docs", "name": "broken"},
            ]
        )
    )

    assert cli.main(["import-sources", str(sources)]) == 0
    assert capsys.readouterr().out.strip() == "imported=1 skipped=1 total=1"
    stored = CheckpointStore(patched.checkpoints_dir).load("discovery")
    assert stored.sources[0].name == "vuejs/core"


def test_import_sources_rejects_bad_file(patched, tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text("{}")
    assert cli.main(["import-sources", str(bad)]) == 1


def test_add_source_then_duplicate_fails(patched, capsys):
    argv = ["add-source", "--type", "docs", "--name", "MDN", "--url", "https://developer.mozilla.org",
            "--tags", "web,css", "--priority", "9"]

    assert cli.main(argv) == 0
    assert capsys.readouterr().out.strip() == "added='MDN' type=docs priority=9"
    assert cli.main(argv) == 1
    source = CheckpointStore(patched.checkpoints_dir).load("discovery").sources[0]
    assert source.tags == ["web", "css"]


def test_clean_deletes_posts_and_checkpoints(patched, capsys):
    initialize_database(patched.db_path)
    PostStore(patched.db_path).upsert_many([make_post_row()])
    CheckpointStore(patched.checkpoints_dir).save("publishing", PublishingResult(published=1))
    CheckpointStore(patched.single_source_checkpoints_dir).save("publishing", PublishingResult())

    assert cli.main(["clean"]) == 0

    assert capsys.readouterr().out.strip() == "posts_deleted=1 checkpoints_deleted=2"
    assert PostStore(patched.db_path).count() == 0
    assert not CheckpointStore(patched.checkpoints_dir).exists("publishing")


def test_clean_can_keep_checkpoints(patched, capsys):
    CheckpointStore(patched.checkpoints_dir).save("publishing", PublishingResult(published=1))

    assert cli.main(["clean", "--keep-checkpoints"]) == 0

    assert capsys.readouterr().out.strip() == "posts_deleted=0 checkpoints_deleted=0"
    assert CheckpointStore(patched.checkpoints_dir).exists("publishing")
