import json

import pytest
from typer.testing import CliRunner

from javachunk.cli import app
from javachunk.cli_actions import do_index, do_search
from javachunk.config import BackendOptions

from .conftest import FakeEmbedder, SCENARIO

runner = CliRunner()


@pytest.fixture
def outer_file(tmp_path):
    f = tmp_path / "Outer.java"
    f.write_text(SCENARIO, encoding="utf-8")
    return f


def _index(root, embedder, **kwargs):
    return do_index(
        path=str(root),
        local_store=True,
        exclude_globs=None,
        max_file_mb=None,
        backend=BackendOptions(),
        embedder=embedder,
        **kwargs,
    )


def test_no_arguments_prints_usage():
    result = runner.invoke(app, [])
    assert result.exit_code == 0
    assert "Usage" in result.output


def test_chunk_prints_banners(outer_file):
    result = runner.invoke(app, ["chunk", str(outer_file)])
    assert result.exit_code == 0
    assert result.stdout.count("=== EMBEDDING CHUNK START ===") == 4
    assert result.stdout.count("=== EMBEDDING CHUNK END ===") == 4
    assert "=== EMBEDDING CHUNK START ===\npackage p;\n\nclass Outer {\n\nvoid m() { }\n}\n\n=== EMBEDDING CHUNK END ===" in result.stdout


def test_chunk_jsonl(outer_file):
    result = runner.invoke(app, ["chunk", str(outer_file), "--format", "jsonl"])
    assert result.exit_code == 0
    records = [json.loads(line) for line in result.stdout.splitlines() if line.startswith("{")]
    assert [r["symbol"] for r in records] == ["Outer", "Outer#m", "Outer.Inner", "Outer.Inner#n"]


def test_chunk_to_output_file(outer_file, tmp_path):
    out = tmp_path / "chunks.txt"
    result = runner.invoke(app, ["chunk", str(outer_file), "-o", str(out)])
    assert result.exit_code == 0
    assert out.read_text(encoding="utf-8").count("=== EMBEDDING CHUNK START ===") == 4


def test_chunk_unknown_format(outer_file):
    result = runner.invoke(app, ["chunk", str(outer_file), "--format", "xml"])
    assert result.exit_code != 0


def test_chunk_missing_file_exits_1(tmp_path):
    result = runner.invoke(app, ["chunk", str(tmp_path / "Nope.java")])
    assert result.exit_code == 1
    assert "EMBEDDING CHUNK" not in result.output


def test_chunk_broken_file_exits_1(tmp_path):
    f = tmp_path / "Broken.java"
    f.write_text("class Broken { void m( }", encoding="utf-8")
    result = runner.invoke(app, ["chunk", str(f)])
    assert result.exit_code == 1
    assert "parse" in result.output
    assert "EMBEDDING CHUNK" not in result.stdout


def test_index_is_incremental(java_tree, fake_embedder):
    first = _index(java_tree, fake_embedder)
    assert first["files"] == 2
    assert first["changed"] == 2
    # 9 chunks for OrderService.java, 4 for Outer.java
    assert first["written"] == 13
    assert first["chunks"] == 13
    assert first["failed"] == 0

    again = _index(java_tree, fake_embedder)
    assert again["changed"] == 0
    assert again["written"] == 0
    assert again["chunks"] == 13

    outer = java_tree / "src" / "com" / "example" / "Outer.java"
    outer.write_text(SCENARIO.replace("void n() { }", "void n() { }\n    void o() { }"), encoding="utf-8")
    changed = _index(java_tree, fake_embedder)
    assert changed["changed"] == 1
    assert changed["written"] == 5
    assert changed["chunks"] == 14

    outer.unlink()
    removed = _index(java_tree, fake_embedder)
    assert removed["removed"] == 1
    assert removed["chunks"] == 9


def test_index_skips_broken_files(java_tree, fake_embedder):
    (java_tree / "src" / "Broken.java").write_text("class Broken {", encoding="utf-8")
    summary = _index(java_tree, fake_embedder)
    assert summary["files"] == 3
    assert summary["failed"] == 1
    assert summary["chunks"] == 13


def test_index_single_file(outer_file, fake_embedder):
    summary = _index(outer_file, fake_embedder, member_imports=True)
    assert summary["files"] == 1
    assert summary["written"] == 4
    member_texts = [t for call in fake_embedder.calls for t in call if "void m()" in t]
    assert member_texts and "import java.util.List;" in member_texts[0]


def test_index_missing_path(tmp_path):
    result = runner.invoke(app, ["index", str(tmp_path / "missing"), "--local-store"])
    assert result.exit_code == 1


def test_search_status_reset(java_tree, fake_embedder, capsys):
    _index(java_tree, fake_embedder)
    capsys.readouterr()

    do_search(str(java_tree), "place order", local_store=True, top_k=3, backend=BackendOptions(), embedder=fake_embedder)
    out = capsys.readouterr().out
    assert "Score" in out

    status = runner.invoke(app, ["status", str(java_tree), "--local-store"])
    assert status.exit_code == 0
    assert "chunks: 13" in status.output

    reset = runner.invoke(app, ["reset", str(java_tree), "--local-store"])
    assert reset.exit_code == 0
    assert list((java_tree / ".javachunk").rglob("manifest.json")) == []

    status = runner.invoke(app, ["status", str(java_tree), "--local-store"])
    assert "chunks: 0" in status.output


def test_index_reembeds_when_embedder_changes(java_tree, fake_embedder):
    _index(java_tree, fake_embedder)

    class OtherEmbedder(FakeEmbedder):
        @property
        def model_id(self):
            return "other-model"

    summary = _index(java_tree, OtherEmbedder())
    assert summary["changed"] == 2
    assert summary["written"] == 13
    assert summary["chunks"] == 13


def test_chunk_broken_file_writes_no_output(tmp_path):
    f = tmp_path / "Broken.java"
    f.write_text("class Broken {", encoding="utf-8")
    out = tmp_path / "chunks.txt"
    result = runner.invoke(app, ["chunk", str(f), "-o", str(out)])
    assert result.exit_code == 1
    assert not out.exists()


def test_lone_file_argument_runs_chunk(outer_file):
    result = runner.invoke(app, [str(outer_file)])
    assert result.exit_code == 0
    assert result.stdout.count("=== EMBEDDING CHUNK START ===") == 4
    assert result.stdout == runner.invoke(app, ["chunk", str(outer_file)]).stdout


def test_lone_file_argument_after_verbose_flag(outer_file):
    result = runner.invoke(app, ["-v", str(outer_file), "--format", "jsonl"])
    assert result.exit_code == 0
    assert '"symbol": "Outer#m"' in result.stdout


def test_lone_missing_java_file_exits_1(tmp_path):
    result = runner.invoke(app, [str(tmp_path / "Nope.java")])
    assert result.exit_code == 1
    assert "read" in result.output
