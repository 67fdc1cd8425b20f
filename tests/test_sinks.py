import io
import json

import pytest

from javachunk.chunking.base import Chunk, ChunkKind
from javachunk.sinks import ConsoleSink, JsonlSink, ListSink
from javachunk.sinks.index import EmbeddingIndexSink
from javachunk.vectordb.sqlite_numpy import SQLiteNumpyVectorStore

from .conftest import SCENARIO


class RecordingStore:
    def __init__(self):
        self.batches = []

    def upsert_chunks(self, chunks):
        self.batches.append(chunks)
        return len(chunks)


def _chunk(text="class A {\n\n}\n", symbol="A"):
    return Chunk(text=text, kind=ChunkKind.TYPE_HEADER, start_line=1, end_line=1, symbol=symbol)


def test_console_sink_banner_format():
    out = io.StringIO()
    sink = ConsoleSink(out)
    sink.consume(_chunk("x\ty\n"))
    assert out.getvalue() == "=== EMBEDDING CHUNK START ===\nx\ty\n\n=== EMBEDDING CHUNK END ===\n\n"


def test_jsonl_sink(chunker):
    out = io.StringIO()
    chunker.emit_chunks(chunker.parse(SCENARIO), JsonlSink(out))
    records = [json.loads(line) for line in out.getvalue().splitlines()]
    assert [r["kind"] for r in records] == ["type-header", "method", "type-header", "method"]
    assert records[3]["symbol"] == "Outer.Inner#n"
    assert records[3]["text"].startswith("package p;\n\nclass Outer.Inner {")


def test_list_sink_as_context_manager(chunker):
    with ListSink() as sink:
        chunker.emit_chunks(chunker.parse(SCENARIO), sink)
    assert len(sink.texts) == 4


def test_embedding_sink_batches_in_order(fake_embedder):
    store = RecordingStore()
    sink = EmbeddingIndexSink(fake_embedder, store, batch_size=2)
    sink.set_document("A.java", "abc")
    for i in range(5):
        sink.consume(_chunk(f"chunk {i}", symbol=f"A#{i}"))
    assert len(store.batches) == 2
    sink.close()
    assert [len(b) for b in store.batches] == [2, 2, 1]
    flat = [row for batch in store.batches for row in batch]
    assert [row.symbol for row in flat] == [f"A#{i}" for i in range(5)]
    assert flat[0].file_path == "A.java"
    assert flat[0].file_sha256 == "abc"
    assert flat[0].kind == "type-header"
    assert len(flat[0].embedding) == 16
    assert sink.written == 5


def test_embedding_sink_requires_document(fake_embedder):
    sink = EmbeddingIndexSink(fake_embedder, RecordingStore())
    with pytest.raises(RuntimeError):
        sink.consume(_chunk())


def test_embedding_sink_rejects_misaligned_vectors():
    class ShortEmbedder:
        def embed(self, texts):
            return []

    sink = EmbeddingIndexSink(ShortEmbedder(), RecordingStore(), batch_size=1)
    sink.set_document("A.java", "abc")
    with pytest.raises(ValueError):
        sink.consume(_chunk())


def test_overloads_on_one_line_are_all_stored(chunker, fake_embedder, tmp_path):
    unit = chunker.parse("class A { void f() { } void f(int x) { } }\n", path="A.java")
    with SQLiteNumpyVectorStore(tmp_path / "ws") as store:
        sink = EmbeddingIndexSink(fake_embedder, store)
        sink.set_document("A.java", "abc")
        emitted = chunker.emit_chunks(unit, sink)
        sink.close()
        stored = store.stats()["chunks"]
    assert emitted == 3
    assert sink.written == 3
    assert stored == 3
