import hashlib
from typing import List, Sequence

import pytest

from javachunk.chunking.java import JavaChunker
from javachunk.embeddings.base import Embedder


SCENARIO = """package p;
import java.util.List;
class Outer {
  int x;
  void m() { }
  class Inner {
    void n() { }
  }
}
"""

SERVICE = """package com.example.shop;

import java.util.List;
import java.util.Map;

/** Order service. */
public class OrderService {
  private final Map<String, Integer> stock;
  static { System.out.println("loaded"); }

  public OrderService(Map<String, Integer> stock) {
    this.stock = stock;
  }

  public OrderService() {
    this(null);
  }

  /** Places an order. */
  public boolean place(String item) {
    return stock.containsKey(item);
  }

  public int count() { return stock.size(); }

  static class Line {
    String item;
    Line(String item) { this.item = item; }

    class Deep {
      void touch() { }
    }
  }
}
"""


class FakeEmbedder(Embedder):
    """Deterministic 16-dim embeddings derived from a text hash."""

    def __init__(self) -> None:
        self.calls: List[List[str]] = []

    def embed(self, texts: List[str]) -> List[Sequence[float]]:
        self.calls.append(list(texts))
        out = []
        for t in texts:
            digest = hashlib.sha256(t.encode("utf-8")).digest()
            out.append([b / 255.0 + 0.01 for b in digest[:16]])
        return out


@pytest.fixture
def chunker():
    return JavaChunker()


@pytest.fixture
def fake_embedder():
    return FakeEmbedder()


@pytest.fixture
def java_tree(tmp_path):
    """A small source folder with two valid files."""
    src = tmp_path / "src" / "com" / "example"
    src.mkdir(parents=True)
    (src / "OrderService.java").write_text(SERVICE, encoding="utf-8")
    (src / "Outer.java").write_text(SCENARIO, encoding="utf-8")
    return tmp_path
