"""Embedding backend interface."""

from __future__ import annotations

from typing import List, Sequence


class Embedder:
    """Turns chunk text into vectors.

    Subclasses implement `embed`. `model_id` is recorded in the index manifest
    so that switching models re-embeds every file.
    """

    @property
    def model_id(self) -> str:
        return type(self).__name__

    def embed(self, texts: List[str]) -> List[Sequence[float]]:
        """Return one vector per input text, in input order."""
        raise NotImplementedError

    def embed_query(self, text: str) -> Sequence[float]:
        return self.embed([text])[0]
