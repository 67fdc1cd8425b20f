"""Local embeddings with sentence-transformers (`pip install javachunk[st]`)."""

from __future__ import annotations

from typing import List, Sequence

from .base import Embedder


class SentenceTransformersEmbedder(Embedder):
    """
    Embed chunks in-process with a sentence-transformers model.

    E5-family models expect `passage: ` / `query: ` prefixes; they are added
    automatically when the model name contains "e5".

    Attributes:
        model_name: HuggingFace model id.
        batch_size: Encoder batch size.
    """

    def __init__(self, model_name: str = "intfloat/e5-small-v2", batch_size: int = 32) -> None:
        try:
            from sentence_transformers import SentenceTransformer
        except ImportError as e:
            raise RuntimeError(
                "sentence-transformers is not installed. Install with `pip install javachunk[st]`."
            ) from e
        self.model_name = model_name
        self.batch_size = batch_size
        self._prefixed = "e5" in model_name.lower()
        self._model = SentenceTransformer(model_name)

    @property
    def model_id(self) -> str:
        return f"sbert:{self.model_name}"

    def _encode(self, texts: List[str]) -> List[Sequence[float]]:
        vecs = self._model.encode(texts, batch_size=self.batch_size, normalize_embeddings=True)
        return vecs.tolist()

    def embed(self, texts: List[str]) -> List[Sequence[float]]:
        if not texts:
            return []
        if self._prefixed:
            texts = [f"passage: {t}" for t in texts]
        return self._encode(texts)

    def embed_query(self, text: str) -> Sequence[float]:
        return self._encode([f"query: {text}" if self._prefixed else text])[0]
