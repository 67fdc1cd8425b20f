"""
Ollama embedding backend.

Talks to a local Ollama server over HTTP. Newer servers embed a whole batch
through `POST /api/embed`; older ones only offer `POST /api/embeddings`, one
text per request, and some of those want the text under "prompt" rather than
"input". The embedder tries the batch endpoint once and remembers when it is
missing.

Large classes can exceed a model's context and make Ollama answer 5xx; in that
case the input is halved (down to a floor) and retried.

Limits come from the environment:
  - JAVACHUNK_EMBED_MAX_CHARS (default 4000): inputs are cut to this length
  - JAVACHUNK_EMBED_MIN_CHARS (default 800): shortest input a retry may use
  - JAVACHUNK_EMBED_TIMEOUT   (default 180): HTTP timeout in seconds
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import requests

from .base import Embedder

logger = logging.getLogger(__name__)

MAX_SHRINK_RETRIES = 4


@dataclass(frozen=True)
class OllamaLimits:
    max_chars: int = 4000
    min_chars: int = 800
    timeout: int = 180

    @classmethod
    def from_env(cls) -> "OllamaLimits":
        return cls(
            max_chars=int(os.getenv("JAVACHUNK_EMBED_MAX_CHARS", "4000")),
            min_chars=int(os.getenv("JAVACHUNK_EMBED_MIN_CHARS", "800")),
            timeout=int(os.getenv("JAVACHUNK_EMBED_TIMEOUT", "180")),
        )


def check_ollama(host: str = "http://localhost:11434", timeout: int = 3) -> bool:
    """True if an Ollama server answers at `host`."""
    try:
        r = requests.get(host.rstrip("/") + "/api/version", timeout=timeout)
    except requests.RequestException:
        return False
    return r.ok


def _vectors(body: Any) -> Optional[List[List[float]]]:
    """Embeddings from either response shape: {"embeddings": [...]} or {"embedding": [...]}."""
    if not isinstance(body, dict):
        return None
    many = body.get("embeddings")
    if isinstance(many, list) and many and all(isinstance(v, list) and v for v in many):
        return many
    one = body.get("embedding")
    if isinstance(one, list) and one:
        return [one]
    return None


class OllamaEmbedder(Embedder):
    """
    Embeddings from an Ollama server.

    Attributes:
        host: Server base URL.
        model: Embedding model name, e.g. `nomic-embed-text`.
        limits: Input length and timeout limits.
    """

    def __init__(self, host: str, model: str, limits: Optional[OllamaLimits] = None) -> None:
        self.host = host.rstrip("/")
        self.model = model
        self.limits = limits or OllamaLimits.from_env()
        self._batch_supported = True

    @property
    def model_id(self) -> str:
        return f"ollama:{self.model}"

    def _post(self, endpoint: str, payload: Dict[str, Any]) -> requests.Response:
        return requests.post(f"{self.host}{endpoint}", json=payload, timeout=self.limits.timeout)

    def _prepare(self, text: str) -> str:
        # NUL bytes break some tokenizers
        text = text.replace("\x00", "").replace("\r\n", "\n").replace("\r", "\n")
        if self.limits.max_chars > 0:
            text = text[: self.limits.max_chars]
        return text

    def _embed_batch(self, texts: List[str]) -> Optional[List[List[float]]]:
        """One request for the whole batch; None when the legacy endpoint must be used."""
        try:
            r = self._post("/api/embed", {"model": self.model, "input": texts})
            if r.status_code == 404:
                logger.info("Ollama at %s has no /api/embed, using /api/embeddings", self.host)
                self._batch_supported = False
                return None
            r.raise_for_status()
            vecs = _vectors(r.json())
        except (requests.RequestException, ValueError) as e:
            logger.debug("Batch embedding failed, retrying per text: %s", e)
            return None
        if vecs is None or len(vecs) != len(texts):
            logger.debug("Batch embedding returned %s vector(s) for %d text(s)", len(vecs or []), len(texts))
            return None
        return vecs

    def _embed_one(self, text: str) -> List[float]:
        """Legacy endpoint, shrinking the input on server errors."""
        for attempt in range(1, MAX_SHRINK_RETRIES + 2):
            r = self._post("/api/embeddings", {"model": self.model, "input": text})
            if r.status_code == 404:
                r = self._post("/api/embeddings", {"model": self.model, "prompt": text})
            if r.ok:
                vecs = _vectors(r.json())
                if not vecs:
                    raise ValueError(f"Ollama returned no embedding (model {self.model})")
                return vecs[0]
            if r.status_code >= 500 and len(text) > self.limits.min_chars and attempt <= MAX_SHRINK_RETRIES:
                logger.info("Ollama answered %s; retrying with %d chars", r.status_code, len(text) // 2)
                time.sleep(0.5 * attempt)
                text = text[: max(self.limits.min_chars, len(text) // 2)]
                continue
            break
        raise requests.HTTPError(
            f"Ollama embeddings failed with status {r.status_code} "
            f"(model {self.model}, host {self.host}). "
            f"Lowering JAVACHUNK_EMBED_MAX_CHARS helps with very large classes. "
            f"Response: {r.text[:800]}",
            response=r,
        )

    def embed(self, texts: List[str]) -> List[Sequence[float]]:
        """
        Embed `texts`, batched when the server allows it.

        Raises:
            requests.HTTPError: If the server keeps answering with an error.
            ValueError: If the server answers without an embedding.
        """
        if not texts:
            return []
        prepared = [self._prepare(t) for t in texts]
        if self._batch_supported:
            vecs = self._embed_batch(prepared)
            if vecs is not None:
                return vecs
        return [self._embed_one(t) for t in prepared]
