from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"\w+")


@dataclass(frozen=True)
class SearchResult:
    id: int
    title: str
    category: str
    text: str
    relevance: float
    context: str = ""


def tokenize_query(query: str) -> List[str]:
    terms = [t.lower() for t in _TOKEN_RE.findall(query or "") if len(t) >= 2]
    return list(dict.fromkeys(terms))


class ChunkStore:
    """Keyword search over an exported ``chunks.parquet``.

    The table is reloaded only when the file's mtime changes.
    """

    def __init__(self, artifacts_dir: str) -> None:
        self.artifacts_dir = Path(artifacts_dir)
        self._cache: Dict[str, Any] = {}

    def _load(self) -> pd.DataFrame:
        path = self.artifacts_dir / "chunks.parquet"
        if not path.exists():
            raise FileNotFoundError(f"Chunk table not found: {path}")

        mtime = path.stat().st_mtime
        if self._cache.get("mtime") == mtime:
            return self._cache["df"]

        logger.info("Loading chunks from %s", path)
        df = pd.read_parquet(path)
        df["_haystack"] = (df["title"] + " " + df["category"] + " " + df["text"]).str.lower()
        self._cache = {"mtime": mtime, "df": df}
        return df

    def search(self, query: str, top_k: int = 8, category: Optional[str] = None) -> List[SearchResult]:
        terms = tokenize_query(query)
        if not terms:
            return []

        df = self._load()
        if category is not None:
            df = df[df["category"] == category]
        if df.empty:
            return []

        hits = sum(df["_haystack"].str.contains(t, regex=False).astype(int) for t in terms)
        scored = df.assign(relevance=hits * 100.0 / len(terms))
        scored = scored[scored["relevance"] > 0]
        scored = scored.sort_values(["relevance", "id"], ascending=[False, True]).head(top_k)

        logger.debug("Query %r matched %d chunks", query, len(scored))
        return [
            SearchResult(
                id=int(r["id"]),
                title=str(r["title"]),
                category=str(r["category"]),
                text=str(r["text"]),
                relevance=float(r["relevance"]),
                context=str(r["context"] or ""),
            )
            for r in scored.to_dict(orient="records")
        ]
