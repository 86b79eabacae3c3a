from __future__ import annotations

import json
import logging
import os
from concurrent.futures import ProcessPoolExecutor
from dataclasses import asdict, dataclass, field
from functools import partial
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd
from tqdm import tqdm

from ingest.chunking import Chunk, Document, assign_ids, chunk_corpus, chunk_document
from ingest.parsers import load_knowledge
from ingest.records import build_records, record_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChunkingConfig:
    max_chunk_size: int = field(default_factory=lambda: int(os.getenv("CHUNK_MAX_SIZE", "500")))
    overlap_size: int = field(default_factory=lambda: int(os.getenv("CHUNK_OVERLAP", "100")))

    def validate(self) -> None:
        if self.max_chunk_size <= 0:
            raise ValueError("max_chunk_size must be positive")
        if self.overlap_size < 0:
            raise ValueError("overlap_size must be non-negative")


def _ensure_dir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)


def _chunk_one(doc: Document, max_chunk_size: int, overlap_size: int) -> List[Chunk]:
    chunks, _ = chunk_document(doc, max_chunk_size=max_chunk_size, overlap_size=overlap_size)
    return chunks


def chunk_documents(
    docs: List[Document],
    cfg: ChunkingConfig,
    max_workers: Optional[int] = None,
    show_progress: bool = False,
) -> List[Chunk]:
    """Chunk ``docs``; with ``max_workers > 1`` documents are chunked in a
    process pool and ids are renumbered afterwards, so the result is the
    same as the sequential run."""
    cfg.validate()

    if not max_workers or max_workers <= 1 or len(docs) <= 1:
        if show_progress:
            docs = tqdm(docs, desc="Chunking documents")
        return chunk_corpus(docs, max_chunk_size=cfg.max_chunk_size, overlap_size=cfg.overlap_size)

    work = partial(_chunk_one, max_chunk_size=cfg.max_chunk_size, overlap_size=cfg.overlap_size)
    logger.info("Chunking %d documents with %d workers", len(docs), max_workers)
    with ProcessPoolExecutor(max_workers=max_workers) as pool:
        per_doc = list(pool.map(work, docs))
    return assign_ids(per_doc)


def chunks_to_dataframe(chunks: List[Chunk]) -> pd.DataFrame:
    columns = ["id", "category", "title", "text", "chunk_index", "context"]
    return pd.DataFrame([asdict(c) for c in chunks], columns=columns)


def write_artifacts(
    chunks: List[Chunk],
    artifacts_dir: Path,
    meta: Dict[str, object],
) -> None:
    _ensure_dir(artifacts_dir)

    chunks_to_dataframe(chunks).to_parquet(artifacts_dir / "chunks.parquet", index=False)

    with (artifacts_dir / "records.jsonl").open("w", encoding="utf-8") as f:
        for rec in build_records(chunks):
            f.write(json.dumps(rec, ensure_ascii=False) + "\n")

    # record id -> parquet row
    id_map = {record_id(c): i for i, c in enumerate(chunks)}
    (artifacts_dir / "id_map.json").write_text(
        json.dumps(id_map, ensure_ascii=False, indent=2), encoding="utf-8"
    )
    (artifacts_dir / "build_meta.json").write_text(
        json.dumps(meta, ensure_ascii=False, indent=2), encoding="utf-8"
    )


def build_chunks(
    raw_dir: str,
    artifacts_dir: str,
    cfg: Optional[ChunkingConfig] = None,
    max_workers: Optional[int] = None,
    show_progress: bool = False,
) -> Dict[str, int]:
    cfg = cfg or ChunkingConfig()
    cfg.validate()

    docs = load_knowledge(raw_dir)
    chunks = chunk_documents(docs, cfg, max_workers=max_workers, show_progress=show_progress)
    if not chunks:
        raise RuntimeError("No chunks produced from knowledge documents.")

    logger.info("Produced %d chunks from %d documents", len(chunks), len(docs))

    meta = {
        "raw_dir": raw_dir,
        "max_chunk_size": cfg.max_chunk_size,
        "overlap_size": cfg.overlap_size,
        "workers": max_workers or 1,
        "num_docs": len(docs),
        "num_chunks": len(chunks),
    }
    write_artifacts(chunks, Path(artifacts_dir), meta)

    return {"num_docs": len(docs), "num_chunks": len(chunks)}
