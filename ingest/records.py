from __future__ import annotations

from typing import Any, Dict, Iterable, List

from ingest.chunking import Chunk


RECORD_ID_PREFIX = "chunk_"


def record_id(chunk: Chunk) -> str:
    return f"{RECORD_ID_PREFIX}{chunk.id}"


def parse_record_id(rid: str) -> int:
    if not rid.startswith(RECORD_ID_PREFIX):
        raise ValueError(f"Invalid record id: {rid!r}")
    tail = rid[len(RECORD_ID_PREFIX):]
    if not tail.isdigit():
        raise ValueError(f"Invalid record id: {rid!r}")
    return int(tail)


def embedding_text(chunk: Chunk) -> str:
    return f"{chunk.title} {chunk.category} {chunk.text}"


def record_metadata(chunk: Chunk) -> Dict[str, str]:
    return {
        "title": chunk.title,
        "category": chunk.category,
        "text": chunk.text,
        "context": chunk.context,
    }


def build_records(chunks: Iterable[Chunk]) -> List[Dict[str, Any]]:
    """One embedding/upsert payload per chunk, in chunk order."""
    return [
        {
            "id": record_id(c),
            "input": embedding_text(c),
            "metadata": record_metadata(c),
        }
        for c in chunks
    ]
