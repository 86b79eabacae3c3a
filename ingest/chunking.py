from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Sequence, Tuple


# Approximate average word length used to turn a character overlap budget
# into a word count. Tunable; the resulting overlap is not re-measured.
CHARS_PER_WORD = 5

# Texts with this many words or fewer are carried over whole as overlap.
SHORT_TEXT_WORDS = 3

CONTEXT_PREVIEW_CHARS = 100


@dataclass(frozen=True)
class Document:
    category: str
    title: str
    content: str
    source_path: Optional[str] = None


@dataclass(frozen=True)
class Chunk:
    id: int
    category: str
    title: str
    text: str
    chunk_index: int
    context: str = ""


_SECTION_SPLIT_RE = re.compile(r"\n\s*\n")
_SENT_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")


def split_into_sections(text: str) -> List[str]:
    return [s.strip() for s in _SECTION_SPLIT_RE.split(text) if s.strip()]


def split_into_sentences(text: str) -> List[str]:
    sentences = [s for s in _SENT_SPLIT_RE.split(text) if s.strip()]
    return sentences if sentences else [text]


def overlap_word_count(overlap_size: int) -> int:
    return max(0, overlap_size // CHARS_PER_WORD)


def overlap_words(text: str, overlap_size: int) -> str:
    """Trailing words of ``text`` carried into the next chunk."""
    words = text.split()
    if len(words) <= SHORT_TEXT_WORDS:
        return text

    count = overlap_word_count(overlap_size)
    if count == 0:
        return ""
    return " ".join(words[-count:])


def section_context(sections: Sequence[str], index: int) -> str:
    parts: List[str] = []

    if index > 0:
        prev = sections[index - 1][:CONTEXT_PREVIEW_CHARS].strip()
        if prev:
            parts.append(f"Previous: {prev}")

    if index < len(sections) - 1:
        nxt = sections[index + 1][:CONTEXT_PREVIEW_CHARS].strip()
        if nxt:
            parts.append(f"Next: {nxt}")

    return " | ".join(parts)


def pack_units(
    units: Iterable[str],
    max_chunk_size: int,
    overlap_size: int,
) -> List[Tuple[str, str]]:
    """Greedily pack sentences or words into ``(text, context)`` pairs.

    A unit is appended to the running chunk while the result stays within
    ``max_chunk_size``, or unconditionally when the running chunk is empty.
    On overflow the running chunk is closed and its trailing overlap words
    seed the next one; that overlap text is also the next chunk's context.
    """
    packed: List[Tuple[str, str]] = []
    current = ""
    overlap = ""

    for unit in units:
        candidate = f"{current} {unit}" if current else unit
        if not current or len(candidate) <= max_chunk_size:
            current = candidate
            continue

        packed.append((current.strip(), overlap))
        overlap = overlap_words(current, overlap_size)
        current = f"{overlap} {unit}" if overlap else unit

    if current.strip():
        packed.append((current.strip(), overlap))

    return packed


def split_section(
    section: str,
    max_chunk_size: int,
    overlap_size: int,
) -> List[Tuple[str, str]]:
    sentences = split_into_sentences(section)

    if len(sentences) == 1 or len(section) <= max_chunk_size:
        return pack_units(section.split(), max_chunk_size, overlap_size)

    return pack_units(sentences, max_chunk_size, overlap_size)


def chunk_document(
    doc: Document,
    max_chunk_size: int = 500,
    overlap_size: int = 100,
    start_id: int = 0,
) -> Tuple[List[Chunk], int]:
    """Chunk one document; returns its chunks and the next free id."""
    out: List[Chunk] = []
    next_id = start_id

    sections = split_into_sections(doc.content)

    for i, section in enumerate(sections):
        if len(section) <= max_chunk_size:
            pieces = [(section, section_context(sections, i))]
        else:
            pieces = split_section(section, max_chunk_size, overlap_size)

        for text, context in pieces:
            out.append(
                Chunk(
                    id=next_id,
                    category=doc.category,
                    title=doc.title,
                    text=text,
                    chunk_index=len(out),
                    context=context,
                )
            )
            next_id += 1

    return out, next_id


def assign_ids(per_document: Iterable[List[Chunk]], start_id: int = 0) -> List[Chunk]:
    """Renumber independently produced chunk lists in document order."""
    chunks: List[Chunk] = []
    next_id = start_id
    for doc_chunks in per_document:
        for c in doc_chunks:
            chunks.append(replace(c, id=next_id))
            next_id += 1
    return chunks


def chunk_corpus(
    documents: Iterable[Document],
    max_chunk_size: int = 500,
    overlap_size: int = 100,
) -> List[Chunk]:
    chunks: List[Chunk] = []
    next_id = 0
    for d in documents:
        doc_chunks, next_id = chunk_document(
            d, max_chunk_size=max_chunk_size, overlap_size=overlap_size, start_id=next_id
        )
        chunks.extend(doc_chunks)
    return chunks
