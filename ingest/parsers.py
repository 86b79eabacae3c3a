from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from bs4 import BeautifulSoup
from docx import Document as DocxDocument
from pypdf import PdfReader

from ingest.chunking import Document

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".txt", ".md", ".markdown", ".html", ".htm", ".docx", ".pdf")

_BLOCK_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6", "p", "li"]


def _normalize_newlines(s: str) -> str:
    return s.replace("\r\n", "\n").replace("\r", "\n")


def _read_text_file(path: Path) -> str:
    raw = path.read_bytes()
    for enc in ("utf-8", "utf-8-sig", "cp1251", "latin-1"):
        try:
            return raw.decode(enc)
        except UnicodeDecodeError:
            continue
    return raw.decode("utf-8", errors="replace")


def title_from_filename(path: Path) -> str:
    return path.stem.replace("-", " ")


def extract_text_from_html(html: str) -> str:
    soup = BeautifulSoup(html, "lxml")

    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()

    blocks: List[str] = []
    for el in soup.find_all(_BLOCK_TAGS):
        txt = (el.get_text(" ", strip=True) or "").strip()
        if txt:
            blocks.append(txt)

    if not blocks:
        return soup.get_text(" ", strip=True)
    return "\n\n".join(blocks)


def extract_text_from_docx(path: Path) -> str:
    doc = DocxDocument(str(path))
    parts = []
    for p in doc.paragraphs:
        t = (p.text or "").strip()
        if t:
            parts.append(t)
    return "\n\n".join(parts)


def extract_text_from_pdf(path: Path) -> str:
    reader = PdfReader(str(path))
    parts = []
    for page in reader.pages:
        t = (page.extract_text() or "").strip()
        if t:
            parts.append(t)
    return "\n\n".join(parts)


def parse_file(path: Path, category: str) -> Document:
    ext = path.suffix.lower()

    if ext in (".txt", ".md", ".markdown"):
        content = _read_text_file(path)
    elif ext in (".html", ".htm"):
        content = extract_text_from_html(_read_text_file(path))
    elif ext == ".docx":
        content = extract_text_from_docx(path)
    elif ext == ".pdf":
        content = extract_text_from_pdf(path)
    else:
        raise ValueError(f"Unsupported file type: {path}")

    return Document(
        category=category,
        title=title_from_filename(path),
        content=_normalize_newlines(content),
        source_path=str(path.resolve()),
    )


def load_knowledge(root: str = "knowledge") -> List[Document]:
    """Load every supported file under ``root/<category>/``.

    Category directories and the files inside them are visited in sorted
    order so that chunk ids stay stable between runs.
    """
    root_dir = Path(root).resolve()
    if not root_dir.exists():
        raise FileNotFoundError(f"Knowledge dir not found: {root_dir}")

    docs: List[Document] = []
    for category_dir in sorted(p for p in root_dir.iterdir() if p.is_dir()):
        for path in sorted(category_dir.iterdir()):
            if not path.is_file():
                continue
            if path.suffix.lower() not in SUPPORTED_EXTENSIONS:
                logger.debug("Skipping unsupported file %s", path)
                continue
            docs.append(parse_file(path, category=category_dir.name))

    logger.info("Loaded %d documents from %s", len(docs), root_dir)
    return docs
