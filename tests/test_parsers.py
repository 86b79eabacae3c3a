from __future__ import annotations

from pathlib import Path

import pytest
from docx import Document as DocxDocument

from ingest.parsers import (
    extract_text_from_docx,
    extract_text_from_html,
    load_knowledge,
    parse_file,
    title_from_filename,
)


@pytest.fixture()
def knowledge_dir(tmp_path):
    root = tmp_path / "knowledge"
    (root / "iot").mkdir(parents=True)
    (root / "computing").mkdir()
    (root / "iot" / "hcia-iot-basics.txt").write_bytes(b"Sensors.\r\n\r\nProtocols.")
    (root / "computing" / "hcia-computing.md").write_text("# Servers\n\nRack servers.", encoding="utf-8")
    (root / "computing" / "notes.csv").write_text("a,b", encoding="utf-8")
    (root / "stray.txt").write_text("not in a category", encoding="utf-8")
    return root


class TestTitleFromFilename:
    def test_dashes_become_spaces(self):
        assert title_from_filename(Path("hcia-iot-basics.txt")) == "hcia iot basics"


class TestExtractTextFromHtml:
    def test_blocks_separated_by_blank_lines(self):
        html = "<html><body><script>alert('x')</script><h1>Hello</h1><p>World</p></body></html>"
        assert extract_text_from_html(html) == "Hello\n\nWorld"

    def test_no_block_elements(self):
        assert extract_text_from_html("<html><body><span>Loose text</span></body></html>") == "Loose text"


class TestExtractTextFromDocx:
    def test_paragraphs_become_sections(self, tmp_path):
        path = tmp_path / "guide.docx"
        d = DocxDocument()
        d.add_paragraph("First paragraph.")
        d.add_paragraph("")
        d.add_paragraph("Second paragraph.")
        d.save(str(path))
        assert extract_text_from_docx(path) == "First paragraph.\n\nSecond paragraph."


class TestParseFile:
    def test_text_file(self, knowledge_dir):
        doc = parse_file(knowledge_dir / "iot" / "hcia-iot-basics.txt", category="iot")
        assert doc.category == "iot"
        assert doc.title == "hcia iot basics"
        assert doc.content == "Sensors.\n\nProtocols."
        assert doc.source_path.endswith("hcia-iot-basics.txt")

    def test_unsupported(self, knowledge_dir):
        with pytest.raises(ValueError):
            parse_file(knowledge_dir / "computing" / "notes.csv", category="computing")


class TestLoadKnowledge:
    def test_loads_category_dirs_in_order(self, knowledge_dir):
        docs = load_knowledge(str(knowledge_dir))
        assert [(d.category, d.title) for d in docs] == [
            ("computing", "hcia computing"),
            ("iot", "hcia iot basics"),
        ]

    def test_missing_root(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_knowledge(str(tmp_path / "nope"))
