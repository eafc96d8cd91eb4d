"""
Reference document extraction

Turns uploaded PDF, TXT/MD and DOCX files into plain text for research.
"""

import re
import zipfile
from pathlib import Path
from typing import Union

import fitz  # PyMuPDF

from ...adapters.base import ReferenceDocumentReader
from ...config import SUPPORTED_DOCUMENT_EXTENSIONS
from ...core.exceptions import UnsupportedDocumentFormatError
from ...core.logging import get_logger

logger = get_logger(__name__, component="documents")

# Printable ASCII, common whitespace and the Arabic block survive PDF cleanup
_PDF_JUNK_RE = re.compile(r"[^\x20-\x7E\n\r\t\u0600-\u06FF]")
_XML_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")


def _collapse(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def clean_pdf_text(text: str) -> str:
    """Strip binary artifacts, keeping printable ASCII plus Arabic."""
    return _collapse(_PDF_JUNK_RE.sub(" ", text))


def strip_xml_tags(text: str) -> str:
    return _collapse(_XML_TAG_RE.sub(" ", text))


class DocumentReader(ReferenceDocumentReader):
    """Reads the document types users may attach as research references."""

    def read(self, path: Union[str, Path]) -> str:
        path = Path(path)
        suffix = path.suffix.lower()
        if suffix not in SUPPORTED_DOCUMENT_EXTENSIONS:
            raise UnsupportedDocumentFormatError(
                f'Unsupported file format: "{path.name}". Supported formats: PDF, TXT, DOCX.'
            )

        if suffix in (".txt", ".md"):
            return path.read_text(encoding="utf-8")
        if suffix == ".pdf":
            return clean_pdf_text(self._read_pdf(path))
        return strip_xml_tags(self._read_docx(path))

    @staticmethod
    def _read_pdf(path: Path) -> str:
        """Text layer via PyMuPDF; files that do not parse as PDF are read raw."""
        try:
            doc = fitz.open(str(path))
        except (RuntimeError, ValueError) as e:
            logger.warning(
                "PDF parse failed, reading raw text",
                extra={"path": str(path), "error": str(e)},
            )
            return path.read_bytes().decode("utf-8", errors="replace")

        try:
            pages = [doc[page_num].get_text() for page_num in range(len(doc))]
        finally:
            doc.close()
        return "\n".join(pages)

    @staticmethod
    def _read_docx(path: Path) -> str:
        if zipfile.is_zipfile(path):
            with zipfile.ZipFile(path) as archive:
                try:
                    return archive.read("word/document.xml").decode("utf-8", errors="replace")
                except KeyError:
                    logger.warning("DOCX archive has no document body", extra={"path": str(path)})
                    return ""
        return path.read_bytes().decode("utf-8", errors="replace")
