"""
Document Text Extraction

Implements ContentExtractor for Word, PDF, Excel and plain-text documents.
"""
import io
import logging

import pandas as pd
from docx import Document
from pypdf import PdfReader

from ..core.ports import ContentExtractor

logger = logging.getLogger(__name__)


class DocumentTextExtractor(ContentExtractor):
    """Binary document -> plain text"""

    def extract(self, blob: bytes, kind_hint: str) -> str:
        kind = self.kind_of(kind_hint) if kind_hint not in ("docx", "pdf", "xlsx", "text") else kind_hint
        handlers = {
            "docx": self._docx,
            "pdf": self._pdf,
            "xlsx": self._xlsx,
            "text": self._text,
        }

        handler = handlers.get(kind)
        if handler is None:
            logger.warning(f"Unknown file type: {kind_hint}")
            return ""

        try:
            return handler(blob)
        except Exception as e:
            logger.warning(f"Failed to extract {kind} text: {e}")
            return ""

    def _docx(self, blob: bytes) -> str:
        document = Document(io.BytesIO(blob))
        return "\n".join(p.text for p in document.paragraphs)

    def _pdf(self, blob: bytes) -> str:
        reader = PdfReader(io.BytesIO(blob))
        return "\n".join(page.extract_text() or "" for page in reader.pages)

    def _xlsx(self, blob: bytes) -> str:
        sheets = pd.read_excel(io.BytesIO(blob), sheet_name=None, header=None, engine="openpyxl")
        return "\n\n".join(
            f"Sheet: {name}\n{frame.to_csv(index=False, header=False)}"
            for name, frame in sheets.items()
        )

    def _text(self, blob: bytes) -> str:
        return blob.decode("utf-8", errors="replace")
