import re
import logging
import pdfplumber
import docx

logger = logging.getLogger(__name__)

PDF_TYPES = {".pdf"}
WORD_TYPES = {".docx", ".doc"}

_DISALLOWED_CHARS = re.compile(r"[^\w\s\-.,!?@#$%&*()+=<>\[\]{}|\\/:;'\"`~]")


class UnsupportedFileType(ValueError):
    pass


class DocumentParseError(RuntimeError):
    pass


def parse_pdf_text(path: str) -> str:
    try:
        text_parts = []
        with pdfplumber.open(path) as pdf:
            for page in pdf.pages:
                t = page.extract_text() or ""
                text_parts.append(t)
        return "\n".join(text_parts)
    except Exception as exc:
        logger.error("Error parsing PDF %s: %s", path, exc)
        raise DocumentParseError("Failed to parse PDF file") from exc


def parse_docx_text(path: str) -> str:
    try:
        document = docx.Document(path)
        parts = [p.text for p in document.paragraphs]
        for table in document.tables:
            for row in table.rows:
                parts.append(" | ".join(cell.text for cell in row.cells))
        return "\n".join(p for p in parts if p)
    except Exception as exc:
        logger.error("Error parsing DOCX %s: %s", path, exc)
        raise DocumentParseError("Failed to parse DOCX file") from exc


def extract_text(path: str, file_type: str) -> str:
    ftype = (file_type or "").lower()
    if not ftype.startswith("."):
        ftype = f".{ftype}"
    if ftype in PDF_TYPES:
        return parse_pdf_text(path)
    if ftype in WORD_TYPES:
        return parse_docx_text(path)
    raise UnsupportedFileType(f"Unsupported file type: {file_type}")


def clean_text(text: str) -> str:
    text = (text or "").replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"[^\S\n]+", " ", text)
    text = re.sub(r" ?\n ?", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    text = _DISALLOWED_CHARS.sub("", text)
    return text.strip()
