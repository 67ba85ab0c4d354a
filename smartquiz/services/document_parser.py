"""Document upload handling and text extraction.

File kind is decided by extension alone. Each kind has its own decoder;
whatever a decoder produces must be at least MIN_TEXT_LENGTH characters.
"""
from __future__ import annotations

import html
import io
import logging
import os
import re
import tempfile
import zipfile
import zlib
from contextlib import contextmanager
from typing import BinaryIO, Iterator, List, Optional, Union

import PyPDF2
import docx

from smartquiz.errors import ExtractionFailed, UnsupportedFormat

logger = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 10
MIN_SLIDE_TEXT_LENGTH = 50

FILE_TYPES = {
    ".pptx": "pptx",
    ".docx": "docx",
    ".pdf": "pdf",
}

ALLOWED_MIMES = {
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/pdf",
}

SLIDE_TEXT_RE = re.compile(rb"<a:t[^>]*>([^<]+)</a:t>")
SLIDE_MEMBER_RE = re.compile(r"^ppt/slides/slide(\d+)\.xml$")

# Cap on decompressed slide XML per deck, same as the upload limit
MAX_SLIDE_XML_BYTES = 25 * 1024 * 1024
SLIDE_READ_CHUNK = 64 * 1024


def get_supported_file_type(filename: str) -> Optional[str]:
    ext = os.path.splitext(filename or "")[1].lower()
    return FILE_TYPES.get(ext)


def validate_document_file(filename: str) -> bool:
    return get_supported_file_type(filename) is not None


def file_stem(filename: str) -> str:
    base = os.path.basename(filename or "")
    return os.path.splitext(base)[0]


@contextmanager
def uploaded_document(source: Union[bytes, BinaryIO], filename: str, upload_dir: Optional[str] = None) -> Iterator[str]:
    """
    Spool an upload to disk and yield its path.

    The file is removed when the block exits, whether it returns or raises.
    """
    ext = os.path.splitext(filename or "")[1].lower()
    if upload_dir:
        os.makedirs(upload_dir, exist_ok=True)
    fd, path = tempfile.mkstemp(prefix="smartquiz_", suffix=ext, dir=upload_dir)
    try:
        with os.fdopen(fd, "wb") as f:
            if isinstance(source, (bytes, bytearray)):
                f.write(source)
            else:
                for chunk in iter(lambda: source.read(64 * 1024), b""):
                    f.write(chunk)
        yield path
    finally:
        try:
            os.unlink(path)
        except FileNotFoundError:
            pass


def _read_member(pkg: zipfile.ZipFile, name: str, budget: int) -> Optional[bytes]:
    """Member bytes, or None once more than budget bytes have come out of it."""
    chunks = []
    size = 0
    with pkg.open(name) as member:
        while True:
            chunk = member.read(SLIDE_READ_CHUNK)
            if not chunk:
                return b"".join(chunks)
            size += len(chunk)
            if size > budget:
                return None
            chunks.append(chunk)


def _slide_sources(data: bytes, max_bytes: Optional[int] = None) -> List[bytes]:
    # Packaged decks: scan the slide members' bytes, in slide order
    if not zipfile.is_zipfile(io.BytesIO(data)):
        return [data]
    budget = MAX_SLIDE_XML_BYTES if max_bytes is None else max_bytes
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as pkg:
            slides = []
            for name in pkg.namelist():
                m = SLIDE_MEMBER_RE.match(name)
                if m:
                    slides.append((int(m.group(1)), name))
            if not slides:
                return [data]
            sources = []
            for _, name in sorted(slides):
                # Declared size first; the streamed count covers a wrong header
                blob = None
                if pkg.getinfo(name).file_size <= budget:
                    blob = _read_member(pkg, name, budget)
                if blob is None:
                    logger.warning("Slide XML budget exhausted at %s, remaining slides skipped", name)
                    break
                budget -= len(blob)
                sources.append(blob)
            return sources
    except (zipfile.BadZipFile, zlib.error, EOFError) as e:
        logger.warning("Unreadable slide package, scanning raw bytes: %s", e)
        return [data]


def scan_slide_text(data: bytes, max_bytes: Optional[int] = None) -> str:
    """
    Collect <a:t> text runs from raw slide bytes, joined by single spaces.

    At most max_bytes (default MAX_SLIDE_XML_BYTES) of slide XML is
    decompressed from a packaged deck; slides past the limit are skipped.
    """
    runs: List[str] = []
    for blob in _slide_sources(data, max_bytes):
        for m in SLIDE_TEXT_RE.finditer(blob):
            runs.append(html.unescape(m.group(1).decode("utf-8", errors="ignore")))
    return " ".join(runs).strip()


def slide_placeholder_text(filename: str) -> str:
    return (
        f"PowerPoint presentation: {file_stem(filename)}. This presentation covers important "
        "topics and concepts that should be understood through multiple choice questions."
    )


def extract_pptx_text(path: str, filename: str, fallback: bool = True) -> str:
    with open(path, "rb") as f:
        data = f.read()
    text = scan_slide_text(data)
    if fallback and len(text) < MIN_SLIDE_TEXT_LENGTH:
        logger.info("Sparse slide text in %s (%d chars), using placeholder", filename, len(text))
        return slide_placeholder_text(filename)
    return text


def extract_docx_text(path: str) -> str:
    document = docx.Document(path)
    parts = [p.text for p in document.paragraphs]
    for table in document.tables:
        for row in table.rows:
            for cell in row.cells:
                parts.extend(p.text for p in cell.paragraphs)
    return "\n".join(p for p in parts if p).strip()


def extract_pdf_text(path: str) -> str:
    reader = PyPDF2.PdfReader(path)
    parts: List[str] = []
    for page in reader.pages:
        parts.append(page.extract_text() or "")
    return "\n".join(parts).strip()


def extract_text_from_path(path: str, filename: str, slide_fallback: bool = True) -> str:
    """
    Extract plain text from a document already on disk.

    Raises UnsupportedFormat for unknown extensions and ExtractionFailed
    when the decoder throws or yields fewer than MIN_TEXT_LENGTH characters.
    """
    kind = get_supported_file_type(filename)
    if kind is None:
        raise UnsupportedFormat()

    try:
        if kind == "pptx":
            text = extract_pptx_text(path, filename, fallback=slide_fallback)
        elif kind == "docx":
            text = extract_docx_text(path)
        else:
            text = extract_pdf_text(path)
    except Exception:
        logger.exception("Error extracting text from %s", kind)
        raise ExtractionFailed(f"Failed to extract text from {kind} file")

    text = (text or "").strip()
    if len(text) < MIN_TEXT_LENGTH:
        raise ExtractionFailed(f"Could not extract sufficient text from {kind.upper()} file")
    return text


def extract_text(data: bytes, filename: str, slide_fallback: bool = True, upload_dir: Optional[str] = None) -> str:
    if not validate_document_file(filename):
        raise UnsupportedFormat()
    with uploaded_document(data, filename, upload_dir=upload_dir) as path:
        return extract_text_from_path(path, filename, slide_fallback=slide_fallback)
