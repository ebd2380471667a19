"""Load rulebook text from various formats."""

import logging
import warnings
from pathlib import Path

import pymupdf
from bs4 import BeautifulSoup

from ..errors import ExtractionFailure, UnsupportedFormat

logger = logging.getLogger(__name__)

BOM = "\ufeff"

TEXT_SUFFIXES = {".md", ".txt", ".html", ".htm"}


def strip_bom(text: str) -> str:
    """Remove a leading byte-order mark."""
    return text[1:] if text.startswith(BOM) else text


def extract_text(path: Path | str, strip_html: bool = False) -> str:
    """
    Load a rulebook file and return its text.

    Supports:
    - .pdf files (page text via PyMuPDF; parser failures yield "")
    - .md / .txt files (read as-is)
    - .html files (read as-is, or converted to text with strip_html)
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".pdf":
        try:
            return load_pdf(path)
        except ExtractionFailure as exc:
            logger.warning("%s", exc)
            return ""
    elif suffix in TEXT_SUFFIXES:
        text = load_text(path)
        if strip_html and suffix in {".html", ".htm"}:
            text = html_to_text(text)
        return text
    else:
        raise UnsupportedFormat(suffix)


def load_text(path: Path) -> str:
    """Load a plain text, Markdown or HTML file."""
    # utf-8-sig also accepts BOM-less UTF-8
    for encoding in ["utf-8-sig", "cp1252", "latin-1"]:
        try:
            return strip_bom(path.read_text(encoding=encoding))
        except UnicodeDecodeError:
            continue

    raise ExtractionFailure(f"Could not decode {path} with any common encoding")


def load_pdf(path: Path) -> str:
    """Load a PDF and join the text of its pages.

    MuPDF's own error and warning output is silenced; a document that
    cannot be opened or read raises ExtractionFailure.
    """
    pymupdf.TOOLS.mupdf_display_errors(False)
    pymupdf.TOOLS.mupdf_display_warnings(False)

    pages: list[str] = []
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            with pymupdf.open(path) as doc:
                for page in doc:
                    pages.append(page.get_text("text"))
    except (pymupdf.mupdf.FzErrorBase, RuntimeError, ValueError, OSError) as exc:
        raise ExtractionFailure(f"PDF parse failed for {path}: {exc}") from exc
    finally:
        pymupdf.TOOLS.reset_mupdf_warnings()

    return strip_bom("\n".join(pages))


def html_to_text(html: str) -> str:
    """Convert HTML markup to plain text lines."""
    soup = BeautifulSoup(html, "html.parser")

    # Remove script and style elements
    for element in soup(["script", "style"]):
        element.decompose()

    text = soup.get_text(separator="\n")

    # Clean up whitespace
    lines = [line.strip() for line in text.splitlines()]
    return "\n".join(line for line in lines if line)
