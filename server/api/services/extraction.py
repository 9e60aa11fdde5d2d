"""
Text extraction service for documents (PDF, DOCX, plain text)
"""
import io
import warnings
import zipfile
from pathlib import Path
from xml.etree import ElementTree

from core.errors import BadRequest, EmptyInput
from utils.logging import log


class ExtractionError(Exception):
    """The file could not be turned into text."""


def extract_text_from_pdf(content: bytes, filename: str) -> str:
    """Extract text from every PDF page, pages separated by blank lines."""
    from PyPDF2 import PdfReader
    from PyPDF2.errors import PdfReadError

    # Suppress PyPDF2 warnings about PDF structure issues
    warnings.filterwarnings('ignore', category=UserWarning, module='PyPDF2')

    try:
        reader = PdfReader(io.BytesIO(content))
        if reader.is_encrypted:
            reader.decrypt("")
        log(f"📚 {filename} has {len(reader.pages)} pages")
        pages = [(page.extract_text() or "").strip() for page in reader.pages]
    except (PdfReadError, ValueError, KeyError) as e:
        raise ExtractionError(f"Could not read PDF: {e}")

    return "\n\n".join(page for page in pages if page)


def extract_text_from_docx(content: bytes) -> str:
    """Extract text from DOCX file."""
    text_parts = []

    try:
        with zipfile.ZipFile(io.BytesIO(content)) as zf:
            if 'word/document.xml' in zf.namelist():
                xml_content = zf.read('word/document.xml')
                tree = ElementTree.fromstring(xml_content)

                ns = {'w': 'http://schemas.openxmlformats.org/wordprocessingml/2006/main'}
                for para in tree.findall('.//w:p', ns):
                    para_text = ''.join(node.text or '' for node in para.findall('.//w:t', ns))
                    if para_text.strip():
                        text_parts.append(para_text)
    except (zipfile.BadZipFile, ElementTree.ParseError) as e:
        raise ExtractionError(f"Could not read DOCX: {e}")

    return '\n\n'.join(text_parts)


def decode_text(content: bytes) -> str:
    # Try common encodings
    for encoding in ['utf-8', 'latin-1', 'cp1252']:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            continue
    return content.decode('utf-8', errors='replace')


def extract_text(content: bytes, filename: str) -> str:
    """Extract text from file based on extension."""
    if not content or len(content.strip()) == 0:
        raise EmptyInput("File is empty")

    ext = Path(filename).suffix.lower()

    if ext == '.pdf':
        return extract_text_from_pdf(content, filename)
    elif ext == '.docx':
        return extract_text_from_docx(content)
    elif ext in {'.md', '.txt'}:
        return decode_text(content)
    else:
        raise BadRequest(f"Unsupported file type: {ext}")
