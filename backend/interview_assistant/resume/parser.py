from pypdf import PdfReader
from docx import Document
from io import BytesIO

from core.config import MAX_RESUME_BYTES

MAX_PDF_PAGES = 5
SUPPORTED_EXTENSIONS = (".pdf", ".docx", ".txt")


class DocumentExtractionError(OSError):
    pass


def parse_pdf(file_bytes: bytes) -> str:
    reader = PdfReader(BytesIO(file_bytes))
    text = []
    for page in reader.pages[:MAX_PDF_PAGES]:
        t = page.extract_text()
        if t:
            text.append(t)
    return "\n".join(text).strip()

def parse_docx(file_bytes: bytes) -> str:
    doc = Document(BytesIO(file_bytes))
    return "\n".join([p.text for p in doc.paragraphs])

def parse_text(file_bytes: bytes) -> str:
    return file_bytes.decode("utf-8", errors="replace")

def extract_text(filename: str, file_bytes: bytes) -> str:
    name = str(filename or "").lower().strip()
    if len(file_bytes or b"") > MAX_RESUME_BYTES:
        raise DocumentExtractionError("File size must be less than 10MB.")

    if name.endswith(".pdf"):
        parser = parse_pdf
    elif name.endswith(".docx"):
        parser = parse_docx
    elif name.endswith(".txt"):
        parser = parse_text
    else:
        raise DocumentExtractionError("Unsupported file format. Please upload a PDF, DOCX or TXT file.")

    try:
        return parser(file_bytes or b"")
    except Exception as exc:
        raise DocumentExtractionError(f"Failed to extract text from {name or 'file'}: {exc}") from exc
