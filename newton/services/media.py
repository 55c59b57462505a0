import re
from io import BytesIO
from flask import current_app
from pypdf import PdfReader
from pypdf.errors import PdfReadError
from youtube_transcript_api import YouTubeTranscriptApi, CouldNotRetrieveTranscript


class ExtractionError(Exception):
    """Raised when no usable text can be pulled out of a source."""


YOUTUBE_PATTERNS = [
    re.compile(r"(?:youtube\.com/watch\?(?:.*&)?v=|youtu\.be/|youtube\.com/embed/|youtube\.com/shorts/)([a-zA-Z0-9_-]{11})"),
    re.compile(r"^([a-zA-Z0-9_-]{11})$"),
]


def extract_text_from_pdf(data):
    """Extract the text of every page of a PDF held in memory."""
    try:
        reader = PdfReader(BytesIO(data))
        pages = [page.extract_text() or "" for page in reader.pages]
    except (PdfReadError, ValueError) as e:
        raise ExtractionError(f"Failed to extract text from PDF: {e}") from e

    text = "\n".join(pages).strip()
    if not text:
        raise ExtractionError("No text could be extracted from the PDF")

    current_app.logger.info(f"PDF text extraction successful: {len(pages)} pages, {len(text)} characters")
    return text


def extract_video_id(url):
    """Return the 11-character video id of a YouTube URL (or bare id), else None."""
    url = (url or "").strip()
    for pattern in YOUTUBE_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def fetch_youtube_transcript(video_id, languages=("en",)):
    """Fetch captions for a video and join them into one string."""
    try:
        fetched = YouTubeTranscriptApi().fetch(video_id, languages=list(languages))
    except CouldNotRetrieveTranscript as e:
        raise ExtractionError(f"Could not fetch transcript for {video_id}: {e}") from e

    text = " ".join(s.text.strip() for s in fetched if s.text and s.text.strip())
    if not text:
        raise ExtractionError("Transcript is empty")
    return text
