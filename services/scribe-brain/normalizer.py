"""Document normalization: any input file -> one in-memory page image -> JPEG payload.

1. Decode the file directly as a raster image (OpenCV)
2. Otherwise open it as a PDF and render page one at its native size (PyMuPDF)
3. Hash the decoded pixels for the correction log
4. Encode as base64 JPEG for upload

Multi-page documents are truncated to their first page.
"""

import base64
import logging
from dataclasses import dataclass
from pathlib import Path

import cv2
import fitz  # PyMuPDF
import numpy as np

from config import settings
from corrections import image_hash
from errors import DocumentUnreadable, EncodingFailed

logger = logging.getLogger(__name__)

JPEG_MIME_TYPE = "image/jpeg"


@dataclass
class NormalizedDocument:
    """A single BGR page image and the hash of its raw pixels."""

    image: np.ndarray
    image_hash: str

    @property
    def size(self) -> tuple[int, int]:
        """(width, height) in pixels."""
        h, w = self.image.shape[:2]
        return w, h


def load_document(path: str | Path) -> NormalizedDocument:
    """Read a file of unknown type and normalize it into one page image."""
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise DocumentUnreadable(f"Could not open {path.name}: {e}") from e

    logger.info("Normalizing %s (%d bytes)", path.suffix or "file", len(data))
    return normalize_bytes(data)


def normalize_bytes(data: bytes) -> NormalizedDocument:
    """Interpret bytes as a raster image, falling back to the first PDF page."""
    if not data:
        raise DocumentUnreadable("File is empty")

    img = _decode(data)
    if img is None:
        img = _render_first_page(data)
    if img is None:
        raise DocumentUnreadable("Could not open file as PDF or Image.")

    return NormalizedDocument(image=img, image_hash=image_hash(img))


def _decode(data: bytes) -> np.ndarray | None:
    """Decode raw bytes into an OpenCV BGR array."""
    try:
        arr = np.frombuffer(data, dtype=np.uint8)
        return cv2.imdecode(arr, cv2.IMREAD_COLOR)
    except cv2.error as e:
        logger.debug("normalizer: raster decode failed: %s", e)
        return None


def _render_first_page(data: bytes) -> np.ndarray | None:
    """Render page one of a PDF at 72 dpi (one pixel per point of the media box)."""
    try:
        with fitz.open(stream=data, filetype="pdf") as doc:
            if doc.page_count == 0:
                logger.warning("normalizer: PDF has no pages")
                return None
            if doc.page_count > 1:
                logger.info("normalizer: using page 1 of %d", doc.page_count)
            page = doc[0]
            # page.rect is the CropBox; render the full MediaBox instead
            page.set_cropbox(page.mediabox)
            pix = page.get_pixmap(matrix=fitz.Identity, alpha=False, colorspace=fitz.csRGB)
            rgb = np.frombuffer(pix.samples, dtype=np.uint8).reshape(pix.height, pix.width, pix.n)
            return cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR)
    except Exception as e:
        logger.debug("normalizer: PDF render failed: %s", e)
        return None


def encode_jpeg_base64(img: np.ndarray, quality: int | None = None) -> str:
    """Compress the page image to JPEG and return it base64-encoded."""
    quality = quality if quality is not None else settings.JPEG_QUALITY
    if img is None or img.size == 0:
        raise EncodingFailed("Could not convert image to JPEG data: image is empty")

    try:
        success, buf = cv2.imencode(".jpg", img, [cv2.IMWRITE_JPEG_QUALITY, quality])
    except cv2.error as e:
        raise EncodingFailed(f"Could not convert image to JPEG data: {e}") from e

    if not success or buf.size == 0:
        raise EncodingFailed("Could not convert image to JPEG data")

    logger.debug("normalizer: encoded JPEG payload (%d bytes, quality=%d)", buf.size, quality)
    return base64.b64encode(buf.tobytes()).decode("ascii")
