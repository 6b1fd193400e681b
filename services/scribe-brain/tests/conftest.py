"""Shared test fixtures for scribe brain tests."""

import json
import shutil
import sys
from pathlib import Path

import numpy as np
import pytest

# Add parent directory to path so we can import the modules
sys.path.insert(0, str(Path(__file__).parent.parent))

DEFAULTS_DIR = Path(__file__).parent.parent / "defaults"


def make_envelope(text: str) -> str:
    """Wrap model text in a Gemini generateContent response body."""
    return json.dumps({"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]})


@pytest.fixture
def sample_image() -> np.ndarray:
    """A 200x300 BGR image with some text-like features."""
    import cv2

    img = np.zeros((300, 200, 3), dtype=np.uint8)
    img[:] = (240, 240, 240)  # Light gray background

    # Dark rectangles simulate text lines
    cv2.rectangle(img, (20, 30), (180, 50), (30, 30, 30), -1)
    cv2.rectangle(img, (20, 70), (160, 90), (30, 30, 30), -1)
    cv2.rectangle(img, (20, 110), (140, 130), (30, 30, 30), -1)
    return img


@pytest.fixture
def sample_image_path(tmp_path: Path, sample_image: np.ndarray) -> Path:
    """A lossless PNG scan on disk."""
    import cv2

    path = tmp_path / "scan.png"
    ok, buf = cv2.imencode(".png", sample_image)
    assert ok
    path.write_bytes(buf.tobytes())
    return path


@pytest.fixture
def sample_pdf_path(tmp_path: Path) -> Path:
    """A one-page 300x400 pt PDF."""
    import fitz

    path = tmp_path / "letter.pdf"
    doc = fitz.open()
    page = doc.new_page(width=300, height=400)
    page.insert_text((40, 60), "Invoice 2024-03-01", fontsize=14)
    doc.save(str(path))
    doc.close()
    return path


@pytest.fixture
def cropped_pdf_path(tmp_path: Path) -> Path:
    """A Letter-size (612x792 pt) page whose CropBox is only 300x400 pt."""
    import fitz

    path = tmp_path / "cropped.pdf"
    doc = fitz.open()
    page = doc.new_page(width=612, height=792)
    page.insert_text((40, 60), "Cropped statement")
    page.set_cropbox(fitz.Rect(0, 0, 300, 400))
    doc.save(str(path))
    doc.close()
    return path


@pytest.fixture
def multipage_pdf_path(tmp_path: Path) -> Path:
    """A PDF whose pages differ in size: 300x400 pt, then 600x200 pt."""
    import fitz

    path = tmp_path / "bundle.pdf"
    doc = fitz.open()
    doc.new_page(width=300, height=400).insert_text((40, 60), "Page one")
    doc.new_page(width=600, height=200).insert_text((40, 60), "Page two")
    doc.save(str(path))
    doc.close()
    return path


@pytest.fixture
def invalid_file_path(tmp_path: Path) -> Path:
    path = tmp_path / "notes.bin"
    path.write_bytes(b"this is not an image file at all")
    return path


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """A configuration directory populated from the shipped defaults."""
    root = tmp_path / "config"
    shutil.copytree(DEFAULTS_DIR, root)
    (root / "api_key.txt").write_text("test-key\n", encoding="utf-8")
    return root


@pytest.fixture
def workspace(config_dir: Path):
    from workspace import Workspace

    return Workspace.load(config_dir, api_key="test-key")


@pytest.fixture
def fenced_response() -> str:
    """Gemini reply whose payload is fenced in a ```json block."""
    return make_envelope('```json\n{"date": "2024-03-01", "category": "Finance"}\n```')
