"""
Image decoding and preprocessing for OCR.

Accepts the in-memory forms an upload can arrive in (data URL, raw bytes,
file path, numpy array, PIL image) and produces what the engine consumes.
"""

import base64
import binascii
from pathlib import Path
from typing import Any

import cv2
import numpy as np
from PIL import Image

DATA_URL_PREFIX = "data:"

# Contrast boost used by preprocess_image()
CONTRAST = 1.5


def _decode_bytes(payload: bytes) -> np.ndarray:
    buffer = np.frombuffer(payload, dtype=np.uint8)
    image = cv2.imdecode(buffer, cv2.IMREAD_COLOR) if buffer.size else None
    if image is None:
        raise ValueError("Cannot decode image data")
    return image


def _decode_data_url(data_url: str) -> np.ndarray:
    header, sep, encoded = data_url.partition(",")
    if not sep or ";base64" not in header:
        raise ValueError("Unsupported data URL, expected base64 payload")
    try:
        payload = base64.b64decode(encoded, validate=False)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"Invalid base64 image data: {exc}") from exc
    return _decode_bytes(payload)


def decode_image(image: Any) -> np.ndarray:
    """
    Decode an image into a BGR (or single-channel) numpy array.

    Args:
        image: data URL, raw encoded bytes, file path, numpy array or PIL image

    Returns:
        Image as numpy array

    Raises:
        ValueError: If the payload cannot be decoded
        FileNotFoundError: If a path does not exist
    """
    if isinstance(image, np.ndarray):
        return image
    if isinstance(image, Image.Image):
        rgb = np.asarray(image.convert("RGB"))
        return cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR)
    if isinstance(image, (bytes, bytearray, memoryview)):
        return _decode_bytes(bytes(image))
    if isinstance(image, str) and image.startswith(DATA_URL_PREFIX):
        return _decode_data_url(image)
    if isinstance(image, (str, Path)):
        path = Path(image)
        if not path.exists():
            raise FileNotFoundError(f"Cannot read image: {image}")
        return _decode_bytes(path.read_bytes())
    raise ValueError(f"Unsupported image input: {type(image).__name__}")


def preprocess_image(image: np.ndarray, contrast: float = CONTRAST) -> np.ndarray:
    """
    Convert to grayscale and stretch contrast around mid-gray.

    Uses luma weights 0.299/0.587/0.114 and the standard contrast factor
    259 * (c + 255) / (255 * (259 - c)).
    """
    if image.ndim == 2:
        gray = image.astype(np.float32)
    else:
        b = image[:, :, 0].astype(np.float32)
        g = image[:, :, 1].astype(np.float32)
        r = image[:, :, 2].astype(np.float32)
        gray = np.round(0.299 * r + 0.587 * g + 0.114 * b)

    factor = (259 * (contrast + 255)) / (255 * (259 - contrast))
    enhanced = np.clip(factor * (gray - 128) + 128, 0, 255)
    return enhanced.astype(np.uint8)


def to_pil(image: np.ndarray) -> Image.Image:
    """Hand a decoded array to PIL (RGB or L) for pytesseract."""
    if image.ndim == 2:
        return Image.fromarray(image)
    if image.shape[2] == 4:
        image = cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    return Image.fromarray(cv2.cvtColor(image, cv2.COLOR_BGR2RGB))
