import base64

import cv2
import numpy as np
import pytest
from PIL import Image

from core.vision.image_processor import decode_image, preprocess_image, to_pil


def _encoded_png(image: np.ndarray) -> bytes:
    ok, encoded = cv2.imencode(".png", image)
    assert ok
    return encoded.tobytes()


def test_decode_data_url():
    image = np.zeros((4, 6, 3), dtype=np.uint8)
    image[:, :, 1] = 200
    data_url = "data:image/png;base64," + base64.b64encode(_encoded_png(image)).decode()

    decoded = decode_image(data_url)

    assert decoded.shape == (4, 6, 3)
    assert int(decoded[0, 0, 1]) == 200


def test_decode_bytes_path_and_pil(tmp_path):
    image = np.full((5, 5, 3), 127, dtype=np.uint8)
    payload = _encoded_png(image)
    path = tmp_path / "scan.png"
    path.write_bytes(payload)

    assert decode_image(payload).shape == (5, 5, 3)
    assert decode_image(str(path)).shape == (5, 5, 3)
    assert decode_image(Image.new("RGB", (3, 2), "white")).shape == (2, 3, 3)


def test_decode_rejects_garbage(tmp_path):
    with pytest.raises(ValueError):
        decode_image(b"not an image")
    with pytest.raises(ValueError):
        decode_image("data:image/png,plain")
    with pytest.raises(FileNotFoundError):
        decode_image(str(tmp_path / "missing.png"))
    with pytest.raises(ValueError):
        decode_image(42)


def test_preprocess_produces_grayscale_with_stretched_contrast():
    image = np.zeros((2, 2, 3), dtype=np.uint8)
    image[0, 0] = (255, 255, 255)
    image[0, 1] = (0, 0, 0)
    image[1, 0] = (128, 128, 128)
    image[1, 1] = (0, 0, 255)  # pure red in BGR

    result = preprocess_image(image)

    assert result.shape == (2, 2)
    assert result.dtype == np.uint8
    assert result[0, 0] == 255
    assert result[0, 1] == 0
    assert result[1, 0] == 128
    # luma of red is 76, pushed slightly further from mid-gray
    assert result[1, 1] < 76


def test_to_pil_converts_bgr_to_rgb():
    image = np.zeros((1, 1, 3), dtype=np.uint8)
    image[0, 0] = (255, 0, 0)  # blue in BGR

    pil_image = to_pil(image)

    assert pil_image.mode == "RGB"
    assert pil_image.getpixel((0, 0)) == (0, 0, 255)
    assert to_pil(np.zeros((2, 2), dtype=np.uint8)).mode == "L"
