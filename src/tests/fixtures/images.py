"""Image fixtures for testing, generated in memory with Pillow."""
import io

import pytest
from PIL import Image


def make_image(fmt: str, mode: str = "RGB", size: tuple[int, int] = (8, 6)) -> bytes:
    """Encode a small solid image in the given Pillow format."""
    color = (255, 0, 0, 128) if mode == "RGBA" else (255, 0, 0)
    image = Image.new(mode, size, color)
    if fmt == "GIF":
        image = image.convert("P")
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def open_image(data: bytes) -> Image.Image:
    """Decode image bytes for assertions."""
    image = Image.open(io.BytesIO(data))
    image.load()
    return image


@pytest.fixture
def png_bytes() -> bytes:
    return make_image("PNG")


@pytest.fixture
def rgba_png_bytes() -> bytes:
    return make_image("PNG", mode="RGBA")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image("JPEG")
