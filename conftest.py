import io
import random
import sys
from pathlib import Path

import pytest
from PIL import Image

# Ensure repo root on sys.path for the flat module layout.
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from template_catalog import build_catalog  # noqa: E402


class InMemoryTemplateStorage:
    """Records uploads instead of writing them anywhere."""

    def __init__(self, bucket: str = "test-bucket"):
        self.bucket = bucket
        self.objects = {}

    def put(self, key, data, content_type="image/png", cache_control="public, max-age=31536000"):
        self.objects[key] = (data, content_type)
        return f"https://{self.bucket}.s3.amazonaws.com/{key}"


def make_png(width: int, height: int, color=(200, 120, 40)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def storage():
    return InMemoryTemplateStorage()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def small_catalog():
    """Two tiny categories and three styles, enough to exercise the batch loops quickly."""
    return build_catalog(
        categories={
            "wedding": {"name": "Wedding", "subcategories": ["ceremony", "reception"], "target_count": 4},
            "birthday": {"name": "Birthday", "subcategories": ["teen", "30th"], "target_count": 2},
        },
        styles=["minimalist", "vintage", "elegant"],
    )
