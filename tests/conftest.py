"""
Pytest configuration and shared fixtures for test suite.
"""

import pytest
import tempfile
import shutil
from pathlib import Path

import numpy as np
from PIL import Image


def solid(width, height, color=(255, 0, 0, 255)):
    """Return a (height, width, 4) RGBA array filled with one colour."""
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[:, :] = color
    return pixels


@pytest.fixture
def solid_pixels():
    """Factory for single-colour RGBA pixel arrays."""
    return solid


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    tmpdir = tempfile.mkdtemp()
    yield Path(tmpdir)
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def sample_images(temp_dir):
    """
    Create a set of sample images for testing.

    Returns:
        dict with paths to:
        - red_a.png, red_b.png (10x10 red, pixel-identical)
        - red_dot.png (10x10 red with one blue pixel)
        - blue_large.png (20x20 blue)
        - red_rgb.png (red_a content saved in RGB mode)
        - corrupted.png (not an image)
    """
    images = {}

    img = Image.new('RGBA', (10, 10), color=(255, 0, 0, 255))
    path = temp_dir / "red_a.png"
    img.save(path, 'PNG')
    images['red_a'] = str(path)

    path = temp_dir / "red_b.png"
    img.save(path, 'PNG')
    images['red_b'] = str(path)

    dot = img.copy()
    dot.putpixel((3, 4), (0, 0, 255, 255))
    path = temp_dir / "red_dot.png"
    dot.save(path, 'PNG')
    images['red_dot'] = str(path)

    large = Image.new('RGBA', (20, 20), color=(0, 0, 255, 255))
    path = temp_dir / "blue_large.png"
    large.save(path, 'PNG')
    images['blue_large'] = str(path)

    rgb = Image.new('RGB', (10, 10), color=(255, 0, 0))
    path = temp_dir / "red_rgb.png"
    rgb.save(path, 'PNG')
    images['red_rgb'] = str(path)

    path = temp_dir / "corrupted.png"
    path.write_text("not an image")
    images['corrupted'] = str(path)

    return images


@pytest.fixture
def memory_store():
    """
    In-memory store with the three images of the reference scenario.

    A and B are identical 10x10 images, C is a different 20x20 image.
    """
    from imagecomparator.engine import InMemoryImageStore

    store = InMemoryImageStore()
    store.add('A', solid(10, 10), file_size=1000)
    store.add('B', solid(10, 10), file_size=2000)
    store.add('C', solid(20, 20, color=(0, 255, 0, 255)), file_size=3000)
    return store


@pytest.fixture
def small_engine(memory_store):
    """Engine over memory_store with a small kernel, closed after the test."""
    from imagecomparator.engine import ComparisonEngine

    engine = ComparisonEngine(memory_store, batch_size=128, max_width=64, max_height=64)
    yield engine
    engine.close()
