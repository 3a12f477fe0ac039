import threading

import numpy as np
import pytest
from PIL import Image

from mosaic_select.feature_extractor import grid_average
from mosaic_select.feature_vector import FeatureVector

PALETTE = {
	"red.png": (255, 0, 0),
	"green.png": (0, 255, 0),
	"blue.png": (0, 0, 255),
	"white.png": (255, 255, 255),
	"black.png": (0, 0, 0),
	"grey.png": (128, 128, 128),
}

QUADRANT_COLORS = ((255, 0, 0), (0, 255, 0), (0, 0, 255), (255, 255, 255))


def solid_vector(rgb):
	"""FeatureVector of a single-colour image."""
	return FeatureVector([[c / 255.0 for c in rgb]] * 9)


def quadrant_image(size, colors):
	"""Image split into 2x2 solid quadrants: colors = (top-left, top-right, bottom-left, bottom-right)."""
	width, height = size
	half_w, half_h = width // 2, height // 2
	img = Image.new("RGB", size)
	img.paste(colors[0], (0, 0, half_w, half_h))
	img.paste(colors[1], (half_w, 0, width, half_h))
	img.paste(colors[2], (0, half_h, half_w, height))
	img.paste(colors[3], (half_w, half_h, width, height))
	return img


class StubExtractor:
	"""Extractor over an in-memory library of {asset: rgb}."""

	def __init__(self, library):
		self.library = dict(library)
		self.library_calls = 0

	def extract(self, image):
		return FeatureVector(grid_average(image))

	def library_assets(self):
		return set(self.library)

	def preprocess_library(self):
		self.library_calls += 1
		for asset, rgb in self.library.items():
			yield asset, solid_vector(rgb)


class StubCatalog:
	"""Catalog that renders every asset as a solid tile of its library colour."""

	def __init__(self, library):
		self.library = dict(library)
		self.requests = []
		self._lock = threading.Lock()

	def fetch_asset(self, asset):
		return asset

	def request_image(self, handle, target_size, quality=2):
		with self._lock:
			self.requests.append((handle, tuple(target_size), quality))
		return Image.new("RGB", tuple(target_size), self.library[handle])


@pytest.fixture
def library():
	return dict(PALETTE)


@pytest.fixture
def library_folder(tmp_path, library):
	folder = tmp_path / "library"
	folder.mkdir()
	for name, rgb in library.items():
		Image.new("RGB", (30, 20), rgb).save(folder / name)
	(folder / "notes.txt").write_text("not an image")
	return folder


@pytest.fixture
def rng():
	return np.random.default_rng(1234)
