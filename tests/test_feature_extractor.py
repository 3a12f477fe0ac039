import numpy as np
import pytest
from PIL import Image

from conftest import solid_vector
from mosaic_select.asset_catalog import FolderCatalog, resampling_for_quality
from mosaic_select.feature_extractor import GridAverageExtractor, analyze_image, grid_average


def test_grid_average_of_solid_image():
	averages = grid_average(Image.new("RGB", (30, 30), (255, 0, 51)))
	assert averages.shape == (9, 3)
	assert np.allclose(averages, [1.0, 0.0, 0.2])


def test_grid_average_follows_layout():
	img = Image.new("RGB", (30, 30), (0, 0, 0))
	img.paste((255, 255, 255), (20, 20, 30, 30))
	averages = grid_average(img)
	assert np.allclose(averages[8], 1.0)
	assert np.allclose(averages[:8], 0.0)


@pytest.mark.parametrize("size", [(1, 1), (2, 7), (5, 2)])
def test_grid_average_of_tiny_image(size):
	averages = grid_average(Image.new("RGB", size, (0, 255, 0)))
	assert np.allclose(averages, [0.0, 1.0, 0.0])


def test_grid_average_converts_mode():
	averages = grid_average(Image.new("L", (9, 9), 255))
	assert np.allclose(averages, 1.0)


def test_analyze_image_reports_unreadable_file(tmp_path):
	broken = tmp_path / "broken.png"
	broken.write_bytes(b"not a png")
	assert analyze_image(str(broken)) == (None, None)


def test_preprocess_library_in_process(library_folder, library):
	extractor = GridAverageExtractor(str(library_folder), processes=1, verbose=False)
	entries = list(extractor.preprocess_library())

	assert [name for name, _ in entries] == sorted(library)
	for name, vector in entries:
		assert np.allclose(vector.values, solid_vector(library[name]).values)


def test_preprocess_library_with_pool(library_folder, library):
	extractor = GridAverageExtractor(str(library_folder), processes=2, verbose=False)
	names = [name for name, _ in extractor.preprocess_library()]
	assert names == sorted(library)


def test_folder_catalog_resizes_tiles(library_folder):
	catalog = FolderCatalog(str(library_folder))
	handle = catalog.fetch_asset("red.png")
	tile = catalog.request_image(handle, (12, 8), quality=0)
	assert tile.size == (12, 8)
	assert tile.mode == "RGB"
	assert tile.getpixel((3, 3)) == (255, 0, 0)


def test_folder_catalog_missing_asset(library_folder):
	with pytest.raises(FileNotFoundError):
		FolderCatalog(str(library_folder)).fetch_asset("missing.png")


def test_resampling_for_quality_clamps():
	assert resampling_for_quality(-3) == Image.Resampling.NEAREST
	assert resampling_for_quality(1) == Image.Resampling.BILINEAR
	assert resampling_for_quality(9) == Image.Resampling.LANCZOS
