import os
import multiprocessing

import numpy as np
from PIL import Image
from tqdm import tqdm

from mosaic_select.feature_vector import FeatureVector

SUPPORTED_FORMATS = (".jpg", ".jpeg", ".png")


def grid_average(img):
	"""
	Compute the 3x3 grid of average RGB values for an image.

	Args:
	    img: PIL Image of any mode and size

	Returns:
	    numpy array of shape (9, 3) with values in [0, 1]
	"""
	rgb_img = img.convert("RGB")
	width, height = rgb_img.size
	# Every band needs at least one pixel
	if width < 3 or height < 3:
		rgb_img = rgb_img.resize((max(3, width), max(3, height)), Image.Resampling.NEAREST)

	np_array = np.asarray(rgb_img, dtype=np.float64) / 255.0
	averages = []
	for band in np.array_split(np_array, 3, axis=0):
		for cell in np.array_split(band, 3, axis=1):
			averages.append(np.mean(cell, axis=(0, 1)))
	return np.array(averages)


def analyze_image(file_path):
	"""Analyzes a single library image and returns its grid averages."""
	filename = os.path.basename(file_path)
	try:
		with Image.open(file_path) as img:
			return filename, grid_average(img).tolist()
	except Exception as e:
		tqdm.write(f"  [ERROR] Could not process {filename}. Reason: {e}")
		return None, None


class GridAverageExtractor:
	"""
	Feature extractor backed by a folder of photos.

	Args:
	    folder_path: Folder holding the candidate library
	    processes: Worker processes for library analysis (None = CPU count,
	        1 = analyse in this process)
	    verbose: Print progress bars and status lines
	"""

	def __init__(self, folder_path, processes=None, verbose=True):
		self.folder_path = folder_path
		self.processes = processes
		self.verbose = verbose

	def extract(self, image):
		return FeatureVector(grid_average(image))

	def library_paths(self):
		return [
			os.path.join(self.folder_path, fn)
			for fn in sorted(os.listdir(self.folder_path))
			if fn.lower().endswith(SUPPORTED_FORMATS)
		]

	def library_assets(self):
		"""File names preprocess_library() would index, used to check a cached index."""
		return {os.path.basename(path) for path in self.library_paths()}

	def preprocess_library(self):
		"""
		Analyse every supported image in the folder.

		Yields:
		    (filename, FeatureVector) for each readable image, in file name order
		"""
		image_paths = self.library_paths()
		if self.verbose:
			print(f"Scanning folder: {self.folder_path} ({len(image_paths)} images)")

		with tqdm(total=len(image_paths), desc="Analyzing Images", disable=not self.verbose) as pbar:
			if self.processes == 1:
				for filename, values in map(analyze_image, image_paths):
					if filename:
						yield filename, FeatureVector(values)
					pbar.update()
			else:
				# Ordered results keep the tree shape stable across runs
				with multiprocessing.Pool(self.processes) as pool:
					for filename, values in pool.imap(analyze_image, image_paths):
						if filename:
							yield filename, FeatureVector(values)
						pbar.update()
