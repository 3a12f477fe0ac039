"""Library asset lookup and decoding."""

import os
from PIL import Image

RESAMPLING_BY_QUALITY = {
	0: Image.Resampling.NEAREST,
	1: Image.Resampling.BILINEAR,
	2: Image.Resampling.LANCZOS,
}


def resampling_for_quality(quality):
	"""Pillow resampling filter for a quality level (<= 0 fastest, >= 2 best)."""
	return RESAMPLING_BY_QUALITY[min(max(int(quality), 0), 2)]


class FolderCatalog:
	"""Resolves asset references (file names) inside a library folder."""

	def __init__(self, folder_path):
		self.folder_path = folder_path

	def fetch_asset(self, asset):
		"""
		Resolve an asset reference to its file path.

		Raises:
		    FileNotFoundError: If the asset is not in the folder
		"""
		image_path = os.path.join(self.folder_path, asset)
		if not os.path.isfile(image_path):
			raise FileNotFoundError(f"Asset not found in library: {asset}")
		return image_path

	def request_image(self, handle, target_size, quality=2):
		"""
		Load a library image and resize it to a grid cell.

		Args:
		    handle: Path returned by fetch_asset
		    target_size: (width, height) of the cell
		    quality: Resampling quality level

		Returns:
		    RGB PIL Image of exactly target_size
		"""
		with Image.open(handle) as img:
			rgb_img = img.convert("RGB")
		if rgb_img.size != tuple(target_size):
			rgb_img = rgb_img.resize(tuple(target_size), resampling_for_quality(quality))
		return rgb_img
