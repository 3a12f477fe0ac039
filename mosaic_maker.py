"""
Mosaic Maker - Pick a library photo for every cell of a target image

This script splits your target image into a grid and finds, for each cell,
the photo from your library whose 3x3 colour layout matches it best.
The choices are written to a JSON manifest for compositing.
"""

from mosaic_select.select_tiles import select_tiles

# ==================== CONFIGURATION ====================

# Target image - the image you want to recreate as a mosaic
TARGET_IMAGE = "target.jpg"

# Folder containing your screenshots/photos to use in the mosaic
IMAGE_FOLDER = "screenshots"

# Edge length of one grid cell in pixels
GRID_SIZE = 50

# Tile resampling quality
# 0 = nearest (fastest), 1 = bilinear, 2 = lanczos (best)
QUALITY = 2

# Number of worker threads matching grid cells
POOL_SIZE = 32

# Library index cache - set to None to re-analyse the library every run
INDEX_FILE = "LIBRARY_INDEX.json"

# Output manifest filename
OUTPUT_FILE = "tiles.json"

# ======================================================

if __name__ == "__main__":
	print("=" * 60)
	print("MOSAIC MAKER")
	print("=" * 60)

	choices, summary = select_tiles(
		TARGET_IMAGE,
		IMAGE_FOLDER=IMAGE_FOLDER,
		grid_size=GRID_SIZE,
		quality=QUALITY,
		output_file=OUTPUT_FILE,
		index_file=INDEX_FILE,
		pool_size=POOL_SIZE,
	)

	print("\n" + "=" * 60)
	print(f"✓ {summary['delivered']} of {summary['cells']} tiles saved to: {OUTPUT_FILE}")
	if summary["failed"]:
		print(f"⚠ {len(summary['failed'])} cells could not be matched")
	print("=" * 60)
