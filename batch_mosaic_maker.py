"""
Batch Mosaic Maker - Select tiles for multiple target images

Place target images in 'targets/' folder.
Tile manifests will be saved to 'outputs/' folder as: "<target name> Tiles.json"
The library is analysed once and its index is reused for every target.
"""

from mosaic_select.batch_processor import process_targets_folder

# ==================== CONFIGURATION ====================

# Folder containing target images
TARGETS_FOLDER = "targets"

# Folder containing your screenshots/photos to use in the mosaics
SCREENSHOTS_FOLDER = "screenshots"

# Folder where tile manifests will be saved
OUTPUTS_FOLDER = "outputs"

# Edge length of one grid cell in pixels
GRID_SIZE = 50

# Tile resampling quality (0 = nearest, 1 = bilinear, 2 = lanczos)
QUALITY = 2

# ======================================================

if __name__ == "__main__":
	print("=" * 70)
	print("BATCH MOSAIC MAKER")
	print("=" * 70)
	print(f"\nProcessing all target images in '{TARGETS_FOLDER}/' folder...")
	print(f"Tile manifests will be saved to '{OUTPUTS_FOLDER}/' folder")
	print("=" * 70)

	process_targets_folder(
		targets_folder=TARGETS_FOLDER,
		library_folder=SCREENSHOTS_FOLDER,
		outputs_folder=OUTPUTS_FOLDER,
		grid_size=GRID_SIZE,
		quality=QUALITY,
		verbose=False
	)
