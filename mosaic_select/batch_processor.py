"""Batch processing utilities for multiple target images."""

import os
from tqdm import tqdm

from mosaic_select.feature_extractor import SUPPORTED_FORMATS
from mosaic_select.matching_pipeline import DEFAULT_POOL_SIZE
from mosaic_select.select_tiles import select_tiles

INDEX_FILENAME = "LIBRARY_INDEX.json"


def list_targets(targets_folder):
	"""Sorted target image file names in a folder."""
	return sorted(
		f for f in os.listdir(targets_folder)
		if f.lower().endswith(SUPPORTED_FORMATS)
	)


def process_targets_folder(
	targets_folder="targets",
	library_folder="screenshots",
	outputs_folder="outputs",
	grid_size=50,
	quality=2,
	pool_size=DEFAULT_POOL_SIZE,
	verbose=False
):
	"""
	Select tiles for every target image in a folder.

	The library is analysed once; its index is cached in the outputs folder
	and reused for every target.

	Args:
	    targets_folder: Folder containing target images
	    library_folder: Folder containing the library images
	    outputs_folder: Folder for the JSON manifests
	    grid_size: Size of grid cells in pixels
	    quality: Resampling quality for the chosen tiles (0-2)
	    pool_size: Worker threads used for matching
	    verbose: If True, show detailed output. If False, show one progress bar

	Returns:
	    Tuple of (processed count, skipped count)
	"""
	if not os.path.exists(targets_folder):
		print(f"ERROR: '{targets_folder}' folder not found!")
		print(f"Please create a '{targets_folder}' folder and add target images.")
		return 0, 0

	if not os.path.exists(outputs_folder):
		os.makedirs(outputs_folder)
		if verbose:
			print(f"Created '{outputs_folder}' folder")

	target_files = list_targets(targets_folder)
	if not target_files:
		print(f"No target images found in '{targets_folder}' folder!")
		return 0, 0

	print(f"\nProcessing {len(target_files)} target image(s)...")

	index_file = os.path.join(outputs_folder, INDEX_FILENAME)
	processed = 0
	skipped = 0

	for target_file in tqdm(target_files, desc="Overall progress", disable=verbose):
		base_name = os.path.splitext(target_file)[0]
		target_path = os.path.join(targets_folder, target_file)
		output_path = os.path.join(outputs_folder, f"{base_name} Tiles.json")

		try:
			_, summary = select_tiles(
				target_path,
				IMAGE_FOLDER=library_folder,
				grid_size=grid_size,
				quality=quality,
				output_file=output_path,
				index_file=index_file,
				pool_size=pool_size,
				verbose=verbose,
			)
		except Exception as e:
			tqdm.write(f"✗ ERROR: {target_file}: {e}")
			skipped += 1
			continue

		processed += 1
		failed = len(summary["failed"])
		note = f" ({failed} cells failed)" if failed else ""
		tqdm.write(f"✓ {base_name} Tiles.json{note}")

	print("\n" + "=" * 70)
	print("BATCH PROCESSING COMPLETE")
	print("=" * 70)
	print(f"✓ Successfully processed: {processed}")
	if skipped > 0:
		print(f"⚠ Skipped: {skipped}")
	print(f"\nTile manifests saved to: {outputs_folder}/")
	print("=" * 70)

	return processed, skipped
