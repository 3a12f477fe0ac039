"""End-to-end tile selection for one reference image."""

from mosaic_select.asset_catalog import FolderCatalog
from mosaic_select.feature_extractor import GridAverageExtractor
from mosaic_select.matching_pipeline import DEFAULT_POOL_SIZE, MatchingPipeline
from mosaic_select.storage import save_choices


def select_tiles(
	TARGET_FILENAME,
	IMAGE_FOLDER="screenshots",
	grid_size=50,
	quality=2,
	output_file="tiles.json",
	index_file=None,
	pool_size=DEFAULT_POOL_SIZE,
	processes=None,
	verbose=True,
):
	"""
	Pick a library image for every grid cell of a target image.

	Args:
	    TARGET_FILENAME: Path to target image
	    IMAGE_FOLDER: Folder containing the library images
	    grid_size: Size of grid cells in pixels
	    quality: Resampling quality for the chosen tiles (0-2)
	    output_file: JSON manifest to write, or None to skip writing
	    index_file: Optional library index cache (reused while it matches the library, rebuilt otherwise)
	    pool_size: Worker threads used for matching
	    processes: Worker processes used for library analysis
	    verbose: Print status lines

	Returns:
	    Tuple of (list of ImageChoice, summary dict from MatchingPipeline.select)
	"""
	if verbose:
		print("\n=== TILE SELECTION ===")
		print(f"Target image: {TARGET_FILENAME}")
		print(f"Library folder: {IMAGE_FOLDER}")
		print(f"Grid size: {grid_size}px")

	extractor = GridAverageExtractor(IMAGE_FOLDER, processes=processes, verbose=verbose)
	catalog = FolderCatalog(IMAGE_FOLDER)
	pipeline = MatchingPipeline(TARGET_FILENAME, extractor, catalog, pool_size=pool_size, verbose=verbose)
	pipeline.preprocess(cache_path=index_file)

	choices = []
	summary = pipeline.select(grid_size, quality, choices.append)

	if output_file is not None:
		save_choices(choices, output_file, target=TARGET_FILENAME, grid_size=grid_size)

	return choices, summary
