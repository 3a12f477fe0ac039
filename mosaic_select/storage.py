"""JSON persistence for the library index and selection manifests."""

import json
from pathlib import Path

from mosaic_select.spatial_index import SpatialIndex


def save_to_json(data, output_file):
	"""Saves a dictionary to a JSON file. Returns True on success."""
	try:
		with open(output_file, "w") as f:
			json.dump(data, f, indent=4, sort_keys=True)
		print(f"Successfully saved data to {output_file}")
		return True
	except (OSError, TypeError) as e:
		print(f"Error saving data to JSON file. Reason: {e}")
		return False


def save_index(index, index_file):
	"""Write a built SpatialIndex (or its frozen view) to disk."""
	Path(index_file).write_text(index.to_string(), encoding="utf-8")


def load_index(index_file):
	"""
	Read an index written by save_index.

	Raises:
	    FileNotFoundError: If the file does not exist
	    ValueError: If the file does not hold an encoded index
	"""
	return SpatialIndex.from_string(Path(index_file).read_text(encoding="utf-8"))


def choice_record(choice):
	"""Manifest entry for one ImageChoice."""
	x, y, width, height = choice.region
	return {
		"row": choice.row,
		"col": choice.col,
		"asset": choice.asset,
		"region": [x, y, width, height],
		"fit": round(choice.fit, 6),
	}


def save_choices(choices, output_file, target=None, grid_size=None):
	"""
	Save the selected tiles as a JSON manifest.

	Args:
	    choices: Iterable of ImageChoice
	    output_file: Path of the manifest
	    target: Optional name of the reference image
	    grid_size: Optional grid cell size used for the selection
	"""
	records = sorted((choice_record(c) for c in choices), key=lambda r: (r["row"], r["col"]))
	data = {"tiles": records}
	if target is not None:
		data["target"] = str(target)
	if grid_size is not None:
		data["grid_size"] = grid_size
	return save_to_json(data, output_file)
