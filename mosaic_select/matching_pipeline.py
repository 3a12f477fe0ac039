"""
Tile selection pipeline.

This module coordinates the selection of library images for a mosaic:
1. Preprocess the photo library into a frozen spatial index
2. Split the reference image into a grid of cells
3. Resolve every cell to its closest library image on a pool of workers
4. Hand each choice to the caller, one at a time
"""

import os
import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum

from PIL import Image
from tqdm import tqdm

from mosaic_select.errors import InvalidProcessingState, InvalidSkipSize
from mosaic_select.grid import cell_for_index, crop_cell, grid_dimensions, round_robin_partition
from mosaic_select.spatial_index import SpatialIndex
from mosaic_select.storage import load_index, save_index

DEFAULT_POOL_SIZE = 32

_MATCHED = "matched"
_FAILED = "failed"
_SKIPPED = "skipped"
_DONE = "done"


class PipelineState(Enum):
	NOT_STARTED = "not_started"
	PREPROCESSING = "preprocessing"
	READY = "ready"


@dataclass(frozen=True)
class ImageChoice:
	"""A grid cell bound to the library image chosen for it."""

	row: int
	col: int
	image: object = field(compare=False, repr=False)
	region: tuple
	fit: float
	asset: object = None


class MatchingPipeline:
	"""
	Selects a library image for every cell of a reference image.

	Args:
	    reference_image: PIL Image or path of the picture to recreate
	    extractor: Object with extract(image) and preprocess_library()
	    catalog: Object with fetch_asset(asset) and request_image(handle, size, quality)
	    pool_size: Number of worker threads used by select()
	    verbose: Print status lines and progress bars
	"""

	def __init__(self, reference_image, extractor, catalog, pool_size=DEFAULT_POOL_SIZE, verbose=True):
		if pool_size < 1:
			raise InvalidSkipSize(f"Pool size must be at least 1, got {pool_size}")

		if isinstance(reference_image, (str, os.PathLike)):
			with Image.open(reference_image) as img:
				reference_image = img.convert("RGB")
		else:
			reference_image = reference_image.convert("RGB")

		self.reference_image = reference_image
		self.extractor = extractor
		self.catalog = catalog
		self.pool_size = pool_size
		self.verbose = verbose
		self.build_error = None

		self._state = PipelineState.NOT_STARTED
		self._index = None
		self._lock = threading.Lock()

	@property
	def state(self):
		return self._state

	@property
	def index(self):
		"""Frozen library index, or None before the first build."""
		return self._index

	def preprocess(self, on_complete=None, wait=True, cache_path=None):
		"""
		Build the library index. Required before select.

		Args:
		    on_complete: Called with no arguments once the pipeline is ready
		    wait: If False, build on a background thread and return it
		    cache_path: Optional index file. Reused when its images match
		        extractor.library_assets(), rebuilt and rewritten otherwise

		Returns:
		    The background thread when wait is False, otherwise None

		Raises:
		    InvalidProcessingState: If a build is already running
		"""
		with self._lock:
			if self._state == PipelineState.PREPROCESSING:
				raise InvalidProcessingState("Library preprocessing is already running")
			previous_state = self._state
			self._state = PipelineState.PREPROCESSING
			self.build_error = None

		if self.verbose:
			print("Pre-processing library...")

		if wait:
			self._run_build(previous_state, on_complete, cache_path)
			return None

		thread = threading.Thread(
			target=self._run_build_in_background,
			args=(previous_state, on_complete, cache_path),
			name="library-preprocess",
			daemon=True,
		)
		thread.start()
		return thread

	def _run_build(self, previous_state, on_complete, cache_path):
		self._finish_build(previous_state, cache_path)
		if on_complete is not None:
			on_complete()

	def _finish_build(self, previous_state, cache_path):
		try:
			index = self._build_index(cache_path)
		except Exception:
			with self._lock:
				self._state = previous_state
			raise

		with self._lock:
			self._index = index.freeze()
			self._state = PipelineState.READY

		if self.verbose:
			print(f"Done pre-processing. {len(index)} images indexed.")

	def _run_build_in_background(self, previous_state, on_complete, cache_path):
		try:
			self._finish_build(previous_state, cache_path)
		except Exception as e:
			self.build_error = e
			print(f"[ERROR] Library preprocessing failed: {e}")
			return

		if on_complete is not None:
			try:
				on_complete()
			except Exception as e:
				print(f"[ERROR] Preprocessing completion callback failed: {e}")

	def _load_cached_index(self, cache_path):
		"""Cached index, or None when it no longer matches the library."""
		index = load_index(cache_path)
		library_assets = getattr(self.extractor, "library_assets", None)
		if library_assets is not None:
			current = frozenset(library_assets())
			cached = index.assets()
			if current != cached:
				print(
					f"{cache_path} is out of date "
					f"({len(current - cached)} new, {len(cached - current)} removed images). "
					"Rebuilding the library index..."
				)
				return None
		print(f"{cache_path} already exists! Reusing its library index ({len(index)} images).")
		return index

	def _build_index(self, cache_path):
		if cache_path is not None and os.path.exists(cache_path):
			index = self._load_cached_index(cache_path)
			if index is not None:
				return index

		index = SpatialIndex()
		for asset, vector in self.extractor.preprocess_library():
			index.insert(asset, vector)

		if cache_path is not None:
			save_index(index, cache_path)
			if self.verbose:
				print(f"Saved library index to {cache_path}")
		return index

	def select(self, grid_size, quality, on_match):
		"""
		Find the best library image for every grid cell.

		Cells are spread over the worker pool round-robin. Choices are passed
		to on_match from the calling thread only, so on_match never runs
		concurrently with itself. Cells finish in no particular order.

		Args:
		    grid_size: Cell edge length in pixels
		    quality: Resampling quality for the chosen tiles (0-2)
		    on_match: Called with each ImageChoice

		Returns:
		    dict with 'cells', 'delivered' and 'failed' [(row, col, reason), ...]

		Raises:
		    InvalidProcessingState: If preprocess has not completed
		    InvalidSkipSize: If grid_size is smaller than 1
		"""
		with self._lock:
			if self._state != PipelineState.READY:
				raise InvalidProcessingState(
					f"select() needs a preprocessed library (state: {self._state.value})"
				)
			index = self._index

		if grid_size < 1:
			raise InvalidSkipSize(f"Grid size must be at least 1, got {grid_size}")

		if self.verbose:
			print("Finding best matches...")

		rows, cols = grid_dimensions(self.reference_image.size, grid_size)
		num_cells = rows * cols
		results = queue.Queue()
		partitions = [p for p in round_robin_partition(num_cells, self.pool_size) if p]

		delivered = 0
		failed = []
		with ThreadPoolExecutor(max_workers=max(1, len(partitions))) as executor:
			for indices in partitions:
				executor.submit(self._resolve_cells, indices, cols, grid_size, quality, index, results)

			remaining = len(partitions)
			with tqdm(total=num_cells, desc="Matching cells", disable=not self.verbose) as pbar:
				while remaining:
					kind, payload = results.get()
					if kind == _DONE:
						remaining -= 1
						continue
					if kind == _MATCHED:
						on_match(payload)
						delivered += 1
					elif kind == _FAILED:
						row, col, reason = payload
						tqdm.write(f"[ERROR] cell ({row}, {col}): {reason}")
						failed.append(payload)
					pbar.update()

		if self.verbose:
			print(f"Matched {delivered} of {num_cells} cells ({rows} rows x {cols} cols)")
			if failed:
				print(f"  Failed cells: {len(failed)}")

		return {"cells": num_cells, "delivered": delivered, "failed": failed}

	def _resolve_cells(self, indices, cols, grid_size, quality, index, results):
		"""Worker body: resolve one round-robin slice of the grid."""
		try:
			for i in indices:
				cell = cell_for_index(i, self.reference_image.size, grid_size, cols)
				if cell is None:
					results.put((_SKIPPED, i))
					continue
				try:
					choice = self._find_best_match(cell, quality, index)
				except Exception as e:
					results.put((_FAILED, (cell.row, cell.col, f"{type(e).__name__}: {e}")))
				else:
					results.put((_MATCHED, choice))
		finally:
			results.put((_DONE, None))

	def _find_best_match(self, cell, quality, index):
		cropped = crop_cell(self.reference_image, cell)
		ref_vector = self.extractor.extract(cropped)

		match = index.nearest_match(ref_vector)
		if match is None:
			raise LookupError("Library index is empty")
		best_fit, best_diff = match

		handle = self.catalog.fetch_asset(best_fit)
		tile = self.catalog.request_image(handle, (cell.width, cell.height), quality)
		return ImageChoice(
			row=cell.row,
			col=cell.col,
			image=tile,
			region=(0, 0, cell.width, cell.height),
			fit=best_diff,
			asset=best_fit,
		)
