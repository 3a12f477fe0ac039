"""
Feature vector and axis cycle utilities.

A feature vector is a 3x3 grid of average RGB values (27 numbers) that
summarises an image or a region of one. The spatial index compares one of
those 27 numbers per tree level; which one is fixed by axis():

    axis_order = [
        [ 0,  9, 18], [19,  1, 10], [11, 20,  2],
        [21,  3, 12], [13, 22,  4], [ 5, 14, 23],
        [15, 24,  6], [ 7, 16, 25], [26,  8, 17]
    ]

axis_order[cell][channel] is the first tree level that compares that value.
"""

import numpy as np

GRID_CELLS = 9
CHANNELS = 3
DIMENSIONS = GRID_CELLS * CHANNELS
AXIS_PERIOD = 27


def axis(level):
	"""
	Return the (cell_index, channel) compared at a tree level.

	Args:
	    level: Depth in the tree (0 = root)

	Returns:
	    Tuple of (cell index 0-8, channel 0-2)
	"""
	cell_index = level % GRID_CELLS
	channel = (level + level // 3 + level // 9) % CHANNELS
	return cell_index, channel


class FeatureVector:
	"""Immutable 3x3 grid of (R, G, B) averages."""

	__slots__ = ("_values",)

	def __init__(self, values):
		array = np.array(values, dtype=np.float64).reshape(GRID_CELLS, CHANNELS)
		array.setflags(write=False)
		object.__setattr__(self, "_values", array)

	def __setattr__(self, name, value):
		raise AttributeError("FeatureVector is immutable")

	@classmethod
	def from_grid(cls, grid):
		"""Build from a nested [3][3][3] row/col/channel sequence."""
		return cls(np.asarray(grid, dtype=np.float64).reshape(GRID_CELLS, CHANNELS))

	@property
	def values(self):
		"""Read-only (9, 3) array of the averages."""
		return self._values

	def cell(self, cell_index):
		return tuple(float(c) for c in self._values[cell_index])

	def component(self, level):
		"""Value compared at the given tree level."""
		cell_index, channel = axis(level)
		return float(self._values[cell_index, channel])

	def axis_difference(self, other, level):
		"""Signed difference self - other on the axis of the given level."""
		return self.component(level) - other.component(level)

	def squared_distance(self, other):
		"""Squared Euclidean distance over all 27 values."""
		diff = self._values - other._values
		return float(np.sum(diff * diff))

	def to_list(self):
		return self._values.reshape(-1).tolist()

	def __eq__(self, other):
		if not isinstance(other, FeatureVector):
			return NotImplemented
		return bool(np.array_equal(self._values, other._values))

	def __hash__(self):
		return hash(self._values.tobytes())

	def __repr__(self):
		cells = ", ".join(
			"(" + ", ".join(f"{c:.3f}" for c in row) + ")" for row in self._values
		)
		return f"FeatureVector([{cells}])"
