"""Selection errors."""


class SelectionError(Exception):
	"""Base class for tile selection failures."""


class InvalidProcessingState(SelectionError):
	"""preprocess() or select() called in the wrong pipeline state."""


class RegionMismatch(SelectionError):
	"""A grid cell cannot be cropped from the reference image."""


class InvalidSkipSize(SelectionError):
	"""A grid or pool size setting is out of range."""
