"""Reference image grid utilities."""

from collections import namedtuple

from mosaic_select.errors import RegionMismatch

GridCell = namedtuple("GridCell", ["index", "row", "col", "x", "y", "width", "height"])


def grid_dimensions(image_size, grid_size):
	"""
	Number of whole grid cells that fit in an image.

	Args:
	    image_size: (width, height) of the reference image
	    grid_size: Edge length of a cell in pixels

	Returns:
	    Tuple of (rows, cols)
	"""
	width, height = image_size
	return height // grid_size, width // grid_size


def cell_for_index(index, image_size, grid_size, cols):
	"""
	Map a flat cell index to its GridCell.

	The region is clipped so it never runs past the image. Returns None for
	a degenerate cell (zero width or height).
	"""
	width, height = image_size
	row = index // cols
	col = index % cols
	x = col * grid_size
	y = row * grid_size

	# Make sure that we cover the whole image and don't go over
	cell_width = min(width - x, grid_size)
	cell_height = min(height - y, grid_size)
	if cell_width <= 0 or cell_height <= 0:
		return None

	return GridCell(index, row, col, x, y, cell_width, cell_height)


def compute_grid_cells(image_size, grid_size):
	"""
	List every non-degenerate cell of the grid, row by row.

	Args:
	    image_size: (width, height) of the reference image
	    grid_size: Edge length of a cell in pixels

	Returns:
	    List of GridCell
	"""
	rows, cols = grid_dimensions(image_size, grid_size)
	cells = []
	for index in range(rows * cols):
		cell = cell_for_index(index, image_size, grid_size, cols)
		if cell is not None:
			cells.append(cell)
	return cells


def round_robin_partition(num_cells, pool_size):
	"""
	Split cell indices across workers.

	Worker w gets every index i with i % pool_size == w, so slow cells are
	spread over the pool instead of piling up in one contiguous range.

	Returns:
	    List of pool_size lists of indices
	"""
	return [list(range(worker, num_cells, pool_size)) for worker in range(pool_size)]


def crop_cell(image, cell):
	"""
	Crop a grid cell out of the reference image.

	Raises:
	    RegionMismatch: If the cell is not fully inside the image
	"""
	width, height = image.size
	if (
		cell.width <= 0
		or cell.height <= 0
		or cell.x < 0
		or cell.y < 0
		or cell.x + cell.width > width
		or cell.y + cell.height > height
	):
		raise RegionMismatch(
			f"Cell ({cell.row}, {cell.col}) region {cell.x},{cell.y} "
			f"{cell.width}x{cell.height} is outside the {width}x{height} image"
		)
	return image.crop((cell.x, cell.y, cell.x + cell.width, cell.y + cell.height))
