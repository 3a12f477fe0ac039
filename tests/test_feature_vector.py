import numpy as np
import pytest

from mosaic_select.feature_vector import AXIS_PERIOD, DIMENSIONS, FeatureVector, axis

AXIS_ORDER = [
	[0, 9, 18], [19, 1, 10], [11, 20, 2],
	[21, 3, 12], [13, 22, 4], [5, 14, 23],
	[15, 24, 6], [7, 16, 25], [26, 8, 17],
]


def test_axis_matches_documented_order():
	for cell_index, levels in enumerate(AXIS_ORDER):
		for channel, level in enumerate(levels):
			assert axis(level) == (cell_index, channel)


def test_axis_visits_every_dimension_once_per_period():
	seen = {axis(level) for level in range(AXIS_PERIOD)}
	assert len(seen) == DIMENSIONS


@pytest.mark.parametrize("level", range(AXIS_PERIOD))
def test_axis_is_periodic(level):
	assert axis(level) == axis(level + AXIS_PERIOD)
	assert axis(level) == axis(level + 4 * AXIS_PERIOD)


def test_axis_is_not_round_robin():
	assert axis(1) == (1, 1)
	assert axis(3) == (3, 1)


def test_component_reads_axis_value():
	values = np.arange(27, dtype=np.float64).reshape(9, 3)
	vector = FeatureVector(values)
	assert vector.component(0) == 0.0
	assert vector.component(1) == 4.0  # cell 1, green
	assert vector.component(19) == 3.0  # cell 1, red
	assert vector.component(1 + AXIS_PERIOD) == vector.component(1)


def test_vector_is_immutable():
	vector = FeatureVector(np.zeros(27))
	with pytest.raises(ValueError):
		vector.values[0, 0] = 1.0
	with pytest.raises(AttributeError):
		vector.extra = 1


def test_vector_does_not_alias_input():
	values = np.zeros((9, 3))
	vector = FeatureVector(values)
	values[0, 0] = 5.0
	assert vector.component(0) == 0.0


def test_from_grid_uses_row_major_cells():
	grid = [[[r * 3 + c, 0, 0] for c in range(3)] for r in range(3)]
	vector = FeatureVector.from_grid(grid)
	assert vector.cell(5) == (5.0, 0.0, 0.0)


def test_squared_distance_and_axis_difference():
	a = FeatureVector(np.full(27, 0.5))
	b = FeatureVector(np.zeros(27))
	assert a.squared_distance(b) == pytest.approx(27 * 0.25)
	assert a.squared_distance(a) == 0.0
	assert b.axis_difference(a, 7) == -0.5


def test_wrong_size_is_rejected():
	with pytest.raises(ValueError):
		FeatureVector([1.0, 2.0, 3.0])


def test_equality_and_hash():
	a = FeatureVector(np.full(27, 0.25))
	b = FeatureVector(np.full(27, 0.25))
	assert a == b
	assert hash(a) == hash(b)
	assert a != FeatureVector(np.zeros(27))
