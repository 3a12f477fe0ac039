"""
27-dimensional k-d tree for colour matching.

Unlike a textbook k-d tree the split axis does not walk the dimensions in
order; each level compares the single value picked by feature_vector.axis().
The tree is built by plain insertion (no rebalancing) during library
preprocessing and is only read afterwards, so it is handed to worker
threads through freeze().
"""

import json
import math

from mosaic_select.feature_vector import FeatureVector


class IndexNode:
	"""One (vector, asset) entry with exclusively owned children."""

	__slots__ = ("vector", "asset", "left", "right")

	def __init__(self, vector, asset):
		self.vector = vector
		self.asset = asset
		self.left = None
		self.right = None


class SpatialIndex:
	"""
	Nearest-match index over FeatureVectors.

	Example:
	    index = SpatialIndex()
	    index.insert("beach.jpg", vector)
	    asset, score = index.nearest_match(query)
	"""

	def __init__(self):
		self._root = None
		self._assets = set()
		self._size = 0

	def insert(self, asset, vector):
		"""
		Add an asset to the tree.

		Vectors that compare "less" on the current level's axis go left,
		everything else (ties included) goes right. Identical vectors are
		allowed and form a chain of right children.
		"""
		new_node = IndexNode(vector, asset)
		self._assets.add(asset)
		self._size += 1

		if self._root is None:
			self._root = new_node
			return

		node = self._root
		level = 0
		while True:
			if vector.axis_difference(node.vector, level) < 0:
				if node.left is None:
					node.left = new_node
					return
				node = node.left
			else:
				if node.right is None:
					node.right = new_node
					return
				node = node.right
			level += 1

	def is_member(self, asset):
		return asset in self._assets

	def assets(self):
		"""Frozen set of every inserted asset."""
		return frozenset(self._assets)

	def nearest_match(self, query):
		"""
		Find the asset whose vector is closest to the query.

		Args:
		    query: FeatureVector to match

		Returns:
		    Tuple of (asset, euclidean distance), or None if the index is empty
		"""
		if self._root is None:
			return None

		best_asset = None
		best_dist = math.inf

		# Entries are (subtree, level, lower bound on squared distance)
		pending = [(self._root, 0, 0.0)]
		while pending:
			node, level, bound = pending.pop()
			if bound >= best_dist:
				continue

			path = []
			while node is not None:
				diff = query.axis_difference(node.vector, level)
				path.append((node, level, diff))
				node = node.left if diff < 0 else node.right
				level += 1

			# Unwind from the leaf, then queue the far side of each split
			for node, level, diff in reversed(path):
				dist = query.squared_distance(node.vector)
				if dist < best_dist:
					best_asset = node.asset
					best_dist = dist

				sibling = node.right if diff < 0 else node.left
				gap = diff * diff
				if sibling is not None and gap < best_dist:
					pending.append((sibling, level + 1, gap))

		return best_asset, math.sqrt(best_dist)

	def freeze(self):
		"""Return a read-only view sharing this tree."""
		return FrozenIndex(self)

	def nodes(self):
		"""Yield (depth, node) in pre-order."""
		stack = [(0, self._root)] if self._root is not None else []
		while stack:
			depth, node = stack.pop()
			yield depth, node
			if node.right is not None:
				stack.append((depth + 1, node.right))
			if node.left is not None:
				stack.append((depth + 1, node.left))

	def depth(self):
		"""Number of levels in the tree (0 when empty)."""
		return max((d + 1 for d, _ in self.nodes()), default=0)

	def to_string(self):
		"""
		Encode the tree as JSON text.

		Nodes are written in pre-order with flags telling whether a left
		and a right child follow, which is enough to rebuild the exact shape.
		Assets must be JSON scalars (file names, ids).
		"""
		records = []
		for _, node in self.nodes():
			records.append([
				node.asset,
				node.vector.to_list(),
				node.left is not None,
				node.right is not None,
			])
		return json.dumps({"version": 1, "nodes": records})

	@classmethod
	def from_string(cls, storage_string):
		"""
		Rebuild an index written by to_string().

		Raises:
		    ValueError: If the text is not a valid encoded index
		"""
		try:
			data = json.loads(storage_string)
			records = data["nodes"]
		except (TypeError, KeyError, json.JSONDecodeError) as e:
			raise ValueError(f"Not an encoded index: {e}") from e

		index = cls()
		if not records:
			return index

		nodes = []
		try:
			for asset, values, has_left, has_right in records:
				hash(asset)
				nodes.append((IndexNode(FeatureVector(values), asset), has_left, has_right))
		except (TypeError, ValueError) as e:
			raise ValueError(f"Malformed index record: {e}") from e

		# Pre-order: attach each node to the deepest parent still waiting for a child
		root = nodes[0][0]
		waiting = []
		for position, (node, has_left, has_right) in enumerate(nodes):
			if position > 0:
				if not waiting:
					raise ValueError("Encoded index has more nodes than its shape allows")
				parent, side, pending_right = waiting.pop()
				setattr(parent, side, node)
				if side == "left" and pending_right:
					waiting.append((parent, "right", False))
			if has_left:
				waiting.append((node, "left", has_right))
			elif has_right:
				waiting.append((node, "right", False))
			index._assets.add(node.asset)
			index._size += 1

		if waiting:
			raise ValueError("Encoded index is truncated")

		index._root = root
		return index

	def __len__(self):
		return self._size

	def __contains__(self, asset):
		return self.is_member(asset)


class FrozenIndex:
	"""Read-only handle on a built SpatialIndex, safe to share across threads."""

	__slots__ = ("_index",)

	def __init__(self, index):
		self._index = index

	def is_member(self, asset):
		return self._index.is_member(asset)

	def assets(self):
		return self._index.assets()

	def nearest_match(self, query):
		return self._index.nearest_match(query)

	def to_string(self):
		return self._index.to_string()

	def depth(self):
		return self._index.depth()

	def __len__(self):
		return len(self._index)

	def __contains__(self, asset):
		return self._index.is_member(asset)
