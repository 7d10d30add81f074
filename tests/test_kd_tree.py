"""
kD-tree Tests

Tests construction and decomposition of the spatial index:
- Depth for uniform points
- Children partition the parent's objects and box
- Containment of objects and their tight bounds
- Bounds helpers and degenerate inputs
- collect_subvolumes sizes and the unsplit-cell error

Run with: pytest tests/test_kd_tree.py -v
"""

import numpy as np
import pytest

from mcevidence.error_handling import InternalError
from mcevidence.kd_tree import (
    bounds_of_coords,
    bounds_of_objects,
    bounds_volume,
    collect_subvolumes,
    depth,
    in_bounds,
    iter_cells,
    tree_of_objects,
)


def _identity(p):
    return p


def _uniform_tree(rng, n, dim, leaf_size=1):
    points = list(rng.random((n, dim)))
    return tree_of_objects(points, np.zeros(dim), np.ones(dim), _identity, leaf_size)


class TestBounds:
    """Box helpers."""

    def test_bounds_of_objects(self):
        points = [np.array([0.1, 0.5]), np.array([0.7, 0.2]), np.array([0.3, 0.9])]
        low, high = bounds_of_objects(points, _identity)
        np.testing.assert_allclose(low, [0.1, 0.2])
        np.testing.assert_allclose(high, [0.7, 0.9])

    def test_bounds_volume(self):
        assert bounds_volume([0.0, 0.0], [1.0, 2.0]) == pytest.approx(2.0)
        assert bounds_volume([0.0, 0.0], [1.0, 0.0]) == 0.0
        assert bounds_volume([1.0, 0.0], [0.0, 1.0]) == 0.0

    def test_empty_coords_raise(self):
        with pytest.raises(ValueError):
            bounds_of_coords(np.zeros((0, 2)))

    def test_in_bounds_is_closed(self):
        assert in_bounds([1.0, 0.0], [0.0, 0.0], [1.0, 1.0])
        assert not in_bounds([1.0 + 1e-9, 0.5], [0.0, 0.0], [1.0, 1.0])


class TestConstruction:
    """Tree shape and invariants."""

    def test_empty_tree(self):
        assert tree_of_objects([], [0.0], [1.0], _identity) is None
        assert depth(None) == 0
        assert collect_subvolumes(4, None) == []

    def test_depth_of_uniform_points(self, rng):
        """1024 points split down to single objects: depth near log2(1024) + 1."""
        tree = _uniform_tree(rng, 1024, 2)
        assert 8 <= depth(tree) <= 12

    def test_leaves_hold_single_objects(self, rng):
        tree = _uniform_tree(rng, 300, 3)
        leaves = [c for c in iter_cells(tree) if c.is_leaf]
        assert all(len(c) == 1 for c in leaves)
        assert sum(len(c) for c in leaves) == 300

    def test_children_partition_parent(self, rng):
        """Every object of an internal cell lies in exactly one child's closed box."""
        for _ in range(100):
            tree = _uniform_tree(rng, 250, 3)
            for cell in iter_cells(tree):
                if cell.is_leaf:
                    continue
                assert len(cell.left) + len(cell.right) == len(cell)
                for p in cell.objects:
                    in_left = in_bounds(p, cell.left.low, cell.left.high)
                    in_right = in_bounds(p, cell.right.low, cell.right.high)
                    assert in_left != in_right

    def test_child_boxes_split_parent_box(self, rng):
        tree = _uniform_tree(rng, 200, 2)
        for cell in iter_cells(tree):
            if cell.is_leaf:
                continue
            total = bounds_volume(cell.left.low, cell.left.high) + bounds_volume(cell.right.low, cell.right.high)
            assert total == pytest.approx(bounds_volume(cell.low, cell.high))

    def test_tight_bounds_inside_cell_box(self, rng):
        """Cells keep the partition box; integrals use the tight box of cell.coords."""
        tree = _uniform_tree(rng, 500, 2)
        for cell in iter_cells(tree):
            low, high = bounds_of_coords(cell.coords)
            assert np.all(low >= cell.low)
            assert np.all(high <= cell.high)

    def test_leaf_size(self, rng):
        tree = _uniform_tree(rng, 1000, 2, leaf_size=50)
        for cell in iter_cells(tree):
            if cell.is_leaf:
                assert len(cell) <= 50
            else:
                assert len(cell) > 50

    def test_constant_axis_skipped(self, rng):
        """Points on a line x = 0.5 still split along y."""
        points = [np.array([0.5, y]) for y in rng.random(64)]
        tree = tree_of_objects(points, [0.0, 0.0], [1.0, 1.0], _identity)
        assert not tree.is_leaf
        assert depth(tree) <= 8

    def test_identical_points_form_one_leaf(self):
        points = [np.array([0.2, 0.2])] * 5
        tree = tree_of_objects(points, [0.0, 0.0], [1.0, 1.0], _identity)
        assert tree.is_leaf
        assert len(tree) == 5

    def test_invalid_leaf_size(self):
        with pytest.raises(ValueError, match="leaf_size"):
            tree_of_objects([np.zeros(2)], [0.0, 0.0], [1.0, 1.0], _identity, leaf_size=0)

    def test_box_dimension_mismatch(self):
        with pytest.raises(ValueError, match="dimension"):
            tree_of_objects([np.zeros(2)], [0.0], [1.0], _identity)

    def test_objects_are_opaque(self, rng):
        """Objects need not be coordinates; coord extracts them."""
        items = [{'id': i, 'x': float(x)} for i, x in enumerate(rng.random(40))]
        tree = tree_of_objects(items, [0.0], [1.0], lambda d: [d['x']])
        ids = sorted(d['id'] for c in iter_cells(tree) if c.is_leaf for d in c.objects)
        assert ids == list(range(40))


class TestCollectSubvolumes:
    """Decomposition into cells of bounded size."""

    def test_sizes_and_coverage(self, rng):
        tree = _uniform_tree(rng, 1000, 2)
        cells = collect_subvolumes(16, tree)
        assert all(len(c) <= 16 for c in cells)
        assert sum(len(c) for c in cells) == 1000

    def test_small_tree_returned_whole(self, rng):
        tree = _uniform_tree(rng, 10, 2)
        assert collect_subvolumes(64, tree) == [tree]

    def test_unsplit_oversize_cell(self):
        points = [np.array([0.2, 0.2])] * 5
        tree = tree_of_objects(points, [0.0, 0.0], [1.0, 1.0], _identity)
        with pytest.raises(InternalError, match="not split"):
            collect_subvolumes(2, tree)
