"""
kD-tree over a finalized set of objects.

The tree recursively cuts an axis-aligned box in two. Cells are plain
records; the empty tree is None.

Cell(objects, coords, low, high, left, right)
    objects: The objects inside this cell
    coords: (n, D) array of their coordinates, row i <-> objects[i]
    low, high: The cell's box. The root box is supplied by the caller and
        may be larger than the objects' extent; a child's box is its
        parent's box cut along one axis.
    left, right: Children, both None for a leaf

Splitting policy: the axis cycles with depth (depth mod D). The cut sits
half-way between the two sorted coordinates nearest the median that
differ, so no object lies on a cut and every object is inside exactly one
child box. When an axis cannot separate the objects (all equal along it)
the next axis is tried; if none can, the cell is a leaf.
"""

from dataclasses import dataclass
from typing import Any, Callable, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from .error_handling import InternalError


@dataclass(frozen=True, eq=False)
class Cell:
    # low/high is the partition box; the tight box is bounds_of_coords(coords)
    objects: List[Any]
    coords: np.ndarray
    low: np.ndarray
    high: np.ndarray
    left: Optional['Cell'] = None
    right: Optional['Cell'] = None

    @property
    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    def __len__(self) -> int:
        return len(self.objects)


# ============================================================================
# BOUNDS
# ============================================================================

def bounds_of_coords(coords) -> Tuple[np.ndarray, np.ndarray]:
    """Tight axis-aligned box (low, high) around an (n, D) coordinate array."""
    coords = np.asarray(coords, dtype=float)
    if coords.ndim != 2 or coords.shape[0] == 0:
        raise ValueError(f"Need a non-empty (n, D) coordinate array, got shape {coords.shape}")
    return coords.min(axis=0), coords.max(axis=0)


def bounds_of_objects(objects: Sequence[Any], coord: Callable) -> Tuple[np.ndarray, np.ndarray]:
    """Tight axis-aligned box around objects, using coord(obj) -> coordinate vector."""
    return bounds_of_coords(coords_of_objects(objects, coord))


def bounds_volume(low, high) -> float:
    """Product of the box's extents; 0 for a degenerate or inverted box."""
    extent = np.asarray(high, dtype=float) - np.asarray(low, dtype=float)
    if np.any(extent <= 0):
        return 0.0
    return float(np.prod(extent))


def in_bounds(x, low, high) -> bool:
    """True if x lies in the closed box [low, high]."""
    x = np.asarray(x)
    return bool(np.all(x >= low) and np.all(x <= high))


def coords_of_objects(objects: Sequence[Any], coord: Callable) -> np.ndarray:
    return np.array([np.atleast_1d(np.asarray(coord(o), dtype=float)) for o in objects], dtype=float)


# ============================================================================
# CONSTRUCTION
# ============================================================================

def _find_cut(column: np.ndarray) -> Optional[float]:
    """Cut value nearest the median that separates the column, or None."""
    ordered = np.sort(column)
    # k is a usable split index when ordered[k-1] < ordered[k]
    splits = np.flatnonzero(ordered[1:] > ordered[:-1]) + 1
    if splits.size == 0:
        return None
    k = splits[np.argmin(np.abs(splits - len(ordered) // 2))]
    lo, hi = ordered[k - 1], ordered[k]
    cut = 0.5 * (lo + hi)
    if not lo < cut < hi:
        # Adjacent floats; fall back to a cut on the lower value
        cut = lo
    return float(cut)


def _build(objects, coords, low, high, depth, leaf_size) -> Optional[Cell]:
    n = len(objects)
    if n == 0:
        return None
    if n <= leaf_size:
        return Cell(objects, coords, low, high)

    dim = coords.shape[1]
    for shift in range(dim):
        axis = (depth + shift) % dim
        cut = _find_cut(coords[:, axis])
        if cut is None:
            continue
        goes_left = coords[:, axis] <= cut

        left_high = high.copy()
        left_high[axis] = cut
        right_low = low.copy()
        right_low[axis] = cut

        left_idx = np.flatnonzero(goes_left)
        right_idx = np.flatnonzero(~goes_left)
        left = _build([objects[i] for i in left_idx], coords[left_idx],
                      low, left_high, depth + 1, leaf_size)
        right = _build([objects[i] for i in right_idx], coords[right_idx],
                       right_low, high, depth + 1, leaf_size)
        return Cell(objects, coords, low, high, left, right)

    # Every axis is constant over these objects
    return Cell(objects, coords, low, high)


def tree_of_objects(objects: Sequence[Any], low, high, coord: Callable,
                    leaf_size: int = 1) -> Optional[Cell]:
    """
    Build a kD-tree over objects inside the box [low, high].

    Args:
        objects: Duplicate-free objects
        low: Lower corner of the root box
        high: Upper corner of the root box
        coord: fn(obj) -> fixed-length coordinate vector
        leaf_size: Cells with at most this many objects are not split

    Returns:
        Root Cell, or None for no objects

    Raises:
        ValueError: If leaf_size < 1, or the box dimension does not match
            the coordinates
    """
    if leaf_size < 1:
        raise ValueError(f"leaf_size must be >= 1, got {leaf_size}")
    objects = list(objects)
    if not objects:
        return None
    coords = coords_of_objects(objects, coord)
    low = np.array(low, dtype=float).reshape(-1)
    high = np.array(high, dtype=float).reshape(-1)
    if low.shape[0] != coords.shape[1] or high.shape[0] != coords.shape[1]:
        raise ValueError(
            f"Box has dimension {low.shape[0]}/{high.shape[0]} but coordinates have {coords.shape[1]}"
        )
    return _build(objects, coords, low, high, 0, leaf_size)


# ============================================================================
# TRAVERSAL
# ============================================================================

def depth(tree: Optional[Cell]) -> int:
    """Number of cells on the longest root-to-leaf path (0 for None)."""
    if tree is None:
        return 0
    return 1 + max(depth(tree.left), depth(tree.right))


def iter_cells(tree: Optional[Cell]) -> Iterator[Cell]:
    """All cells, parents before children."""
    stack = [tree] if tree is not None else []
    while stack:
        cell = stack.pop()
        yield cell
        for child in (cell.right, cell.left):
            if child is not None:
                stack.append(child)


def collect_subvolumes(nmax: int, tree: Optional[Cell]) -> List[Cell]:
    """
    Decompose a tree into cells holding at most nmax objects.

    A cell with at most nmax objects is returned whole; a larger cell must
    have been split and is replaced by its children's decompositions.

    Raises:
        InternalError: If a cell larger than nmax has a missing child
    """
    if tree is None:
        return []
    cells = []
    stack = [tree]
    while stack:
        cell = stack.pop()
        if len(cell.objects) <= nmax:
            cells.append(cell)
            continue
        if not isinstance(cell.left, Cell) or not isinstance(cell.right, Cell):
            raise InternalError(
                f"collect_subvolumes: cell with {len(cell.objects)} objects (> {nmax}) is not split"
            )
        stack.append(cell.right)
        stack.append(cell.left)
    return cells
