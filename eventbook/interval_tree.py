from typing import Any, Callable, Generic, Iterable, Optional, TypeVar

# T represents the Totally Ordered type used for coordinates (Time)
T = TypeVar('T')

# Intervals are half-open: [start, end). Touching intervals do not intersect.
# The tree is built once from a snapshot and never modified afterwards, so it
# is balanced by construction: each subtree is rooted at the middle of its
# start-sorted slice.


class IntervalHandle(Generic[T]):
    """Opaque handle with public accessors for start, end, and data."""
    __slots__ = ['start', 'end', 'data', 'left', 'right', 'max_end']

    def __init__(self, start: T, end: T, data: Any):
        self.start: T = start
        self.end: T = end
        self.data: Any = data
        self.left: Optional['IntervalHandle[T]'] = None
        self.right: Optional['IntervalHandle[T]'] = None
        self.max_end: T = end


class IntervalTree(Generic[T]):
    """
    Static augmented BST over (start, end, data) triples.

    Nodes are ordered by start; intervals with equal starts keep the order
    they were given in. Every node stores the largest end in its subtree so
    queries can skip subtrees that finish before the query begins.
    """

    def __init__(self, intervals: Iterable[tuple[T, T, Any]] = ()):
        # sorted() is stable: equal starts stay in input order
        handles = sorted(
            (IntervalHandle(start, end, data) for start, end, data in intervals),
            key=lambda h: h.start,
        )
        self._size = len(handles)
        self.root: Optional[IntervalHandle[T]] = self._build(handles, 0, len(handles))

    def __len__(self) -> int:
        return self._size

    def _build(self, handles: list, lo: int, hi: int) -> Optional[IntervalHandle[T]]:
        if lo >= hi: return None
        mid = (lo + hi) // 2
        node = handles[mid]
        node.left = self._build(handles, lo, mid)
        node.right = self._build(handles, mid + 1, hi)
        for child in (node.left, node.right):
            if child and child.max_end > node.max_end:
                node.max_end = child.max_end
        return node

    # --- Search Methods ---

    def find_intersecting(self, start: T, end: T, callback: Callable[[IntervalHandle[T]], None]):
        """Finds intervals [s, e) with s < end and e > start, in start order."""
        def _search(node):
            if not node or node.max_end <= start: return
            _search(node.left)
            if node.start < end and node.end > start: callback(node)
            # Everything to the right starts at or after node.start
            if node.start < end: _search(node.right)
        _search(self.root)

    # --- Debug Tool ---

    def verify_integrity(self):
        """Crashes if the tree is unbalanced, out of order, or max_end is stale."""
        def _walk(node, low):
            if not node: return 0, None

            left_h, left_max = _walk(node.left, low)
            if low is not None and node.start < low:
                raise RuntimeError(f"Order Violation at {node.start}")
            right_h, right_max = _walk(node.right, node.start)

            if abs(left_h - right_h) > 1:
                raise RuntimeError(f"Balance Violation at {node.start}")

            expected_max = max(m for m in (node.end, left_max, right_max) if m is not None)
            if node.max_end != expected_max:
                raise RuntimeError(f"MaxEnd Violation at {node.start}")

            return 1 + max(left_h, right_h), expected_max

        _walk(self.root, None)
