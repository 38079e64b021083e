from __future__ import annotations

import heapq
from typing import List, Tuple

import numpy as np


class StaticKDIndex:
    """
    Static k-d tree over an (n, k) point array, built once.

    The tree is implicit: points are reordered in place so that for every
    range [lo, hi) the median m = (lo + hi) // 2 splits the range on axis
    depth % k. Ranges of at most `node_size` points are leaves and are
    scanned brute-force with numpy.

    `ids[i]` maps a tree slot back to the row of the input array.
    """

    def __init__(self, points, node_size: int = 64):
        pts = np.asarray(points, dtype=float)
        if pts.ndim == 1 and pts.size == 0:
            pts = pts.reshape(0, 2)
        if pts.ndim != 2:
            raise ValueError("points must be an (n, k) array")
        if node_size < 1:
            raise ValueError("node_size must be >= 1")
        self.node_size = int(node_size)
        self.dims = pts.shape[1]
        self.coords = pts.copy()
        self.ids = np.arange(pts.shape[0], dtype=np.int64)
        self._build()

    def __len__(self) -> int:
        return int(self.coords.shape[0])

    # -------- build --------

    def _build(self) -> None:
        stack = [(0, len(self), 0)]
        while stack:
            lo, hi, axis = stack.pop()
            if hi - lo <= self.node_size:
                continue
            m = (lo + hi) // 2
            order = np.argpartition(self.coords[lo:hi, axis], m - lo, kind="introselect")
            self.coords[lo:hi] = self.coords[lo:hi][order]
            self.ids[lo:hi] = self.ids[lo:hi][order]
            nxt = (axis + 1) % self.dims
            stack.append((lo, m, nxt))
            stack.append((m + 1, hi, nxt))

    # -------- queries --------

    def nearest(self, q) -> Tuple[int, float]:
        """
        Exact nearest neighbour of `q`.
        Returns (row index, squared distance); (-1, inf) on an empty index.
        Equal distances resolve to the lowest row index.
        """
        found = self.nearest_k(q, 1)
        return found[0] if found else (-1, float("inf"))

    def nearest_k(self, q, k: int) -> List[Tuple[int, float]]:
        """The `k` closest rows as (row index, squared distance), closest first."""
        if k < 1 or len(self) == 0:
            return []
        qv = np.asarray(q, dtype=float).reshape(self.dims)
        # max-heap of (-d2, -row): heap[0] is the current worst kept result
        heap: List[Tuple[float, int]] = []

        def worst() -> float:
            return -heap[0][0] if len(heap) == k else float("inf")

        def offer(d2: float, row: int) -> None:
            item = (-d2, -row)
            if len(heap) < k:
                heapq.heappush(heap, item)
            elif item > heap[0]:
                heapq.heapreplace(heap, item)

        stack = [(0, len(self), 0, 0.0)]
        while stack:
            lo, hi, axis, bound = stack.pop()
            if bound > worst():
                continue
            if hi - lo <= self.node_size:
                d2 = ((self.coords[lo:hi] - qv) ** 2).sum(axis=1)
                cand = np.nonzero(d2 <= worst())[0]
                for slot in cand[np.argsort(d2[cand], kind="stable")]:
                    offer(float(d2[slot]), int(self.ids[lo + slot]))
                continue
            m = (lo + hi) // 2
            offer(float(((self.coords[m] - qv) ** 2).sum()), int(self.ids[m]))
            diff = float(qv[axis] - self.coords[m, axis])
            nxt = (axis + 1) % self.dims
            near, far = ((lo, m), (m + 1, hi)) if diff <= 0 else ((m + 1, hi), (lo, m))
            # far side pushed first so the near side is explored first
            stack.append((far[0], far[1], nxt, diff * diff))
            stack.append((near[0], near[1], nxt, 0.0))

        out = [(-r, -nd) for nd, r in heap]
        out.sort(key=lambda t: (t[1], t[0]))
        return out
