"""
Related-post linking by shared tags.

Tag sets are binarized into a sparse post x tag matrix ``M``; ``M @ M.T``
then holds the pairwise overlap counts. Only pairs that share a tag produce
stored entries, so the cost follows the tag co-occurrence rather than the
square of the batch size.
"""

from __future__ import annotations

import numpy as np
from sklearn.preprocessing import MultiLabelBinarizer

MAX_RELATED = 3


def related_indices(tag_sets: list[list[str]], limit: int = MAX_RELATED) -> list[list[int]]:
    """
    For each post, the indices of up to ``limit`` other posts sharing the most
    tags. Ties go to the earlier post; posts sharing nothing are never related.
    """
    if not tag_sets:
        return []

    binarizer = MultiLabelBinarizer(sparse_output=True)
    matrix = binarizer.fit_transform(tag_sets).tocsr().astype(np.int32)
    overlap = (matrix @ matrix.T).tocsr()

    related: list[list[int]] = []
    for row in range(overlap.shape[0]):
        start, end = overlap.indptr[row], overlap.indptr[row + 1]
        cols = overlap.indices[start:end]
        counts = overlap.data[start:end]

        keep = (cols != row) & (counts > 0)
        cols, counts = cols[keep], counts[keep]

        # primary key: overlap descending; secondary: batch position ascending
        order = np.lexsort((cols, -counts))
        related.append([int(col) for col in cols[order][:limit]])
    return related
