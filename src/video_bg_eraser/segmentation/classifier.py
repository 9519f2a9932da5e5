"""
Background/Foreground Classifier
================================

Turns a per-pixel class-id map from the segmentation model into a binary
background mask. A pixel is background when its class id belongs to the
configured set of background ids.
"""

from typing import FrozenSet, Iterable

import numpy as np

from video_bg_eraser.core.errors import EmptyClassIdSet


class BackgroundClassifier:
    """
    Set-membership classifier over segmentation class ids.

    Example:
        >>> classifier = BackgroundClassifier([0, 9])
        >>> background = classifier.background_mask(class_map)
        >>> foreground = classifier.foreground_mask(class_map)
    """

    def __init__(self, background_class_ids: Iterable[int]):
        ids = frozenset(int(class_id) for class_id in background_class_ids)
        if not ids:
            raise EmptyClassIdSet()

        self._class_ids = ids
        self._lookup = np.array(sorted(ids), dtype=np.int64)

    @property
    def background_class_ids(self) -> FrozenSet[int]:
        return self._class_ids

    def background_mask(self, class_map: np.ndarray) -> np.ndarray:
        """Boolean HxW mask, True where the class id is a background id."""
        if class_map.ndim != 2:
            raise ValueError(f"Class map must be HxW, got shape {class_map.shape}")

        return np.isin(class_map, self._lookup)

    def foreground_mask(self, class_map: np.ndarray) -> np.ndarray:
        """Complement of :meth:`background_mask`."""
        return ~self.background_mask(class_map)
