"""Per-frame scan for the translucent grey touch-indicator disc.

A sampled pixel is a glyph pixel when its three colour channels sit close to
their mean (grey/white, no tint) and the mean falls inside a mid brightness
band, which drops pure black backgrounds and pure white text.  Glyph pixels
are counted on a coarse grid, and cells holding at least ``min_cell_pixels``
of them are labelled into 8-connected blobs.  Each blob is then measured and
kept only when its size and fill ratio look like a disc rather than a line of
text or a toolbar.
"""
from __future__ import annotations

import math
from typing import List, Optional, Tuple

import cv2
import numpy as np

from .config import DetectorConfig
from .models import Candidate


def _colour_channels(pixels: np.ndarray) -> np.ndarray:
    if pixels.ndim != 3 or pixels.shape[2] < 3:
        raise ValueError(f"Expected an (H, W, 3|4) pixel buffer, got shape {pixels.shape}")
    return pixels[:, :, :3]


def glyph_mask(pixels: np.ndarray, config: DetectorConfig, step: int = 1) -> Tuple[np.ndarray, np.ndarray]:
    """Return ``(mask, brightness)`` over the pixel grid sampled every ``step`` pixels."""

    sampled = _colour_channels(pixels)[::step, ::step].astype(np.float32)
    brightness = sampled.mean(axis=2)
    deviation = np.abs(sampled - brightness[..., None]).max(axis=2)
    mask = (
        (deviation < config.max_channel_deviation)
        & (brightness > config.min_brightness)
        & (brightness < config.max_brightness)
    )
    return mask, brightness


def _label_cells(xs: np.ndarray, ys: np.ndarray, config: DetectorConfig) -> np.ndarray:
    """Blob label of every sampled pixel; 0 marks pixels in cells too sparse to join a blob."""

    gx = xs // config.cell_size
    gy = ys // config.cell_size
    counts = np.zeros((int(gy.max()) + 1, int(gx.max()) + 1), dtype=np.int32)
    np.add.at(counts, (gy, gx), 1)
    dense = (counts >= config.min_cell_pixels).astype(np.uint8)
    _, labels = cv2.connectedComponents(dense, connectivity=8)
    return labels[gy, gx]


def _measure(xs: np.ndarray, ys: np.ndarray, brightness: np.ndarray, config: DetectorConfig) -> Optional[Candidate]:
    count = int(xs.size)
    if count < config.min_blob_pixels:
        return None
    cx = float(xs.mean())
    cy = float(ys.mean())
    radius = float(np.hypot(xs - cx, ys - cy).max())
    covered = count * config.stride * config.stride
    expected = math.pi * radius * radius
    circularity = covered / expected if expected > 0 else 0.0
    if not (config.min_radius <= radius <= config.max_radius):
        return None
    if not (config.min_circularity < circularity < config.max_circularity):
        return None
    return Candidate(
        x=cx,
        y=cy,
        radius=radius,
        brightness=float(brightness.mean()),
        pixel_count=count,
        circularity=circularity,
    )


def find_candidates(pixels: np.ndarray, config: Optional[DetectorConfig] = None) -> List[Candidate]:
    """Return every disc-like grey blob in ``pixels`` (RGBA or RGB, uint8)."""

    cfg = config or DetectorConfig()
    step = cfg.stride
    mask, brightness = glyph_mask(pixels, cfg, step)
    rows, cols = np.nonzero(mask)
    if rows.size == 0:
        return []
    xs = (cols * step).astype(np.int64)
    ys = (rows * step).astype(np.int64)
    values = brightness[rows, cols]

    pixel_labels = _label_cells(xs, ys, cfg)
    labelled = np.nonzero(pixel_labels)[0]
    if labelled.size == 0:
        return []
    # blobs in raster order of their first sampled pixel
    blob_ids, first = np.unique(pixel_labels[labelled], return_index=True)
    candidates: List[Candidate] = []
    for blob_id in blob_ids[np.argsort(first, kind="stable")]:
        idx = np.nonzero(pixel_labels == blob_id)[0]
        candidate = _measure(xs[idx].astype(np.float64), ys[idx].astype(np.float64), values[idx], cfg)
        if candidate is not None:
            candidates.append(candidate)
    return candidates


__all__ = ["find_candidates", "glyph_mask"]
