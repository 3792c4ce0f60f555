"""Pixel-level image comparison.

Pixels are compared in YIQ space, following the perceptual colour metric of
Kotsarenko & Ramos ("Measuring perceived color difference using YIQ NTSC
transmission color space in mobile applications"). A pixel is mismatched when
its weighted YIQ distance exceeds ``35215 * tolerance**2`` (35215 is the largest
possible distance). Optionally, pixels that look like anti-aliasing are exempt,
using the detector from Vysniauskas' "Anti-aliased Pixel and Intensity Slope
Detector". Everything is vectorized over whole images with numpy.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)

MAX_YIQ_DELTA = 35215.0

# (dx, dy) in the scan order used to break ties between equal neighbours
_NEIGHBOURS = [(dx, dy) for dx in (-1, 0, 1) for dy in (-1, 0, 1) if (dx, dy) != (0, 0)]


class ComparisonError(Exception):
    """A snapshot could not be compared (undecodable file, dimension mismatch)."""


@dataclass
class PixelDiffResult:
    diff_pixel_count: int
    total_pixels: int
    width: int
    height: int
    diff_image: np.ndarray  # HxWx4 uint8 RGBA

    @property
    def diff_pixel_ratio(self) -> float:
        if self.total_pixels == 0:
            return 0.0
        return self.diff_pixel_count / self.total_pixels


def load_rgba(path: str | Path) -> np.ndarray:
    """Decode an image file into an HxWx4 uint8 array."""
    path = Path(path)
    try:
        with Image.open(path) as img:
            return np.asarray(img.convert("RGBA"), dtype=np.uint8)
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise ComparisonError(f"failed to decode {path.name}: {e}") from e


def save_rgba(pixels: np.ndarray, path: str | Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(pixels).save(path, format="PNG")


def _blend_white(rgba: np.ndarray) -> np.ndarray:
    """Composite RGBA over white, returning float RGB."""
    rgb = rgba[..., :3].astype(np.float64)
    alpha = rgba[..., 3:4].astype(np.float64) / 255.0
    return 255.0 + (rgb - 255.0) * alpha


def _y(rgb: np.ndarray) -> np.ndarray:
    return rgb[..., 0] * 0.29889531 + rgb[..., 1] * 0.58662247 + rgb[..., 2] * 0.11448223


def _i(rgb: np.ndarray) -> np.ndarray:
    return rgb[..., 0] * 0.59597799 - rgb[..., 1] * 0.27417610 - rgb[..., 2] * 0.32180189


def _q(rgb: np.ndarray) -> np.ndarray:
    return rgb[..., 0] * 0.21147017 - rgb[..., 1] * 0.52261711 + rgb[..., 2] * 0.31114694


def color_delta(img1: np.ndarray, img2: np.ndarray) -> np.ndarray:
    """Per-pixel weighted YIQ distance between two RGBA images of equal shape."""
    rgb1, rgb2 = _blend_white(img1), _blend_white(img2)
    y = _y(rgb1) - _y(rgb2)
    i = _i(rgb1) - _i(rgb2)
    q = _q(rgb1) - _q(rgb2)
    delta = 0.5053 * y * y + 0.299 * i * i + 0.1957 * q * q
    delta[np.all(img1 == img2, axis=-1)] = 0.0
    return delta


def _shift(arr: np.ndarray, dx: int, dy: int, fill) -> np.ndarray:
    """``out[y, x] = arr[y + dy, x + dx]``, with ``fill`` where that falls outside."""
    h, w = arr.shape[:2]
    out = np.full_like(arr, fill)
    out[max(0, -dy):h - max(0, dy), max(0, -dx):w - max(0, dx)] = \
        arr[max(0, dy):h - max(0, -dy), max(0, dx):w - max(0, -dx)]
    return out


def _edge_mask(h: int, w: int) -> np.ndarray:
    ys, xs = np.indices((h, w))
    return (xs == 0) | (xs == w - 1) | (ys == 0) | (ys == h - 1)


def _many_siblings(rgba: np.ndarray) -> np.ndarray:
    """True where more than two neighbours (image border counts as one) are identical."""
    h, w = rgba.shape[:2]
    inside = np.ones((h, w), dtype=bool)
    count = _edge_mask(h, w).astype(np.int16)
    for dx, dy in _NEIGHBOURS:
        valid = _shift(inside, dx, dy, False)
        same = np.all(_shift(rgba, dx, dy, 0) == rgba, axis=-1)
        count += valid & same
    return count > 2


def _antialiased(rgba: np.ndarray, siblings: np.ndarray, other_siblings: np.ndarray) -> np.ndarray:
    """Mask of pixels in ``rgba`` that sit on an anti-aliased edge.

    A pixel qualifies when at most two of its neighbours share its brightness,
    it has both a darker and a brighter neighbour, and the darkest or brightest
    of those sits in a flat region in both images.
    """
    h, w = rgba.shape[:2]
    brightness = _y(_blend_white(rgba))
    inside = np.ones((h, w), dtype=bool)
    ys, xs = np.indices((h, w))

    zeroes = _edge_mask(h, w).astype(np.int16)
    lo = np.zeros((h, w))
    hi = np.zeros((h, w))
    lo_y, lo_x = ys.copy(), xs.copy()
    hi_y, hi_x = ys.copy(), xs.copy()

    for dx, dy in _NEIGHBOURS:
        valid = _shift(inside, dx, dy, False)
        delta = np.where(valid, brightness - _shift(brightness, dx, dy, 0.0), 0.0)
        zeroes += valid & (delta == 0)

        darker = delta < lo
        lo = np.where(darker, delta, lo)
        lo_y[darker] = ys[darker] + dy
        lo_x[darker] = xs[darker] + dx

        brighter = delta > hi
        hi = np.where(brighter, delta, hi)
        hi_y[brighter] = ys[brighter] + dy
        hi_x[brighter] = xs[brighter] + dx

    flat_lo = siblings[lo_y, lo_x] & other_siblings[lo_y, lo_x]
    flat_hi = siblings[hi_y, hi_x] & other_siblings[hi_y, hi_x]
    return (zeroes <= 2) & (lo < 0) & (hi > 0) & (flat_lo | flat_hi)


def _gray(rgba: np.ndarray, alpha: float) -> np.ndarray:
    """Faded grayscale rendering of an image, used for unchanged pixels."""
    y = _y(rgba[..., :3].astype(np.float64))
    a = alpha * rgba[..., 3].astype(np.float64) / 255.0
    return np.clip(255.0 + (y - 255.0) * a, 0, 255).astype(np.uint8)


def diff_pixels(
    baseline: np.ndarray,
    current: np.ndarray,
    pixel_tolerance: float = 0.1,
    include_aa: bool = True,
    alpha: float = 0.1,
    diff_color: tuple[int, int, int] = (255, 0, 0),
    aa_color: tuple[int, int, int] = (255, 255, 0),
) -> PixelDiffResult:
    """Count mismatched pixels between two decoded RGBA images and draw a diff.

    Raises ComparisonError if the images differ in size.
    """
    if baseline.shape != current.shape:
        bh, bw = baseline.shape[:2]
        ch, cw = current.shape[:2]
        raise ComparisonError(
            f"dimensions mismatch: baseline {bw}x{bh} vs current {cw}x{ch}"
        )

    h, w = baseline.shape[:2]
    max_delta = MAX_YIQ_DELTA * pixel_tolerance * pixel_tolerance
    mismatched = color_delta(baseline, current) > max_delta

    if include_aa or not mismatched.any():
        aa = np.zeros((h, w), dtype=bool)
    else:
        sib_base = _many_siblings(baseline)
        sib_cur = _many_siblings(current)
        aa = mismatched & (
            _antialiased(baseline, sib_base, sib_cur) | _antialiased(current, sib_cur, sib_base)
        )
    counted = mismatched & ~aa

    gray = _gray(baseline, alpha)
    out = np.empty((h, w, 4), dtype=np.uint8)
    out[..., 0] = gray
    out[..., 1] = gray
    out[..., 2] = gray
    out[..., 3] = 255
    out[aa, :3] = aa_color
    out[counted, :3] = diff_color

    diff_count = int(np.count_nonzero(counted))
    logger.debug(
        "Pixel diff %dx%d: %d mismatched, %d anti-aliased", w, h, diff_count, int(np.count_nonzero(aa)),
    )
    return PixelDiffResult(
        diff_pixel_count=diff_count,
        total_pixels=h * w,
        width=w,
        height=h,
        diff_image=out,
    )


def compare_files(
    baseline_path: str | Path,
    current_path: str | Path,
    diff_path: str | Path,
    pixel_tolerance: float = 0.1,
    include_aa: bool = True,
    alpha: float = 0.1,
    diff_color: tuple[int, int, int] = (255, 0, 0),
    aa_color: tuple[int, int, int] = (255, 255, 0),
) -> PixelDiffResult:
    """Decode both files, diff them and always write the diff image."""
    baseline = load_rgba(baseline_path)
    current = load_rgba(current_path)
    result = diff_pixels(
        baseline,
        current,
        pixel_tolerance=pixel_tolerance,
        include_aa=include_aa,
        alpha=alpha,
        diff_color=diff_color,
        aa_color=aa_color,
    )
    save_rgba(result.diff_image, diff_path)
    return result
