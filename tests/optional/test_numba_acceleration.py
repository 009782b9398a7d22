import numpy as np
import pytest

pytest.importorskip("numba")

from engine.core.image import ImageShape
from engine.raster.scanline import coverage_mask, fill_mask_njit

# What this tests
# - With real numba installed, the scanline kernel is JIT-compiled on first use and agrees
#   with its pure-Python twin on a larger canvas.


@pytest.mark.optional
def test_scanline_kernel_is_compiled_and_consistent():
    verts = np.array([[3.2, 1.1], [120.7, 10.4], [90.1, 77.7], [10.5, 60.2]], dtype=np.float64)
    shape = ImageShape(128, 96, 1)
    mask = coverage_mask(verts, shape)
    assert fill_mask_njit.signatures, "kernel should have been compiled"
    ref = np.zeros((96, 128), dtype=np.bool_)
    fill_mask_njit.py_func(
        np.ascontiguousarray(verts[:, 0]), np.ascontiguousarray(verts[:, 1]), False, ref
    )
    assert np.array_equal(mask, ref)
    assert mask.sum() > 1000
