"""
Field Visualization

Colour mapping of lattice fields for display.

Speed is shown on one blue-to-red hue ramp relative to the fastest speed
seen, at the HSL(h, 0.5, 0.5) saturation and lightness of the sandbox.
"""

import numpy as np
from matplotlib.colors import hsv_to_rgb

# HSL(h, 0.5, 0.5) expressed in HSV
SATURATION = 2.0 / 3.0
VALUE = 0.75

# Hue of the slowest cells (blue); the fastest map to red
SLOW_HUE = 2.0 / 3.0


def speed_to_rgb(speed, barrier=None, highest=None):
    """
    Map a speed field to an RGB image.

    Parameters
    ----------
    speed : ndarray
        Velocity magnitude, shape (ny, nx)
    barrier : ndarray, optional
        Solid mask, shape (ny, nx). Solid cells are drawn black.
    highest : float, optional
        Speed mapped to the top of the scale. Defaults to the field maximum.

    Returns
    -------
    rgb : ndarray
        Image, shape (ny, nx, 3), values in [0, 1]
    """
    if highest is None:
        highest = float(np.max(speed))
    if highest <= 0.0:
        highest = 1.0

    level = np.clip(speed / highest, 0.0, 1.0)
    hsv = np.empty(speed.shape + (3,), dtype=np.float64)
    hsv[..., 0] = SLOW_HUE * (1.0 - level)
    hsv[..., 1] = SATURATION
    hsv[..., 2] = VALUE
    rgb = hsv_to_rgb(hsv)

    if barrier is not None:
        rgb[barrier] = 0.0

    return rgb
