"""
Interactive Flow Sandbox

Live D2Q9 flow in a matplotlib window.

Controls:
    mouse move      send pressure pulses along the pointer path
    left drag       draw solid walls
    s               calm the flow (reset to rest equilibrium)
    e               fire the emitter
    q               quit

The domain starts with four curves of solid cells (two parabolas, a sine
and a cosine).
"""

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.animation import FuncAnimation
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from boltzflow import BoltzmannLattice
from boltzflow.observables import compute_velocity_magnitude
from visualization.field_plots import speed_to_rgb

# Barrier radius drawn by a mouse drag
BRUSH_RADIUS = 3

# Impulse per pixel of mouse motion, relative to the domain size
DRAG_GAIN = 10.0


def stamp_curve(lattice, func, scale=10000):
    """
    Stamp radius-1 barriers along y = func(x).

    x is sampled every 1/scale cell over [0, width); points with y
    outside [0, height) are skipped. Steep curves need a fine step to
    stay gap-free, so sampling runs one cell column at a time.

    Returns
    -------
    count : int
        Number of distinct cells the curve passed through
    """
    offsets = np.arange(scale) / scale
    count = 0

    for column in range(lattice.width):
        ys = func(column + offsets)
        ys = ys[(ys >= 0) & (ys < lattice.height)]
        for y in np.unique(ys.astype(int)):
            lattice.set_barrier(column, y, 1)
            count += 1

    return count


def default_curves(width):
    w2 = width // 2
    return [
        lambda x: (x - w2) ** 2,
        lambda x: w2 * 2 - (x - w2) ** 2,
        lambda x: np.sin(x / 10.0) * w2 - w2 / 2,
        lambda x: np.cos(x / 10.0) * w2 - w2 / 2,
    ]


class InteractiveFlow:
    """
    Window, input handling and animation loop around a BoltzmannLattice.
    """

    def __init__(self, width=300, height=180, relaxation=0.7, num_workers=3):
        self.lattice = BoltzmannLattice(width, height, relaxation, num_workers)

        for curve in default_curves(width):
            stamp_curve(self.lattice, curve)

        self.drag = False
        self.last = None
        self.highest_velocity = 0.0

        self.fig, self.ax = plt.subplots(figsize=(10, 6))
        self.ax.set_axis_off()
        self.image = self.ax.imshow(
            np.zeros((height, width, 3)), origin="upper", interpolation="nearest"
        )

        self.fig.canvas.mpl_connect("motion_notify_event", self.on_mouse_move)
        self.fig.canvas.mpl_connect("button_press_event", self.on_click)
        self.fig.canvas.mpl_connect("button_release_event", self.on_mouse_up)
        self.fig.canvas.mpl_connect("key_press_event", self.on_key)
        self.fig.canvas.mpl_connect("close_event", self.on_close)

    def _cell(self, event):
        if event.inaxes is not self.ax or event.xdata is None:
            return None
        x = int(round(event.xdata))
        y = int(round(event.ydata))
        if 0 <= x < self.lattice.width and 0 <= y < self.lattice.height:
            return x, y
        return None

    def on_mouse_move(self, event):
        cell = self._cell(event)
        if cell is None:
            self.last = None
            return
        x, y = cell
        xrel, yrel = (0, 0) if self.last is None else (x - self.last[0], y - self.last[1])
        self.last = cell

        if self.drag:
            self.lattice.set_barrier(x, y, BRUSH_RADIUS)
        else:
            ux = DRAG_GAIN * xrel / self.lattice.width
            uy = DRAG_GAIN * yrel / self.lattice.height
            self.lattice.inject_impulse(x, y, ux, uy)

    def on_click(self, event):
        cell = self._cell(event)
        if cell is None:
            return
        self.drag = True
        self.last = cell
        self.lattice.set_barrier(cell[0], cell[1], BRUSH_RADIUS)

    def on_mouse_up(self, event):
        self.drag = False

    def on_key(self, event):
        if event.key == "s":
            self.lattice.stabilise()
            self.highest_velocity = 0.0
        elif event.key == "e":
            w2 = self.lattice.width // 2
            h2 = self.lattice.height // 2
            self.lattice.emit(w2 // 2, h2 + h2 // 2)
        elif event.key == "q":
            plt.close(self.fig)

    def on_close(self, event):
        self.lattice.close()

    def frame(self, _):
        self.lattice.update()

        ux, uy = self.lattice.velocity_field()
        speed = compute_velocity_magnitude(ux, uy)
        self.highest_velocity = max(self.highest_velocity, float(np.max(speed)))

        self.image.set_data(
            speed_to_rgb(speed, self.lattice.barrier, self.highest_velocity)
        )
        return (self.image,)

    def show(self):
        # Keep a reference; the animation stops when garbage collected
        self.animation = FuncAnimation(
            self.fig, self.frame, interval=1, blit=True, cache_frame_data=False
        )
        try:
            plt.show()
        finally:
            self.lattice.close()


if __name__ == "__main__":
    InteractiveFlow().show()
