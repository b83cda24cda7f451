"""
Field and Induction Visualization

Plots of a magnet's B-field and of the induction outputs recorded while the
bar magnet is swept through the pickup coil.
"""

from pathlib import Path
from typing import Dict, List, Optional, Sequence

import numpy as np
import matplotlib.pyplot as plt
import matplotlib.transforms as mtransforms
from matplotlib.patches import Rectangle

from .config import LabConfig
from .magnet import Magnet
from .models import PickupCoilScreenModel, sweep_bar_magnet


def create_field_plot(
    magnet: Magnet,
    extent: float = 400.0,
    grid_points: int = 41,
    ax: Optional[plt.Axes] = None
) -> plt.Figure:
    """
    Plot field magnitude and direction around a magnet.

    Args:
        magnet: Magnet to plot
        extent: Plot extent from -extent to +extent around the magnet
        grid_points: Resolution of the grid
        ax: Optional axes to plot on

    Returns:
        Figure object
    """
    cx, cy = magnet.position
    xs = np.linspace(cx - extent, cx + extent, grid_points)
    ys = np.linspace(cy - extent, cy + extent, grid_points)
    X, Y = np.meshgrid(xs, ys)

    B = magnet.get_field_vectors(np.column_stack([X.ravel(), Y.ravel()]))
    Bx = B[:, 0].reshape(X.shape)
    By = B[:, 1].reshape(X.shape)
    magnitude = np.hypot(Bx, By)

    if ax is None:
        fig, ax = plt.subplots(figsize=(10, 8))
    else:
        fig = ax.figure

    # Log scale, the field falls off over orders of magnitude
    magnitude_clipped = np.clip(magnitude, 0.1, None)
    im = ax.pcolormesh(X, Y, magnitude_clipped,
                       norm=plt.matplotlib.colors.LogNorm(vmin=0.1, vmax=max(magnet.strength, 1.0)),
                       cmap='viridis', shading='auto')
    plt.colorbar(im, ax=ax, label='Field Magnitude (G)')

    # unit vectors show direction only
    with np.errstate(invalid='ignore', divide='ignore'):
        U = np.where(magnitude > 0, Bx / magnitude, 0)
        V = np.where(magnitude > 0, By / magnitude, 0)
    ax.quiver(X, Y, U, V, color='white', alpha=0.6, scale=grid_points * 1.2)

    # magnet outline
    w, h = magnet.size
    outline = Rectangle((cx - w / 2, cy - h / 2), w, h, fill=False, edgecolor='red', linewidth=2,
                        transform=mtransforms.Affine2D().rotate_around(cx, cy, magnet.rotation) + ax.transData)
    ax.add_patch(outline)

    ax.set_xlabel('X')
    ax.set_ylabel('Y')
    ax.set_title(f'{type(magnet).__name__} field, strength {magnet.strength:.0f} G')
    ax.set_aspect('equal')
    ax.grid(True, alpha=0.3)

    return fig


def create_induction_plot(
    trace: Sequence[Dict[str, float]],
    axes: Optional[Sequence[plt.Axes]] = None
) -> plt.Figure:
    """
    Plot flux, EMF and indicator outputs recorded by sweep_bar_magnet.
    """
    if axes is None:
        fig, axes = plt.subplots(3, 1, figsize=(10, 10), sharex=True)
    else:
        fig = axes[0].figure

    x = [r['magnet_x'] for r in trace]

    axes[0].plot(x, [r['flux'] for r in trace], linewidth=2)
    axes[0].set_ylabel('Flux')
    axes[0].set_title('Bar magnet swept through the pickup coil')

    axes[1].plot(x, [r['emf'] for r in trace], linewidth=2, color='tab:red')
    axes[1].axhline(y=0, color='gray', linestyle='--', alpha=0.7)
    axes[1].set_ylabel('EMF')

    axes[2].plot(x, [r['brightness'] for r in trace], linewidth=2, label='Bulb brightness')
    axes[2].plot(x, [np.degrees(r['voltmeter_angle']) / 90 for r in trace], linewidth=2,
                 linestyle=':', label='Voltmeter / 90°')
    axes[2].set_ylabel('Indicator')
    axes[2].set_xlabel('Magnet X')
    axes[2].set_ylim([-1.1, 1.1])
    axes[2].legend()

    for ax in axes:
        ax.grid(True, alpha=0.3)

    return fig


def generate_visualizations(output_dir: str = 'images',
                            lab_config: Optional[LabConfig] = None,
                            speed: float = 10.0,
                            steps: int = 60) -> List[str]:
    """
    Render the bar magnet field and an induction sweep to PNG files.

    Returns:
        Paths of the saved files
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)
    saved_files = []

    model = PickupCoilScreenModel(lab_config or LabConfig())

    fig = create_field_plot(model.bar_magnet)
    filepath = output_path / 'bar_magnet_field.png'
    fig.savefig(filepath, dpi=150, bbox_inches='tight')
    plt.close(fig)
    saved_files.append(str(filepath))
    print(f"  Saved: {filepath}")

    start_x = model.pickup_coil.position[0] - speed * steps / 2
    trace = sweep_bar_magnet(model, speed, steps, start_x=start_x)
    fig = create_induction_plot(trace)
    filepath = output_path / 'induction_sweep.png'
    fig.savefig(filepath, dpi=150, bbox_inches='tight')
    plt.close(fig)
    saved_files.append(str(filepath))
    print(f"  Saved: {filepath}")

    print(f"\nGenerated {len(saved_files)} visualization files")
    return saved_files
