"""Diagramme hémicycle d'un conseil (municipal ou communautaire).

Affiche la composition en sièges sous forme de demi-cercle,
avec le seuil de majorité absolue.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import matplotlib.pyplot as plt
import matplotlib.patches as mpatches

from municipales.engine.allocation import SeatAllocation

DEFAULT_COLOR = "#999999"


def _seat_positions(n_seats: int, n_rows: int = 4) -> List[Tuple[float, float]]:
    """Calcule les positions (x, y) de chaque siège en demi-cercle.

    Les sièges sont disposés en arcs concentriques de rayon croissant,
    de gauche à droite sur chaque arc.
    """
    if n_seats <= 0:
        return []
    n_rows = max(1, min(n_rows, n_seats))
    r_min, r_max = 1.5, 4.0
    radii = [r_min + (r_max - r_min) * i / max(1, n_rows - 1) for i in range(n_rows)]

    # Sièges par rangée proportionnels au rayon
    total_r = sum(radii)
    seats_per_row = [max(1, int(n_seats * r / total_r)) for r in radii]
    seats_per_row[-1] = max(1, seats_per_row[-1] + n_seats - sum(seats_per_row))

    positions = []
    for r, n_in_row in zip(radii, seats_per_row):
        for j in range(n_in_row):
            angle = np.pi * (1 - j / (n_in_row - 1)) if n_in_row > 1 else np.pi / 2
            positions.append((r * np.cos(angle), r * np.sin(angle), angle))

    # Remplissage par angle décroissant : chaque liste occupe un secteur
    positions.sort(key=lambda p: -p[2])
    return [(x, y) for x, y, _ in positions[:n_seats]]


def majority_threshold(total_seats: int) -> int:
    """Majorité absolue du conseil."""
    return total_seats // 2 + 1


def plot_hemicycle(
    allocations: Sequence[SeatAllocation],
    colors: Optional[Dict[str, str]] = None,
    title: str = "Conseil municipal",
    figsize: Tuple[int, int] = (10, 6),
    show_majority_line: bool = True,
    ax: Optional[plt.Axes] = None,
) -> plt.Figure:
    """Dessine un diagramme hémicycle.

    Args:
        allocations: sièges par liste (sortie du moteur de répartition).
        colors: couleurs des listes (dict list_id → couleur hex).
        title: titre du graphique.
        figsize: taille de la figure.
        show_majority_line: afficher le seuil de majorité.
        ax: axes matplotlib (crée une figure si None).

    Returns:
        Figure matplotlib.
    """
    if ax is None:
        fig, ax = plt.subplots(1, 1, figsize=figsize)
    else:
        fig = ax.get_figure()

    colors = colors or {}
    seated = [a for a in allocations if a.total_seats > 0]
    total = sum(a.total_seats for a in seated)
    positions = _seat_positions(total)

    idx = 0
    for alloc in seated:
        color = colors.get(alloc.list_id) or DEFAULT_COLOR
        for _ in range(alloc.total_seats):
            x, y = positions[idx]
            ax.scatter(x, y, c=color, s=120, edgecolors="white", linewidth=0.5, zorder=3)
            idx += 1

    if show_majority_line and total > 0:
        ax.axhline(y=0, color="black", linewidth=1.5, zorder=1)
        ax.text(0, -0.3, f"Majorité : {majority_threshold(total)} sièges",
                ha="center", va="top", fontsize=10, style="italic")

    legend_patches = [
        mpatches.Patch(
            color=colors.get(a.list_id) or DEFAULT_COLOR,
            label=f"{a.name or a.list_id} ({a.total_seats})",
        )
        for a in seated
    ]
    if legend_patches:
        ax.legend(
            handles=legend_patches,
            loc="lower center",
            bbox_to_anchor=(0.5, -0.15),
            ncol=min(4, len(legend_patches)),
            fontsize=8,
        )

    ax.set_title(f"{title} — {total} sièges", fontsize=14, fontweight="bold")
    ax.set_xlim(-5, 5)
    ax.set_ylim(-0.8, 5)
    ax.set_aspect("equal")
    ax.axis("off")

    fig.tight_layout()
    return fig
