"""Static matplotlib reports: history charts and the population pyramid."""

from __future__ import annotations

import os
from typing import Sequence

import matplotlib
matplotlib.use("Agg")  # file output only
import matplotlib.pyplot as plt
import numpy as np

from chronicles.agents.person import Person
from chronicles.core.clock import format_year
from chronicles.simulation.metrics import HistoryPoint, age_pyramid, food_status


class Dashboard:
    """Renders simulation output to PNG files. Reads, never mutates."""

    @staticmethod
    def plot_pyramid(ax, people: Sequence[Person]) -> None:
        bins = age_pyramid(people)
        labels = [label for label, _, _ in bins]
        males = np.array([m for _, m, _ in bins])
        females = np.array([f for _, _, f in bins])
        y = np.arange(len(labels))

        ax.barh(y, -males, color="#3b6fb6", label="Male")
        ax.barh(y, females, color="#c2456e", label="Female")
        ax.set_yticks(y)
        ax.set_yticklabels(labels)
        limit = max(1, int(max(males.max(initial=0), females.max(initial=0))))
        ax.set_xlim(-limit * 1.1, limit * 1.1)
        ticks = ax.get_xticks()
        ax.set_xticks(ticks)
        ax.set_xticklabels([f"{abs(int(t))}" for t in ticks])
        ax.axvline(0, color="black", linewidth=0.8)
        ax.set_title("Population Pyramid")
        ax.legend(fontsize=8)
        ax.grid(True, axis="x", alpha=0.3)

    @staticmethod
    def summary_figure(history: Sequence[HistoryPoint], people: Sequence[Person], food: float):
        """2x2 overview: population, granary, births/deaths, pyramid."""
        fig, axes = plt.subplots(2, 2, figsize=(14, 9))
        title = "Chronicles"
        if history:
            title += f": {format_year(history[0].year)} to {format_year(history[-1].year)}"
        fig.suptitle(title, fontsize=15, fontweight="bold")

        years = [h.year for h in history]

        ax = axes[0, 0]
        ax.plot(years, [h.population for h in history], "b-", linewidth=2)
        ax.set_title("Population")
        ax.set_ylabel("People")
        ax.grid(True, alpha=0.3)

        ax = axes[0, 1]
        ax.plot(years, [h.food for h in history], "g-", linewidth=2)
        ax.set_title(f"Granary ({food_status(food, len(people))})")
        ax.set_ylabel("Food units")
        ax.grid(True, alpha=0.3)

        ax = axes[1, 0]
        ax.plot(years, [h.births for h in history], color="orange", linewidth=1.5, label="Births")
        ax.plot(years, [h.deaths for h in history], "r-", linewidth=1.5, label="Deaths")
        ax.plot(years, [h.marriages for h in history], "m-", linewidth=1, label="Marriages")
        ax.set_title("Births, Deaths & Marriages")
        ax.set_ylabel("Per year")
        ax.legend(fontsize=8)
        ax.grid(True, alpha=0.3)

        for ax in (axes[0, 0], axes[0, 1], axes[1, 0]):
            ax.set_xlabel("Year (negative = BC)")

        Dashboard.plot_pyramid(axes[1, 1], people)

        fig.tight_layout(rect=[0, 0, 1, 0.95])
        return fig

    @staticmethod
    def comprehensive_report(
        history: Sequence[HistoryPoint],
        people: Sequence[Person],
        food: float,
        output_dir: str,
    ) -> list[str]:
        """Generate all plots into the output directory. Returns written paths."""
        os.makedirs(output_dir, exist_ok=True)
        written: list[str] = []
        if not history:
            return written

        years = [h.year for h in history]

        fig, ax = plt.subplots(figsize=(10, 5))
        ax.plot(years, [h.population for h in history])
        ax.set_title("Population Over Time")
        ax.set_xlabel("Year")
        ax.set_ylabel("Population")
        ax.grid(True, alpha=0.3)
        written.append(os.path.join(output_dir, "population.png"))
        fig.savefig(written[-1], dpi=150)
        plt.close(fig)

        fig, ax = plt.subplots(figsize=(10, 5))
        ax.plot(years, [h.food for h in history], "g-")
        ax.set_title("Granary Over Time")
        ax.set_xlabel("Year")
        ax.set_ylabel("Food Units")
        ax.grid(True, alpha=0.3)
        written.append(os.path.join(output_dir, "food.png"))
        fig.savefig(written[-1], dpi=150)
        plt.close(fig)

        fig, ax = plt.subplots(figsize=(7, 6))
        Dashboard.plot_pyramid(ax, people)
        written.append(os.path.join(output_dir, "pyramid.png"))
        fig.savefig(written[-1], dpi=150)
        plt.close(fig)

        fig = Dashboard.summary_figure(history, people, food)
        written.append(os.path.join(output_dir, "summary_dashboard.png"))
        fig.savefig(written[-1], dpi=150, bbox_inches="tight")
        plt.close(fig)

        return written
