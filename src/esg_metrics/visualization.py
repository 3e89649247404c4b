import os
import logging
from typing import Optional

import matplotlib.pyplot as plt
import pandas as pd

from .constants import CATEGORIES
from .models import CO2EquivalenceResult

logger = logging.getLogger(__name__)

# ============================================================================
# VISUALIZER CLASS
# ============================================================================


class Visualizer:
    def __init__(self, output_dir: str):
        """
        output_dir: directory where PNG charts are written (created if missing).
        """
        self.output_dir = output_dir
        os.makedirs(self.output_dir, exist_ok=True)
        self._setup_style()

    def _setup_style(self):
        """Configure matplotlib for clean report charts."""
        plt.rcParams.update(plt.rcParamsDefault)
        plt.rcParams.update({
            'font.family': 'sans-serif',
            'font.sans-serif': ['Arial', 'Helvetica', 'Calibri', 'DejaVu Sans'],
            'font.size': 12,
            'axes.titlesize': 16,
            'axes.titleweight': 'bold',
            'axes.labelsize': 13,
            'text.color': '#2C3E50',
            'axes.labelcolor': '#2C3E50',
            'xtick.color': '#2C3E50',
            'ytick.color': '#2C3E50',
            'axes.spines.top': False,
            'axes.spines.right': False,
            'grid.color': '#E0E0E0',
            'grid.linestyle': ':',
            'axes.grid': True,
            'axes.grid.axis': 'y',
            'axes.axisbelow': True
        })

        self.colors = {
            'negligible': '#81C784',   # Light Green
            'moderate': '#FFB74D',     # Amber
            'critical': '#D32F2F',     # Dark Red
            'neutral': '#5D6D7E',      # Slate
            'text': '#2C3E50',
        }

    def get_save_path(self, filename: str) -> str:
        return os.path.join(self.output_dir, filename)

    def plot_category_distribution(self, report_df: pd.DataFrame, title: str = "") -> Optional[str]:
        """
        Stacked bars of assessed aspects per category, split into significant
        and not significant. Expects the formatted batch report columns.
        """
        scored = report_df[report_df["Category"].isin(CATEGORIES)]
        if scored.empty:
            logger.warning("No scored rows to plot.")
            return None

        significant = [
            int(((scored["Category"] == cat) & (scored["Significance"] == "significant")).sum())
            for cat in CATEGORIES
        ]
        not_significant = [
            int(((scored["Category"] == cat) & (scored["Significance"] == "not_significant")).sum())
            for cat in CATEGORIES
        ]

        fig, ax = plt.subplots(figsize=(9, 6), dpi=150)
        labels = [c.capitalize() for c in CATEGORIES]
        ax.bar(labels, not_significant, color=self.colors['neutral'], alpha=0.5, width=0.6, label="Not significant")
        bars = ax.bar(labels, significant, bottom=not_significant,
                      color=[self.colors[c] for c in CATEGORIES], width=0.6, label="Significant")

        for bar, base, sig in zip(bars, not_significant, significant):
            total = base + sig
            if total > 0:
                ax.text(bar.get_x() + bar.get_width() / 2., total, f'{total}',
                        ha='center', va='bottom', fontsize=11, fontweight='bold', color=self.colors['text'])

        ax.set_ylabel("Aspects / impacts", fontweight='bold')
        ax.set_title(title or "Environmental Aspects by Category", pad=20, loc='left')
        ax.legend(frameon=False)
        plt.tight_layout()

        filepath = self.get_save_path("category_distribution.png")
        plt.savefig(filepath, dpi=150, bbox_inches='tight')
        plt.close(fig)
        logger.info(f"   [Plot] Saved category distribution to: {filepath}")
        return filepath

    def plot_co2e_breakdown(self, result: CO2EquivalenceResult, name: str = "factor") -> Optional[str]:
        """Bar chart of per-gas CO2e contributions for one factor set."""
        if not result.per_gas_breakdown:
            return None

        gases = [c.gas for c in result.per_gas_breakdown]
        values = [c.contribution_co2e for c in result.per_gas_breakdown]

        fig, ax = plt.subplots(figsize=(8, 5), dpi=150)
        bars = ax.bar(gases, values, color=self.colors['neutral'], alpha=0.85, width=0.5)
        ax.set_ylabel("kgCO2e per unit", fontweight='bold')
        ax.set_title(f"CO2e Breakdown: {name}\n{result.methodology_label}", pad=20, loc='left')

        peak = max(values)
        for bar in bars:
            height = bar.get_height()
            if height > 0:
                ax.text(bar.get_x() + bar.get_width() / 2., height + peak * 0.01, f'{height:g}',
                        ha='center', va='bottom', fontsize=10, color=self.colors['text'])

        plt.tight_layout()
        safe_name = name.replace(" ", "_").lower()
        filepath = self.get_save_path(f"co2e_breakdown_{safe_name}.png")
        plt.savefig(filepath, dpi=150, bbox_inches='tight')
        plt.close(fig)
        logger.info(f"   [Plot] Saved CO2e breakdown to: {filepath}")
        return filepath
