"""
Comparison charts of EU vs US indicators against the S&P 500.

Renders three PNGs (inflation, gdp, debt). Each plots one EU series, one US
series and a scaled S&P 500 reference line over the sorted quarter axis, so
the three lines share one y-axis.

Uses matplotlib's non-interactive Agg backend; nothing is displayed.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend
import matplotlib.pyplot as plt
import pandas as pd

from quarterly_macro.data.schemas import validate_wide_table_schema


logger = logging.getLogger(__name__)

GRAPH_DIR = Path("graph")


@dataclass(frozen=True)
class ChartConfig:
    """
    One chart: two region metrics plus a reference series.

    Attributes:
        eu_column / eu_label: EU series column and legend label.
        us_column / us_label: US series column and legend label.
        reference_column / reference_label: S&P 500 (derived) column and label.
        file_name: Output file stem (written as <file_name>.png).
        caption: Chart title.
    """
    eu_column: str
    eu_label: str
    us_column: str
    us_label: str
    reference_column: str
    reference_label: str
    file_name: str
    caption: str


CHART_CONFIGS: List[ChartConfig] = [
    ChartConfig(
        eu_column="eu_inflation_perc",
        eu_label="EU Inflation in %",
        us_column="us_inflation_perc",
        us_label="US Inflation in %",
        reference_column="sp500_usd_in_thousands",
        reference_label="S&P 500 in thousands",
        file_name="inflation",
        caption="Inflation comparison EU vs USA",
    ),
    ChartConfig(
        eu_column="eu_gdp_usd_billions",
        eu_label="EU GDP in billions USD",
        us_column="us_gdp_usd_billions",
        us_label="US GDP in billions USD",
        reference_column="sp500_usd",
        reference_label="S&P 500",
        file_name="gdp",
        caption="GDP comparison EU vs USA",
    ),
    ChartConfig(
        eu_column="eu_government_debt_usd_millions",
        eu_label="EU Government debt in millions USD",
        us_column="us_total_debt_usd_millions",
        us_label="US Debt in millions USD",
        reference_column="sp500_usd_mult_by_ten_thousand",
        reference_label="S&P 500 multiplied by 10'000",
        file_name="debt",
        caption="Debt comparison EU vs USA",
    ),
]


def add_derived_chart_columns(wide: pd.DataFrame) -> pd.DataFrame:
    """
    Add the rescaled columns the charts plot, returning a new frame.

    S&P 500 is rescaled so it sits in the same range as each comparison pair;
    EU GDP is converted from millions to billions to match US GDP.
    """
    chart_data = wide.copy()
    chart_data["sp500_usd_in_thousands"] = chart_data["sp500_usd"] / 1000
    chart_data["sp500_usd_mult_by_ten_thousand"] = chart_data["sp500_usd"] * 10000
    chart_data["eu_gdp_usd_billions"] = chart_data["eu_gdp_usd_millions"] / 1000
    return chart_data.sort_values("quarter").reset_index(drop=True)


def render_chart(chart_data: pd.DataFrame, config: ChartConfig, output_dir: Path | str) -> Path:
    """Render one chart to <output_dir>/graph/<file_name>.png and return the path."""
    graph_dir = Path(output_dir) / GRAPH_DIR
    graph_dir.mkdir(parents=True, exist_ok=True)
    plot_path = graph_dir / f"{config.file_name}.png"

    quarters = chart_data["quarter"].tolist()
    x = range(len(quarters))

    fig, ax = plt.subplots(figsize=(20, 15))
    try:
        ax.plot(x, chart_data[config.reference_column], label=config.reference_label,
                color="#006600", linewidth=2)
        ax.plot(x, chart_data[config.eu_column], label=config.eu_label,
                color="#0000cc", linewidth=2)
        ax.plot(x, chart_data[config.us_column], label=config.us_label,
                color="#cc0000", linewidth=2)

        # 10% vertical padding around all plotted values
        values = pd.concat([
            chart_data[config.reference_column],
            chart_data[config.eu_column],
            chart_data[config.us_column],
        ])
        y_min, y_max = float(values.min()), float(values.max())
        padding = (y_max - y_min) * 0.1 or 1.0
        ax.set_ylim(y_min - padding, y_max + padding)

        ax.set_xticks(list(x))
        ax.set_xticklabels(quarters, rotation=90)
        ax.set_xlabel("Quarter")
        ax.set_ylabel("Value")
        ax.set_title(config.caption, fontsize=24)
        ax.legend(loc="upper left", fontsize=16, framealpha=0.8, edgecolor="black")
        ax.grid(True, alpha=0.3)

        fig.tight_layout()
        fig.savefig(plot_path, dpi=100)
    finally:
        plt.close(fig)

    logger.info("Plot saved as %s", plot_path)
    return plot_path


def generate_charts(wide: pd.DataFrame, output_dir: Path | str) -> List[Path]:
    """
    Render all three comparison charts.

    Args:
        wide: Wide table (validated against the output contract).
        output_dir: Root output directory; charts go to <output_dir>/graph/.

    Returns:
        Paths of the written PNG files, in CHART_CONFIGS order.
    """
    validate_wide_table_schema(wide, context="chart input")
    chart_data = add_derived_chart_columns(wide)
    return [render_chart(chart_data, config, output_dir) for config in CHART_CONFIGS]
