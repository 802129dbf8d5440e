"""Map an analysis function type to the charts the client should render."""

from enum import Enum
from typing import Dict


class ChartType(str, Enum):
    BAR_CHART_NUMERICAL = "barChartNumerical"
    DUAL_BAR_CHART_NUMERICAL = "dualBarChartNumerical"
    BAR_CHART_PERCENTAGE = "barChartPercentage"
    BAR_CHART_STATS = "barChartStats"
    STACKED_BAR_CHART_STATS = "stackedBarChartStats"
    STACKED_PERCENTAGE_BAR_CHART_STATS = "stackedPercentageBarChartStats"
    STACKED_BAR_CHART_FOR_LANDCOVER_CHANGE_MAPS = "stackedBarChartForLandcoverChangeMaps"
    COMBINED_STACKED_BAR_CHART_STATS = "combinedStackedBarChartStats"
    LINE_CHART = "lineChart"
    TIME_SERIES = "timeSeries"
    DUAL_TIME_SERIES = "dualTimeSeriesChart"
    BOXPLOT_TIMESERIES = "boxplotTimeseries"
    BUBBLE_CHART = "bubbleChart"
    SCATTER_PLOT = "scatterPlot"
    BOX_PLOT = "boxPlot"
    HISTOGRAM = "histogram"
    VIOLIN_PLOT = "violinPlot"
    HEATMAP = "heatmap"
    RADAR_CHART = "radarChart"
    STACKED_BAR_CHART = "stackedBarChart"
    PARALLEL_COORDINATES_PLOT = "parallelCoordinatesPlot"
    PIE_CHART = "pieChart"
    PIE_CHART_PERCENTAGE = "pieChartPercentage"


# Stats panel rendered by the dedicated Flask analysis chart component
FLASK_API_CHARTS = "flaskAPICharts"

_EMISSIONS = {
    "statsChart": ChartType.BAR_CHART_STATS.value,
    "queryChart": ChartType.BAR_CHART_NUMERICAL.value,
    "unit": "mol/m²",
}

_AIR_POLLUTION = {
    "statsChart": ChartType.COMBINED_STACKED_BAR_CHART_STATS.value,
    "queryChart": ChartType.DUAL_BAR_CHART_NUMERICAL.value,
    "customTimeseriesChart": ChartType.DUAL_TIME_SERIES.value,
    "unit": "%",
}

_URBAN_INTELLIGENCE = {
    "statsChart": FLASK_API_CHARTS,
    "queryChart": ChartType.STACKED_BAR_CHART_STATS.value,
    "customChart": ChartType.BUBBLE_CHART.value,
    "unit": "score",
}

CHART_CONFIGS: Dict[str, Dict[str, str]] = {
    "Land Use/Land Cover Maps": {
        "statsChart": ChartType.PIE_CHART_PERCENTAGE.value,
        "queryChart": ChartType.BAR_CHART_PERCENTAGE.value,
    },
    "CO Emissions Analysis": _EMISSIONS,
    "CH4 Emissions Analysis": _EMISSIONS,
    "NO2 Emissions Analysis": _EMISSIONS,
    "PM2.5 Analysis": _EMISSIONS,
    "Vulnerability Assessment": _EMISSIONS,
    "Urban Heat Island (UHI) Analysis": {
        "statsChart": ChartType.BOXPLOT_TIMESERIES.value,
        "queryChart": ChartType.BAR_CHART_NUMERICAL.value,
        "customTimeseriesChart": ChartType.TIME_SERIES.value,
        "unit": "°C",
    },
    # The misspelling is the name older clients send
    "Air Pollutation Analysis": _AIR_POLLUTION,
    "Air Pollution Analysis": _AIR_POLLUTION,
    "Land Use/Land Cover Change Maps": {
        "statsChart": ChartType.STACKED_BAR_CHART_FOR_LANDCOVER_CHANGE_MAPS.value,
        "queryChart": ChartType.STACKED_BAR_CHART_FOR_LANDCOVER_CHANGE_MAPS.value,
    },
    "Comprehensive Urban Analysis": _URBAN_INTELLIGENCE,
    "Urban Planning Intelligence": _URBAN_INTELLIGENCE,
    "Infrastructure Analysis": {
        "statsChart": FLASK_API_CHARTS,
        "queryChart": ChartType.BAR_CHART_NUMERICAL.value,
        "customChart": ChartType.HEATMAP.value,
        "unit": "count",
    },
    "Demographic Analysis": {
        "statsChart": FLASK_API_CHARTS,
        "queryChart": ChartType.LINE_CHART.value,
        "customChart": ChartType.BUBBLE_CHART.value,
        "unit": "people/km²",
    },
    "Real-time Urban Data": {
        "statsChart": FLASK_API_CHARTS,
        "queryChart": ChartType.BAR_CHART_PERCENTAGE.value,
        "customChart": ChartType.PIE_CHART_PERCENTAGE.value,
        "unit": "%",
    },
}

DEFAULT_CHART_CONFIG = {
    "statsChart": ChartType.LINE_CHART.value,
    "queryChart": ChartType.LINE_CHART.value,
}


def select_chart_type(function_type: str) -> Dict[str, str]:
    # Copy so callers can't mutate the shared table
    return dict(CHART_CONFIGS.get(function_type, DEFAULT_CHART_CONFIG))
