"""Request bodies of the urban planning analyses."""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

GreenSpaceAnalysisType = Literal[
    "Green Space Coverage Assessment",
    "Urban Heat Island Mapping",
    "Tree Canopy Analysis",
    "Heat Mitigation Planning",
    "Vegetation Health Monitoring",
]

VegetationIndex = Literal["NDVI", "EVI", "SAVI", "NDWI"]

SeasonalComparison = Literal[
    "Summer vs Winter", "Wet vs Dry Season", "Annual Trend", "Monthly Variation"
]

HeatMitigationStrategy = Literal[
    "Tree Planting", "Green Roofs", "Urban Parks", "Cool Pavements", "Shade Structures"
]

InfrastructureAnalysisType = Literal[
    "Flyover and Bridge Requirements",
    "Traffic Congestion Hotspots",
    "Public Transport Accessibility",
    "Road Network Density",
    "Infrastructure Gap Analysis",
]

InfrastructureType = Literal[
    "Roads and Highways",
    "Public Transportation",
    "Pedestrian Infrastructure",
    "Parking Facilities",
    "Traffic Management Systems",
]


class RoiPolygon(BaseModel):
    """A GeoJSON polygon drawn by the user."""

    type: str
    coordinates: List[List[List[float]]]


class GreenSpaceAnalysisRequest(BaseModel):
    analysis_type: GreenSpaceAnalysisType = Field(..., alias="analysisType")
    vegetation_index: Optional[VegetationIndex] = Field(None, alias="vegetationIndex")
    seasonal_comparison: Optional[SeasonalComparison] = Field(None, alias="seasonalComparison")
    heat_mitigation_strategy: Optional[HeatMitigationStrategy] = Field(
        None, alias="heatMitigationStrategy"
    )
    selected_roi_geometry: RoiPolygon = Field(..., alias="selectedRoiGeometry")

    model_config = ConfigDict(populate_by_name=True)


class InfrastructureThresholds(BaseModel):
    congestion_level: Optional[float] = Field(None, alias="congestionLevel")
    population_density: Optional[float] = Field(None, alias="populationDensity")
    accessibility_radius: Optional[float] = Field(None, alias="accessibilityRadius")

    model_config = ConfigDict(populate_by_name=True)


class InfrastructureAnalysisRequest(BaseModel):
    analysis_type: InfrastructureAnalysisType = Field(..., alias="analysisType")
    infrastructure_type: InfrastructureType = Field(..., alias="infrastructureType")
    traffic_data_year: Optional[str] = Field(None, alias="trafficDataYear")
    population_data_year: Optional[str] = Field(None, alias="populationDataYear")
    selected_roi_geometry: RoiPolygon = Field(..., alias="selectedRoiGeometry")
    thresholds: Optional[InfrastructureThresholds] = None

    model_config = ConfigDict(populate_by_name=True)
