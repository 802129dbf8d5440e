"""Request body of the geospatial analysis dispatcher."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class GeospatialAnalysisRequest(BaseModel):
    function_type: str = Field(..., alias="functionType", description="Analysis to run")
    start_date1: str = Field(..., alias="startDate1")
    end_date1: str = Field(..., alias="endDate1")
    start_date2: Optional[str] = Field(None, alias="startDate2")
    end_date2: Optional[str] = Field(None, alias="endDate2")
    aggregation_method: Optional[str] = Field(None, alias="aggregationMethod")
    layer_name: Optional[str] = Field(None, alias="layerName")
    title: Optional[str] = None
    selected_roi_geometry: Optional[Any] = Field(
        None, alias="selectedRoiGeometry", description="GeoJSON ROI drawn or imported by the user"
    )
    city_name: Optional[str] = Field(None, alias="cityName")
    experimental: bool = False

    model_config = ConfigDict(populate_by_name=True)

    def echo(self) -> Dict[str, Any]:
        """Request fields returned alongside the analysis result."""
        return {
            "functionType": self.function_type,
            "startDate1": self.start_date1,
            "endDate1": self.end_date1,
            "startDate2": self.start_date2,
            "endDate2": self.end_date2,
            "aggregationMethod": self.aggregation_method,
            "layerName": self.layer_name,
            "title": self.title,
        }
