from typing import Optional

from pydantic import BaseModel, Field


class Chat(BaseModel):
    id: str
    title: str


class GeeDataset(BaseModel):
    id: int
    dataset_id: str = Field(..., description="Earth Engine asset id, e.g. GOOGLE/DYNAMICWORLD/V1")
    asset_url: str = Field(..., description="Catalog page for the dataset")
    type: str = Field(..., description="Earth Engine asset type")
    start_date: str
    end_date: Optional[str] = None
    title: str
    rank: float
