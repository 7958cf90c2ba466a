"""
Pydantic request/response schemas for the intake session API.
"""

from typing import List, Optional
from pydantic import BaseModel, Field


class PickerAsset(BaseModel):
    """One file from an asset-style picker result."""
    uri: str
    name: Optional[str] = None
    mimeType: Optional[str] = None


class FilePickRequest(BaseModel):
    """
    Document-picker result as produced by the browser. Either the legacy
    shape (type/uri/name/mimeType) or the asset shape (canceled/assets).
    """
    type: Optional[str] = Field(None, description="'success' or 'cancel' (legacy shape)")
    uri: Optional[str] = None
    name: Optional[str] = None
    mimeType: Optional[str] = None
    canceled: Optional[bool] = Field(None, description="Asset shape: user dismissed the dialog")
    assets: Optional[List[PickerAsset]] = None

    model_config = {"json_schema_extra": {
        "examples": [
            {"type": "success", "uri": "blob:https://app/1f2e", "name": "soil_report.pdf",
             "mimeType": "application/pdf"},
            {"canceled": False, "assets": [{"uri": "blob:https://app/1f2e", "name": "soil_report.pdf"}]},
        ]
    }}


class CropSelectionRequest(BaseModel):
    crop_type: str = Field(..., description="One of the values listed by GET /crops")


class LocationReport(BaseModel):
    """Outcome of navigator.geolocation.getCurrentPosition in the browser."""
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    error_code: Optional[int] = Field(
        None, description="GeolocationPositionError code: 1 denied, 2 unavailable, 3 timeout",
    )
    message: Optional[str] = None

    model_config = {"json_schema_extra": {
        "examples": [
            {"latitude": 12.9716, "longitude": 77.5946},
            {"error_code": 1, "message": "User denied Geolocation"},
        ]
    }}


class FileDescriptorModel(BaseModel):
    uri: str
    display_name: str
    mime_type: Optional[str] = None


class LocationModel(BaseModel):
    status: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    message: Optional[str] = None
    attempt: int = 0


class ReviewModel(BaseModel):
    file_line: str
    crop_line: str
    location_line: str
    location_status: str
    map_url: Optional[str] = None
    is_complete: bool
    review_visible: bool


class NoticeModel(BaseModel):
    kind: str
    message: str


class SessionResponse(BaseModel):
    """Current session snapshot, its review rendering and fresh notices."""
    selected_file: Optional[FileDescriptorModel] = None
    crop_type: Optional[str] = None
    location: LocationModel
    review_visible: bool
    is_complete: bool
    review: ReviewModel
    notices: List[NoticeModel] = []


class LocationAttemptResponse(BaseModel):
    attempt: int
    status: str


class FileOpenResponse(BaseModel):
    uri: str


class CropCatalogResponse(BaseModel):
    crops: List[str]


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    platform: str
    version: str
