import base64
import binascii
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Sentinel values returned by / sent to the models
UNKNOWN_PLANT = "unknown"
NO_DISEASE = "No disease detected"


class ImagePayload(BaseModel):
    """Encoded image handed to the detection stage (bytes + declared MIME type)"""
    model_config = ConfigDict(frozen=True)

    data: bytes
    mime_type: str

    @field_validator("data")
    @classmethod
    def check_not_empty(cls, value: bytes) -> bytes:
        if not value:
            raise ValueError("image payload is empty")
        return value

    @field_validator("mime_type")
    @classmethod
    def check_image_mime(cls, value: str) -> str:
        if not value.startswith("image/"):
            raise ValueError(f"not an image MIME type: {value}")
        return value

    def to_data_uri(self) -> str:
        encoded = base64.b64encode(self.data).decode("utf-8")
        return f"data:{self.mime_type};base64,{encoded}"

    @classmethod
    def from_data_uri(cls, uri: str) -> "ImagePayload":
        if not uri.startswith("data:") or ";base64," not in uri:
            raise ValueError("not a base64 data URI")
        header, encoded = uri[5:].split(";base64,", 1)
        try:
            data = base64.b64decode(encoded, validate=True)
        except binascii.Error as e:
            raise ValueError(f"invalid base64 payload: {e}") from e
        return cls(data=data, mime_type=header)


class DetectionResult(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    plant_name: str = Field(alias="plantName")
    disease: str
    confidence: float = Field(ge=0.0, le=1.0)

    @property
    def is_unknown_plant(self) -> bool:
        name = (self.plant_name or "").strip()
        return not name or name.lower() == UNKNOWN_PLANT


class RemedyResult(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    possible_causes: List[str] = Field(default_factory=list, alias="possibleCauses")
    remedies: List[str] = Field(default_factory=list)
    supplements: Optional[List[str]] = None


class AnalysisRecord(BaseModel):
    """One history entry: a detection merged with its remedy advice"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    image: Optional[str] = None  # data URI snapshot
    plant_name: Optional[str] = Field(default=None, alias="plantName")
    disease: Optional[str] = None
    confidence: Optional[float] = None
    causes: Optional[List[str]] = None
    remedies: Optional[List[str]] = None
    supplements: Optional[List[str]] = None


class Notification(BaseModel):
    """Toast shown by the client"""
    variant: Literal["default", "destructive"] = "default"
    title: str
    description: str = ""


class PipelineStateView(BaseModel):
    status: str
    run_id: int
    image: Optional[str] = None
    plant_name: Optional[str] = None
    disease: Optional[str] = None
    no_disease: bool = False
    confidence: Optional[float] = None
    causes: Optional[List[str]] = None
    remedies: Optional[List[str]] = None
    supplements: Optional[List[str]] = None
    error: Optional[str] = None
