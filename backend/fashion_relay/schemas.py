"""
Pydantic schemas for request/response validation
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Any
from enum import Enum

# ===== Inference API Schemas =====

class PredictionStatus(str, Enum):
    STARTING = "starting"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"

PENDING_STATUSES = (PredictionStatus.STARTING.value, PredictionStatus.PROCESSING.value)

class Prediction(BaseModel):
    """A job on the inference service. Only the service mutates it."""
    model_config = ConfigDict(extra="ignore")

    id: str
    model: Optional[str] = None
    input: Optional[dict] = None
    # Kept as a plain string: the poller decides what an unexpected value means.
    status: Optional[str] = None
    output: Any = None
    error: Any = None

# ===== Common Schemas =====

class EnvCheck(BaseModel):
    replicate_token: bool
    model_id: str
    prompt_template: bool

class HealthResponse(BaseModel):
    status: str
    timestamp: str
    env_check: EnvCheck

class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    code: str

# ===== Design Request Schemas =====

class DetailedFeatures(BaseModel):
    fabric: Optional[str] = None
    pattern: Optional[str] = None
    shoulders: Optional[str] = None
    sleeves: Optional[str] = None
    neckline: Optional[str] = None
    collar: Optional[str] = None
    waist: Optional[str] = None
    length: Optional[str] = None
    fit: Optional[str] = None
    embellishments: Optional[str] = None
    closure: Optional[str] = None
    pockets: Optional[str] = None
    backDetail: Optional[str] = None
    hemStyle: Optional[str] = None

class SketchRequest(BaseModel):
    prompt: Optional[str] = None
    editInstruction: Optional[str] = None
    garmentType: Optional[str] = None
    gender: Optional[str] = None
    detailedFeatures: Optional[DetailedFeatures] = None
    previousSketchUrl: Optional[str] = None
    uploadedImageUrl: Optional[str] = None
    uploadedLogoUrl: Optional[str] = None
    useUploadedImage: Optional[bool] = False
    designHistory: Optional[List[str]] = None
    sketchSvg: Optional[str] = None

    @property
    def base_image_url(self) -> Optional[str]:
        """Image being refined; None means a fresh sketch."""
        if self.useUploadedImage and self.uploadedImageUrl:
            return self.uploadedImageUrl
        return self.previousSketchUrl or None

class ColorRequest(BaseModel):
    sketchUrl: Optional[str] = None
    colors: Optional[List[str]] = None
    prompt: Optional[str] = None
    previousColoredUrl: Optional[str] = None

class ModelPhotoRequest(BaseModel):
    designUrl: Optional[str] = None
    modelType: str = "diverse fashion model"
    pose: str = "standing"

class AnglesRequest(BaseModel):
    modelPhotoUrl: Optional[str] = None
    garmentType: Optional[str] = None
    detailedFeatures: Optional[DetailedFeatures] = None

class RampWalkRequest(BaseModel):
    modelPhotoUrl: Optional[str] = None
    walkStyle: str = "confident ramp walk"

# ===== Design Response Schemas =====

class ImageResponse(BaseModel):
    imageUrl: str
    success: bool = True
    step: str

class AngleView(BaseModel):
    angle: str
    imageUrl: str

class AnglesResponse(BaseModel):
    imageUrl: str
    allViews: List[AngleView]
    success: bool = True
    step: str = "angles"
    model: str = "nano-banana"
    viewCount: int = Field(ge=1)

class VideoResponse(BaseModel):
    videoUrl: str
    success: bool = True
    step: str = "ramp-walk"
