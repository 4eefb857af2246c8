"""
Design pipeline routes - sketch, colors, model photo, angles, ramp walk
"""
from fastapi import APIRouter, Depends
from datetime import datetime, timezone

from ..config import Settings, get_settings
from ..exceptions import ConfigurationError, FashionRelayError, GenerationFailedError, MissingFieldError
from ..inference.replicate_client import ReplicateClient
from ..logger import logger
from ..schemas import (
    AnglesRequest,
    AnglesResponse,
    ColorRequest,
    EnvCheck,
    HealthResponse,
    ImageResponse,
    ModelPhotoRequest,
    RampWalkRequest,
    SketchRequest,
    VideoResponse,
)
from ..services import generation

router = APIRouter(prefix="/api", tags=["Design"])


def get_inference_client(settings: Settings = Depends(get_settings)) -> ReplicateClient:
    return ReplicateClient(settings)


def _require(value, message: str) -> None:
    if not value:
        raise MissingFieldError(message)


def _require_token(settings: Settings) -> None:
    if not settings.REPLICATE_API_TOKEN:
        raise ConfigurationError()


@router.get("/health", response_model=HealthResponse)
async def health_check(settings: Settings = Depends(get_settings)):
    """Liveness plus which configuration keys are present"""
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        env_check=EnvCheck(
            replicate_token=bool(settings.REPLICATE_API_TOKEN),
            model_id=settings.MODEL_ID or "using default",
            prompt_template=bool(settings.PROMPT_TEMPLATE),
        ),
    )


@router.post("/generate-sketch", response_model=ImageResponse)
async def generate_sketch(
    payload: SketchRequest,
    settings: Settings = Depends(get_settings),
    client: ReplicateClient = Depends(get_inference_client),
):
    """
    Generate a new design sketch, or micro-edit the previous one when a base
    image (previous sketch or uploaded image) is supplied.
    """
    _require(payload.prompt, "Prompt is required")
    _require_token(settings)

    try:
        image_url = await generation.generate_sketch(client, settings.image_model, payload)
    except FashionRelayError as e:
        logger.error(f"Error generating sketch: {e.message}")
        raise GenerationFailedError("Generation failed", e) from e

    logger.info(f"Sketch generated successfully: {image_url}")
    return ImageResponse(imageUrl=image_url, step="sketch")


@router.post("/add-colors", response_model=ImageResponse)
async def add_colors(
    payload: ColorRequest,
    settings: Settings = Depends(get_settings),
    client: ReplicateClient = Depends(get_inference_client),
):
    _require(payload.sketchUrl, "Sketch URL is required")

    try:
        image_url = await generation.add_colors(client, settings.image_model, payload)
    except FashionRelayError as e:
        logger.error(f"Error adding colors: {e.message}")
        raise GenerationFailedError("Color generation failed", e) from e

    return ImageResponse(imageUrl=image_url, step="colored")


@router.post("/generate-model", response_model=ImageResponse)
async def generate_model(
    payload: ModelPhotoRequest,
    settings: Settings = Depends(get_settings),
    client: ReplicateClient = Depends(get_inference_client),
):
    """Photograph a model wearing the exact colored design"""
    _require(payload.designUrl, "Design URL is required")

    try:
        image_url = await generation.generate_model_photo(client, settings.image_model, payload)
    except FashionRelayError as e:
        logger.error(f"Error generating model photo: {e.message}")
        raise GenerationFailedError("Model generation failed", e) from e

    return ImageResponse(imageUrl=image_url, step="model")


@router.post("/generate-angles", response_model=AnglesResponse)
async def generate_angles(
    payload: AnglesRequest,
    settings: Settings = Depends(get_settings),
    client: ReplicateClient = Depends(get_inference_client),
):
    _require(payload.modelPhotoUrl, "Model photo URL is required")

    try:
        views = await generation.generate_angles(client, settings.image_model, payload)
    except FashionRelayError as e:
        logger.error(
            f"Error generating different angle views: {e.message}",
            extra={"request_body": payload.model_dump(exclude_none=True)},
        )
        raise GenerationFailedError("Different angle view generation failed", e) from e

    return AnglesResponse(imageUrl=views[0].imageUrl, allViews=views, viewCount=len(views))


@router.post("/generate-ramp-walk", response_model=VideoResponse)
async def generate_ramp_walk(
    payload: RampWalkRequest,
    settings: Settings = Depends(get_settings),
    client: ReplicateClient = Depends(get_inference_client),
):
    """Runway video from the model photo; video jobs get the long poll budget"""
    _require(payload.modelPhotoUrl, "Model photo URL is required")
    _require_token(settings)

    try:
        video_url = await generation.generate_ramp_walk(client, settings.VIDEO_MODEL, payload)
    except FashionRelayError as e:
        logger.error(f"Error generating ramp walk video: {e.message}")
        raise GenerationFailedError("Ramp walk video generation failed", e) from e

    logger.info(f"Ramp walk video generated successfully: {video_url}")
    return VideoResponse(videoUrl=video_url)
