from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Protocol

from ..design import prompts
from ..design.prompts import StagePrompt
from ..exceptions import AllAnglesFailedError, EmptyOutputError, FashionRelayError
from ..logger import logger
from ..schemas import (
    AngleView,
    AnglesRequest,
    ColorRequest,
    ModelPhotoRequest,
    RampWalkRequest,
    SketchRequest,
)


class InferenceRunner(Protocol):
    async def run(self, model_id: str, model_input: Dict[str, Any], long_running: bool = False) -> Any:
        ...


def image_input(stage: StagePrompt, images: List[str], with_negative: bool = True) -> Dict[str, Any]:
    """Model input for the image model. Empty image lists are left out."""
    payload: Dict[str, Any] = {"prompt": stage.prompt, "output_format": "jpg"}
    if images:
        payload["image_input"] = images
    if with_negative and stage.negative_prompt:
        payload["negative_prompt"] = stage.negative_prompt
    if stage.image_strength is not None:
        payload["image_strength"] = stage.image_strength
    return payload


def _require_url(output: Any, message: str = "No image URL returned from API") -> str:
    if not output:
        raise EmptyOutputError(message)
    return str(output)


def build_sketch_input(req: SketchRequest) -> Dict[str, Any]:
    base = req.base_image_url
    if base:
        # The base already carries any logo; sending it again makes the model re-place it.
        stage = prompts.sketch_edit_prompt(req.prompt or "", req.editInstruction, req.designHistory or ())
        return image_input(stage, [base])

    stage = prompts.sketch_prompt(
        req.prompt or "",
        garment_type=req.garmentType,
        gender=req.gender,
        features=req.detailedFeatures,
        has_logo=bool(req.uploadedLogoUrl),
    )
    images = [url for url in (req.uploadedLogoUrl, req.sketchSvg) if url]
    # Fresh sketches rely on the prompt alone; the negative only steers edits.
    return image_input(stage, images, with_negative=False)


def build_color_input(req: ColorRequest) -> Dict[str, Any]:
    colors = req.colors or []
    if req.previousColoredUrl:
        stage = prompts.recolor_prompt(colors, req.prompt)
        return image_input(stage, [req.previousColoredUrl])
    stage = prompts.colorize_prompt(colors, req.prompt)
    return image_input(stage, [req.sketchUrl])


def build_model_photo_input(req: ModelPhotoRequest) -> Dict[str, Any]:
    stage = prompts.model_photo_prompt(req.modelType, req.pose)
    return image_input(stage, [req.designUrl])


def build_angle_input(direction: str, model_photo_url: str) -> Dict[str, Any]:
    return image_input(prompts.angle_prompt(direction), [model_photo_url])


def build_ramp_walk_input(req: RampWalkRequest) -> Dict[str, Any]:
    stage = prompts.ramp_walk_prompt(req.walkStyle)
    return {
        "mode": "pro",
        "prompt": stage.prompt,
        "duration": 10,
        "start_image": req.modelPhotoUrl,
        "negative_prompt": stage.negative_prompt,
    }


async def generate_sketch(client: InferenceRunner, model_id: str, req: SketchRequest) -> str:
    model_input = build_sketch_input(req)
    logger.info(
        "Sketch generation",
        extra={
            "mode": "refine" if req.base_image_url else "new",
            "image_count": len(model_input.get("image_input") or []),
            "has_logo": bool(req.uploadedLogoUrl),
            "image_strength": model_input.get("image_strength"),
        },
    )
    output = await client.run(model_id, model_input)
    return _require_url(output)


async def add_colors(client: InferenceRunner, model_id: str, req: ColorRequest) -> str:
    logger.info(
        "Adding colors to sketch",
        extra={"colors": req.colors or [], "refine": bool(req.previousColoredUrl)},
    )
    output = await client.run(model_id, build_color_input(req))
    return _require_url(output)


async def generate_model_photo(client: InferenceRunner, model_id: str, req: ModelPhotoRequest) -> str:
    logger.info(
        "Generating model photo",
        extra={"model_type": req.modelType, "pose": req.pose, "image_strength": prompts.MODEL_PHOTO_STRENGTH},
    )
    output = await client.run(model_id, build_model_photo_input(req))
    return _require_url(output)


async def _generate_angle(client: InferenceRunner, model_id: str, angle: str, direction: str, model_photo_url: str) -> Optional[AngleView]:
    try:
        output = await client.run(model_id, build_angle_input(direction, model_photo_url))
        view = AngleView(angle=angle, imageUrl=_require_url(output))
    except FashionRelayError as e:
        logger.error(f"Error generating {angle} view: {e.message}", extra={"angle": angle, "error_code": e.code})
        return None
    logger.info(f"Generated {angle} view successfully")
    return view


async def generate_angles(client: InferenceRunner, model_id: str, req: AnglesRequest) -> List[AngleView]:
    """
    Generate every angle concurrently and keep the ones that succeed.

    Failed angles are logged and dropped; only a complete failure is an error.
    Survivors keep the order of `prompts.ANGLES`.
    """
    logger.info(f"Generating {len(prompts.ANGLES)} angle views in parallel")
    results = await asyncio.gather(
        *(
            _generate_angle(client, model_id, angle, direction, req.modelPhotoUrl)
            for angle, direction in prompts.ANGLES
        ),
        return_exceptions=True,
    )

    views: List[AngleView] = []
    for (angle, _), result in zip(prompts.ANGLES, results):
        if isinstance(result, BaseException):
            logger.error(
                f"Unexpected error generating {angle} view: {type(result).__name__} - {result}",
                extra={"angle": angle},
            )
            continue
        if result is not None:
            views.append(result)

    if not views:
        raise AllAnglesFailedError()
    logger.info(f"Successfully generated {len(views)} out of {len(prompts.ANGLES)} angle views")
    return views


async def generate_ramp_walk(client: InferenceRunner, model_id: str, req: RampWalkRequest) -> str:
    logger.info("Generating ramp walk video", extra={"model_id": model_id, "walk_style": req.walkStyle})
    output = await client.run(model_id, build_ramp_walk_input(req), long_running=True)
    return _require_url(output, f"No video URL returned from {model_id}")
