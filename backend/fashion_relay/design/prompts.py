from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from ..schemas import DetailedFeatures

SKETCH_EDIT_STRENGTH = 0.98
RECOLOR_STRENGTH = 0.90
MODEL_PHOTO_STRENGTH = 0.92
ANGLE_STRENGTH = 0.88

# (label, camera direction). Labels are part of the response contract.
ANGLES: Tuple[Tuple[str, str], ...] = (
    ("front", "Direct front view, facing camera, full body shot"),
    ("back", "Back view, showing back details, full body shot"),
    ("left_side", "Left side profile view, full body shot"),
    ("right_side", "Right side profile view, full body shot"),
    ("three_quarter_front", "Three-quarter front view, 45 degree angle, full body shot"),
    ("three_quarter_back", "Three-quarter back view, 45 degree angle, full body shot"),
)


@dataclass(frozen=True)
class StagePrompt:
    prompt: str
    negative_prompt: str
    image_strength: Optional[float] = None


def join_prompt_parts(parts: Iterable[Optional[str]]) -> str:
    cleaned: List[str] = []
    for part in parts:
        if not part:
            continue
        value = part.strip().strip(",")
        if not value:
            continue
        cleaned.append(value)
    return ", ".join(cleaned)


def describe_features(features: Optional[DetailedFeatures], full: bool = True) -> str:
    """
    Render garment attributes as "with silk fabric, puff sleeves, ...".

    The angle stage only uses the silhouette attributes (`full=False`).
    Placeholder choices such as "None" or "No pockets" are skipped.
    """
    if features is None:
        return ""
    f = features
    parts = [
        f.fabric and f"{f.fabric} fabric",
        f.pattern and f"{f.pattern} pattern",
        f.shoulders and f"{f.shoulders} shoulders",
        f.sleeves and f"{f.sleeves} sleeves",
        f.neckline and f"{f.neckline} neckline",
        full and f.collar and f"{f.collar} collar",
        f.waist and f"{f.waist} waist",
        f.length and f"{f.length} length",
        f.fit and f"{f.fit} fit",
    ]
    if full:
        parts += [
            f.embellishments and f.embellishments != "None" and f"with {f.embellishments}",
            f.closure and f"{f.closure} closure",
            f.pockets and f.pockets != "No pockets" and f.pockets,
            f.backDetail and f.backDetail != "Plain" and f"{f.backDetail} back",
            f.hemStyle and f"{f.hemStyle} hem",
        ]
    description = join_prompt_parts(p for p in parts if p)
    return f"with {description}" if description else ""


# ----- sketch -----

SKETCH_NEGATIVE = (
    "photograph, photo, 3D render, photorealistic, finished product, product mockup, "
    "model wearing clothes, realistic fabric, actual garment, finished clothing, styled photoshoot"
)
LOGO_NEGATIVE = (
    "text on clothing, written words, drawn letters, handwritten text, typography, text labels, "
    "brand name as text, recreated logo, redrawn logo, logo variations"
)
SKETCH_EDIT_NEGATIVE = (
    "completely new design, different garment, redesigned, reimagined, alternative version, "
    "new interpretation, different style, changed silhouette, modified structure, new outfit, "
    "different design, recreated design, similar design, inspired by, large logo, oversized logo, "
    "huge branding, massive graphics, enlarged text, bigger logo, logo enlargement"
)

LOGO_INSTRUCTION = """

LOGO INSTRUCTION:
- The reference image is the brand logo/graphic supplied by the user
- Use this EXACT logo image, copied precisely (colors, shape, design)
- Do not draw your own version and do not write brand names as text
- Place it prominently on the garment: back print, chest branding, sleeve or shoulder graphics
- Make it look printed, embroidered or heat-pressed, as if manufactured that way"""


def sketch_prompt(
    prompt: str,
    garment_type: Optional[str] = None,
    gender: Optional[str] = None,
    features: Optional[DetailedFeatures] = None,
    has_logo: bool = False,
) -> StagePrompt:
    """Fresh black-and-white design sketch."""
    gender_context = f"designed for {gender.lower()}" if gender else ""
    subject = " ".join(
        p for p in (garment_type or "dress", gender_context, describe_features(features)) if p
    )
    logo = LOGO_INSTRUCTION if has_logo else ""
    text = f"""FASHION DESIGN SKETCH ONLY - NOT A FINISHED PRODUCT!

Create a hand-drawn fashion design sketch in professional technical illustration style:
- Black and white pencil sketch on white paper
- Clean line drawing with construction lines visible
- Technical fashion croquis style
- Flat technical drawing showing garment details
- {subject}, {prompt}{logo}

This must be a SKETCH/DRAWING, not a photograph, 3D render or product mockup.
Style: hand-drawn fashion illustration, pencil on paper, black line art on white background"""
    negative = join_prompt_parts([SKETCH_NEGATIVE, LOGO_NEGATIVE if has_logo else None])
    return StagePrompt(text, negative)


def sketch_edit_prompt(
    prompt: str,
    edit_instruction: Optional[str] = None,
    design_history: Sequence[str] = (),
) -> StagePrompt:
    """Micro-edit of an existing sketch or uploaded image."""
    change = edit_instruction or prompt
    history = ""
    if design_history:
        lines = "\n".join(f"{i}. {entry}" for i, entry in enumerate(design_history, start=1))
        history = (
            "\nPREVIOUS EDITS (already in the image, do NOT redo them):\n"
            f"{lines}\n"
        )
    text = f"""THIS IS A MICRO-EDIT, NOT A REDESIGN.

You are editing the reference image. Copy it exactly and change only: "{change}"
{history}
RULES:
1. Keep the silhouette, collar, closures, pockets, sleeves, hem, seams and proportions identical
2. Keep every existing logo and graphic in the same position and at the same size
3. Apply "{change}" literally and change nothing else
4. "Keep the same" means identical, not similar

FORBIDDEN: redesigning the garment, moving or enlarging logos, adding or removing elements
that were not mentioned, "improving" anything.

With image_strength={SKETCH_EDIT_STRENGTH} you must preserve the reference almost exactly.

CONTEXT (use the visual reference first): {prompt}"""
    return StagePrompt(text, SKETCH_EDIT_NEGATIVE, SKETCH_EDIT_STRENGTH)


# ----- colors -----

COLOR_NEGATIVE = "rainbow colors, multicolor, multiple colors, varied colors, colorful mix, color variety"
COLORIZE_NEGATIVE = "rainbow, multicolor pattern, color variety, colorful mix"
RECOLOR_NEGATIVE = (
    "different design, new garment, redesigned, altered silhouette, changed proportions, new style, "
    "alternative design, modified structure, different shape, different garment type, new dress, "
    "new jacket, new pants, new coat, new outfit, completely different"
)


def _color_terms(colors: Sequence[str]) -> Tuple[str, str]:
    if not colors:
        return "appropriate colors", ""
    return f"ONLY {' and '.join(colors)}", ", ".join(colors)


def colorize_prompt(colors: Sequence[str], prompt: Optional[str] = None) -> StagePrompt:
    """First coloring pass over a sketch."""
    restriction, color_list = _color_terms(colors)
    text = (
        f"STRICT COLOR RULE: Use ONLY these exact colors: {restriction}. "
        "DO NOT use any other colors. DO NOT create rainbow or multicolor patterns.\n\n"
        f"Add these specific colors to this professional fashion designer sketch: {color_list}. "
        "Maintain the exact same design and proportions, keep the hand-drawn sketch aesthetic, "
        "professional fashion illustration style, no text or labels, clean background, "
        f"{prompt or ''}. Preserve the original sketch lines and structure while adding ONLY "
        f"the specified colors ({restriction}) to the garment."
    )
    return StagePrompt(text, join_prompt_parts([COLOR_NEGATIVE, COLORIZE_NEGATIVE]))


def recolor_prompt(colors: Sequence[str], prompt: Optional[str] = None) -> StagePrompt:
    """Color or detail edit of an already colored design."""
    restriction, color_list = _color_terms(colors)
    request = prompt or "change the colors"
    text = f"""THIS IS A COLOR/DETAIL EDIT REQUEST, NOT A NEW DESIGN REQUEST. Copy the reference garment image exactly and make ONLY this modification: "{request}".

COLOR RESTRICTION:
- Use ONLY these exact colors: {restriction}
- No rainbow or multicolor patterns, no extra colors
- ONLY use: {color_list}

RULES FOR ALL GARMENT TYPES:
- Keep every design element, silhouette, proportion, seam and construction detail identical
- Keep the same pose, angle and body proportions
- Only modify what was asked: "{request}"
- "Remove X", "change X color", "add X detail", "make X ...": change X and nothing else

The reference image is the exact template. This is image-to-image refinement. Professional fashion illustration style, no text or labels, clean background."""
    return StagePrompt(text, join_prompt_parts([COLOR_NEGATIVE, RECOLOR_NEGATIVE]), RECOLOR_STRENGTH)


# ----- model photo and angles -----

MODEL_PHOTO_NEGATIVE = (
    "different outfit, different garment, changed design, altered colors, modified patterns, "
    "blue jacket, blazer, suit, dress clothes, business attire, different clothing, new design, "
    "redesigned clothes, similar style, inspired by, alternative version, different interpretation, "
    "wrong garment type"
)
ANGLE_NEGATIVE = "different outfit, changed design, altered colors, modified garment, new clothes"


def model_photo_prompt(model_type: str, pose: str) -> StagePrompt:
    text = f"""Create a photorealistic fashion photograph of a {model_type} in {pose} pose wearing THE EXACT GARMENT shown in the reference image.

1. Study the reference (sketch or colored design): colors, patterns, logos, graphics, text and placement
2. The model wears THIS EXACT GARMENT, copied detail for detail
3. Studio lighting, clean background, high fashion editorial quality

REQUIREMENTS: same colors, same patterns, same logos and text, same graphics, same garment type, same pockets, zippers and stripes.
FORBIDDEN: a different outfit, changed colors, altered logos, a "similar" or "inspired by" design.

This is an e-commerce product photo: the garment must look identical to the design."""
    return StagePrompt(text, MODEL_PHOTO_NEGATIVE, MODEL_PHOTO_STRENGTH)


def angle_prompt(direction: str) -> StagePrompt:
    text = f"""Model wearing THE EXACT SAME OUTFIT from the reference image.

{direction}

RULES:
- Same outfit, colors, patterns, logos and design, identical to the reference
- Only change the camera angle/pose: {direction}
- Clean white studio background, professional catalog photography
- Detailed fabric textures, professional lighting, no text or labels"""
    return StagePrompt(text, ANGLE_NEGATIVE, ANGLE_STRENGTH)


# ----- ramp walk -----

RAMP_WALK_NEGATIVE = (
    "static image, multiple views, composite video, cuts, transitions, blurry, low quality, "
    "multiple models, duplicate models, clones, two models, several models, group of models, "
    "other people on runway"
)


def ramp_walk_prompt(walk_style: str) -> StagePrompt:
    text = join_prompt_parts([
        "Single professional fashion model walking confidently down a runway ramp",
        walk_style,
        "one model only",
        "model starts at the back of the runway and walks forward towards camera",
        "smooth fluid motion, elegant confident stride, cameras flashing from audience",
        "professional runway lighting, fashion week atmosphere, full body shot throughout the walk",
        "high fashion presentation, cinematic quality, luxury fashion show environment",
        "seamless single take video, solo model performance",
    ])
    return StagePrompt(text, RAMP_WALK_NEGATIVE)
