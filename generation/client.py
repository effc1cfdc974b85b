"""
client.py
---------
Remote model calls for the Parametric Tower pipeline.

Steps served:
1. Concept image from a text prompt (image model).
2. Streamed interactive 3D document from the concept image (reasoning model).
3. Photorealistic re-render of a viewport screenshot (image model).

Every call returns plain data (data URIs or raw text); transport errors are
logged and re-raised as GenerationError, missing payloads as
EmptyArtifactError. Nothing here retries.
"""

import os
from typing import Callable, Iterator, Optional

from dotenv import load_dotenv
from openai import OpenAI, OpenAIError
from pydantic import BaseModel, Field

from common.io_utils import log, split_data_uri, to_data_uri, data_uri_to_bytes
from document.assembler import RawFragment
from .prompts import PARAMETRIC_PROMPT, RENDER_PROMPT_TEMPLATE, build_image_prompt

# ----------------------------
# ENV & CLIENTS
# ----------------------------
load_dotenv()
OPENAI_MODEL            = os.getenv("OPENAI_MODEL", "gpt-5")
OPENAI_IMAGE_MODEL      = os.getenv("OPENAI_IMAGE_MODEL", "gpt-image-1")
OPENAI_REASONING_EFFORT = os.getenv("OPENAI_REASONING_EFFORT", "medium")
OPENAI_MAX_OUTPUT_TOKENS = int(os.getenv("OPENAI_MAX_OUTPUT_TOKENS", "20000"))

_client: Optional[OpenAI] = None


def get_client() -> OpenAI:
    """Shared OpenAI client, created on first use."""
    global _client
    if _client is None:
        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise RuntimeError("Missing env var: OPENAI_API_KEY")
        _client = OpenAI(api_key=api_key)
    return _client


# ----------------------------
# Errors
# ----------------------------
class GenerationError(RuntimeError):
    """A remote generation call failed."""


class EmptyArtifactError(GenerationError):
    """The remote call succeeded but produced nothing usable."""


# ----------------------------
# Input schemas
# ----------------------------
ASPECT_RATIO_SIZES = {
    "1:1": "1024x1024",
    "3:2": "1536x1024",
    "4:3": "1536x1024",
    "16:9": "1536x1024",
    "2:3": "1024x1536",
    "3:4": "1024x1536",
    "9:16": "1024x1536",
}


class ImageRequest(BaseModel):
    prompt: str = Field(..., min_length=1)
    aspect_ratio: str = "1:1"
    optimize: bool = True


class RenderRequest(BaseModel):
    screenshot: str = Field(..., description="Viewport screenshot as a data URI")
    style_prompt: str = Field(..., min_length=1)


def image_size_for(aspect_ratio: str) -> str:
    size = ASPECT_RATIO_SIZES.get(aspect_ratio)
    if size is None:
        log(f"⚠️ Unsupported aspect ratio '{aspect_ratio}', using 1:1", "WARNING")
        return ASPECT_RATIO_SIZES["1:1"]
    return size


def _image_from_response(response, empty_message: str) -> str:
    data = getattr(response, "data", None) or []
    b64 = getattr(data[0], "b64_json", None) if data else None
    if not b64:
        raise EmptyArtifactError(empty_message)
    return to_data_uri(b64, "image/png")


# ----------------------------
# Step 1 – Concept image
# ----------------------------
def generate_image(prompt: str, aspect_ratio: str = "1:1", optimize: bool = True) -> str:
    """Generate a concept image and return it as a data URI."""
    req = ImageRequest(prompt=prompt, aspect_ratio=aspect_ratio, optimize=optimize)
    try:
        response = get_client().images.generate(
            model=OPENAI_IMAGE_MODEL,
            prompt=build_image_prompt(req.prompt, req.optimize),
            size=image_size_for(req.aspect_ratio),
            n=1,
        )
    except OpenAIError as e:
        log(f"❌ Image generation failed: {e}", "ERROR")
        raise GenerationError(f"Image generation failed: {e}") from e
    return _image_from_response(response, "No image generated.")


# ----------------------------
# Step 2 – Parametric document
# ----------------------------
def stream_document_fragments(image_data_uri: str) -> Iterator[RawFragment]:
    """
    Stream the 3D document for a concept image.
    Reasoning-summary deltas are tagged as reasoning, output text as content.
    """
    mime, payload = split_data_uri(image_data_uri)
    try:
        stream = get_client().responses.create(
            model=OPENAI_MODEL,
            input=[{
                "role": "user",
                "content": [
                    {"type": "input_image", "image_url": to_data_uri(payload, mime)},
                    {"type": "input_text", "text": PARAMETRIC_PROMPT},
                ],
            }],
            reasoning={"effort": OPENAI_REASONING_EFFORT, "summary": "auto"},
            max_output_tokens=OPENAI_MAX_OUTPUT_TOKENS,
            stream=True,
        )
        for event in stream:
            etype = getattr(event, "type", "")
            if etype == "response.reasoning_summary_text.delta":
                yield RawFragment(text=event.delta, is_reasoning=True)
            elif etype == "response.output_text.delta":
                yield RawFragment(text=event.delta, is_reasoning=False)
            elif etype == "error":
                raise GenerationError(f"Model stream error: {getattr(event, 'message', 'unknown error')}")
            elif etype == "response.failed":
                err = getattr(getattr(event, "response", None), "error", None)
                raise GenerationError(f"Model generation failed: {getattr(err, 'message', 'unknown error')}")
    except OpenAIError as e:
        log(f"❌ Parametric model generation failed: {e}", "ERROR")
        raise GenerationError(f"Parametric model generation failed: {e}") from e


def generate_document(
    image_data_uri: str,
    on_fragment: Optional[Callable[[RawFragment], None]] = None,
) -> str:
    """
    Stream the document, forwarding each fragment to on_fragment as it
    arrives. Returns the concatenated content text; reasoning fragments
    are only forwarded.
    """
    parts = []
    for fragment in stream_document_fragments(image_data_uri):
        if on_fragment:
            on_fragment(fragment)
        if not fragment.is_reasoning:
            parts.append(fragment.text)
    raw = "".join(parts)
    log(f"Document stream finished ({len(raw)} chars)", "INFO")
    return raw


# ----------------------------
# Step 3 – Realistic render
# ----------------------------
def generate_render(screenshot_data_uri: str, style_prompt: str) -> str:
    """Re-render a viewport screenshot photorealistically; returns a data URI."""
    req = RenderRequest(screenshot=screenshot_data_uri, style_prompt=style_prompt)
    mime, raw = data_uri_to_bytes(req.screenshot)
    try:
        response = get_client().images.edit(
            model=OPENAI_IMAGE_MODEL,
            image=("screenshot.png", raw, mime if mime.startswith("image/") else "image/png"),
            prompt=RENDER_PROMPT_TEMPLATE.format(style_prompt=req.style_prompt),
        )
    except OpenAIError as e:
        log(f"❌ Realistic render failed: {e}", "ERROR")
        raise GenerationError(f"Realistic render failed: {e}") from e
    return _image_from_response(response, "No render generated.")
