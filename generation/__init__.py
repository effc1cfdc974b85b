"""
Remote generation stage of the Parametric Tower pipeline.

This package handles:
  • Concept image generation from a text prompt
  • Streaming the interactive 3D document for a concept image
  • Photorealistic re-rendering of viewport screenshots

Usage:
    from generation import generate_image, generate_document

    image = generate_image("stepped pixel skyscraper", aspect_ratio="9:16")
    raw_text = generate_document(image, on_fragment=assembler.feed)
"""

from .client import (
    GenerationError,
    EmptyArtifactError,
    ImageRequest,
    RenderRequest,
    generate_image,
    generate_document,
    generate_render,
    stream_document_fragments,
)
from .prompts import IMAGE_SYSTEM_PROMPT, PARAMETRIC_PROMPT, default_render_prompt

__all__ = [
    "GenerationError",
    "EmptyArtifactError",
    "ImageRequest",
    "RenderRequest",
    "generate_image",
    "generate_document",
    "generate_render",
    "stream_document_fragments",
    "IMAGE_SYSTEM_PROMPT",
    "PARAMETRIC_PROMPT",
    "default_render_prompt",
]
