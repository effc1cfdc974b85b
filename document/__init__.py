"""
Document handling for the Parametric Tower pipeline.

This package handles:
  • Assembling streamed model output (content buffer + progress label)
  • Extracting a complete HTML document from raw model text
  • Post-processing the document before it is embedded

Usage:
    from document import StreamAssembler, extract_document, prepare_document

    assembler = StreamAssembler(on_label=print)
    raw = assembler.feed_all(fragments)
    html = prepare_document(extract_document(raw))
"""

from .assembler import RawFragment, StreamAssembler
from .extractor import EXTRACTION_RULES, extract_document, match_rule
from .transforms import hide_overlay_text, zoom_camera, prepare_document

__all__ = [
    "RawFragment",
    "StreamAssembler",
    "EXTRACTION_RULES",
    "extract_document",
    "match_rule",
    "hide_overlay_text",
    "zoom_camera",
    "prepare_document",
]
