"""
common/io_utils.py
------------------
General-purpose I/O and logging utilities used across
the Parametric Tower modules (generation, document, bridge).
"""

import os
import re
import json
import base64
import logging
from pathlib import Path
from typing import Any, Dict, Tuple, Union, Optional


# -------------------------------------------------------
# Logging utilities
# -------------------------------------------------------

def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None
) -> None:
    """Configure logging with optional file output"""
    format_str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.StreamHandler(),
            *([] if not log_file else [logging.FileHandler(log_file)])
        ]
    )


def log(message: str, level: str = "INFO") -> None:
    """Unified logging with emoji support"""
    logger = logging.getLogger("parametric")
    level_map = {
        "INFO": logging.INFO,
        "ERROR": logging.ERROR,
        "WARNING": logging.WARNING,
        "DEBUG": logging.DEBUG,
        "OK": logging.INFO
    }
    logger.log(level_map.get(level, logging.INFO), message)


# -------------------------------------------------------
# JSON / file utilities
# -------------------------------------------------------

def write_json(
    data: Dict[str, Any],
    filepath: Union[str, Path],
    pretty: bool = True
) -> None:
    """Write JSON file with UTF-8 encoding and optional pretty printing"""
    with open(filepath, 'w', encoding='utf-8') as f:
        json.dump(
            data,
            f,
            indent=2 if pretty else None,
            ensure_ascii=False
        )


def write_text(text: str, filepath: Union[str, Path]) -> str:
    """Write a UTF-8 text artifact (HTML document, OBJ export)."""
    os.makedirs(os.path.dirname(os.path.abspath(filepath)), exist_ok=True)
    with open(filepath, 'w', encoding='utf-8') as f:
        f.write(text)
    log(f"Wrote → {filepath}", "OK")
    return str(filepath)


# -------------------------------------------------------
# Data URIs
# -------------------------------------------------------

_DATA_URI_RE = re.compile(r"^data:(.*?);base64,", re.IGNORECASE)


def split_data_uri(data_uri: str, default_mime: str = "image/jpeg") -> Tuple[str, str]:
    """
    Split a base64 data URI into (mime_type, base64_payload).
    A bare base64 string is returned with the default MIME type.
    """
    m = _DATA_URI_RE.match(data_uri)
    if not m:
        return default_mime, data_uri
    return m.group(1) or default_mime, data_uri[m.end():]


def to_data_uri(b64_payload: str, mime_type: str = "image/png") -> str:
    return f"data:{mime_type};base64,{b64_payload}"


def bytes_to_data_uri(data: bytes, mime_type: str) -> str:
    return to_data_uri(base64.b64encode(data).decode("ascii"), mime_type)


def data_uri_to_bytes(data_uri: str) -> Tuple[str, bytes]:
    mime, payload = split_data_uri(data_uri)
    return mime, base64.b64decode(payload)


def extension_for_mime(mime_type: str) -> str:
    return "jpg" if mime_type in ("image/jpeg", "image/jpg") else "png"


def save_data_uri(data_uri: str, filepath_without_ext: Union[str, Path]) -> str:
    """Decode a data URI image and save it; the extension follows the MIME type."""
    mime, raw = data_uri_to_bytes(data_uri)
    out = f"{filepath_without_ext}.{extension_for_mime(mime)}"
    os.makedirs(os.path.dirname(os.path.abspath(out)), exist_ok=True)
    with open(out, "wb") as f:
        f.write(raw)
    log(f"Saved image → {out}", "OK")
    return out


# -------------------------------------------------------
# Misc helpers
# -------------------------------------------------------

def format_bytes(num: int) -> str:
    """Readable file sizes."""
    for unit in ["B", "KB", "MB", "GB"]:
        if num < 1024.0:
            return f"{num:.2f}{unit}"
        num /= 1024.0
    return f"{num:.2f}TB"
