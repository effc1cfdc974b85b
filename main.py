"""
main.py
--------
Parametric Tower Pipeline Entrypoint

Stages:
1️⃣ Concept image (generation.client.generate_image, or an uploaded image)
2️⃣ Streamed parametric document (generation.client.generate_document)
3️⃣ Extraction + post-processing (document.extractor / document.transforms)

The embedded runtime bridge (bridge.runtime_bridge) takes over once a host
loads the resulting HTML document.
"""

import os
import json
import argparse
from typing import Optional

from fastapi import FastAPI, UploadFile, File, HTTPException, Form
from fastapi.responses import FileResponse, HTMLResponse
from pydantic import BaseModel
from dotenv import load_dotenv

# --- Pipeline modules ---
from bridge.session import HostSession
from generation.client import (
    GenerationError,
    EmptyArtifactError,
    RenderRequest,
    generate_image,
    generate_render,
)

# --- Common utilities ---
from common.io_utils import (
    log,
    setup_logging,
    write_json,
    write_text,
    save_data_uri,
    bytes_to_data_uri,
    format_bytes,
)

# -----------------------------------------------------
# Environment setup
# -----------------------------------------------------

load_dotenv()
setup_logging()


def _require_api_key() -> None:
    if not os.getenv("OPENAI_API_KEY"):
        raise RuntimeError("❌ OPENAI_API_KEY not set in environment")


# -----------------------------------------------------
# FastAPI setup
# -----------------------------------------------------

app = FastAPI(title="Parametric Tower API", version="1.0.0")

# -----------------------------------------------------
# Pydantic input model for the pipeline
# -----------------------------------------------------

class PipelineInput(BaseModel):
    prompt: Optional[str] = None
    aspect_ratio: str = "1:1"
    optimize: bool = True
    image_path: Optional[str] = None  # Local reference image instead of a prompt
    zoom_factor: float = 0.8


# -----------------------------------------------------
# Core pipeline
# -----------------------------------------------------

def _mime_for_path(path: str) -> str:
    ext = os.path.splitext(path)[1].lower().lstrip(".")
    return {
        "png": "image/png",
        "jpg": "image/jpeg",
        "jpeg": "image/jpeg",
        "webp": "image/webp",
        "heic": "image/heic",
        "heif": "image/heif",
    }.get(ext, "application/octet-stream")


def run_pipeline(payload: PipelineInput, output_dir: str, session: Optional[HostSession] = None) -> dict:
    """
    Executes the full flow:
      prompt | image → concept image → model.html
    """
    session = session or HostSession(zoom_factor=payload.zoom_factor)
    os.makedirs(output_dir, exist_ok=True)
    log("🚀 Starting Parametric Tower pipeline...", "INFO")

    # 1️⃣ Concept image
    log("🔹 Stage 1: Concept image", "INFO")
    if payload.image_path:
        with open(payload.image_path, "rb") as f:
            mime = _mime_for_path(payload.image_path)
            session.load_image(bytes_to_data_uri(f.read(), mime), mime)
        if payload.prompt:
            session.prompt = payload.prompt
    elif payload.prompt and payload.prompt.strip():
        session.generate_image(payload.prompt, payload.aspect_ratio, payload.optimize)
    else:
        raise ValueError("Either a prompt or an image_path is required")
    image_path = save_data_uri(session.image_data, os.path.join(output_dir, "concept"))

    # 2️⃣ + 3️⃣ Parametric document
    log("🔹 Stage 2: Parametric document", "INFO")
    document = session.generate_model()
    model_path = write_text(document, os.path.join(output_dir, "model.html"))
    log(f"✅ Document saved → {model_path} ({format_bytes(len(document.encode('utf-8')))})")

    results = {
        "concept_image": image_path,
        "model_html": model_path,
        "share_query": session.share_query(),
    }
    write_json(results, os.path.join(output_dir, "result.json"))
    log("🎉 Pipeline completed successfully!", "OK")
    return results


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, EmptyArtifactError):
        return HTTPException(status_code=422, detail=str(e))
    if isinstance(e, GenerationError):
        return HTTPException(status_code=502, detail=str(e))
    if isinstance(e, ValueError):
        return HTTPException(status_code=400, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


async def _load_upload(session: HostSession, upload: UploadFile) -> None:
    mime = upload.content_type or _mime_for_path(upload.filename or "")
    session.load_image(bytes_to_data_uri(await upload.read(), mime), mime)


# -----------------------------------------------------
# API endpoints
# -----------------------------------------------------

@app.post("/image")
def image_api(
    prompt: str = Form(...),
    aspect_ratio: str = Form("1:1"),
    optimize: bool = Form(True),
):
    """Generate a concept image; returns it as a data URI."""
    try:
        return {"image": generate_image(prompt, aspect_ratio, optimize)}
    except Exception as e:
        raise _http_error(e)


@app.post("/model", response_class=HTMLResponse)
async def model_api(
    image_file: Optional[UploadFile] = File(None),
    image_data: Optional[str] = Form(None),
):
    """Generate the parametric document for an uploaded image or a data URI."""
    session = HostSession()
    try:
        if image_file:
            await _load_upload(session, image_file)
        elif image_data:
            session.image_data = image_data
        else:
            raise ValueError("An image file or image data URI is required")
        return HTMLResponse(session.generate_model())
    except Exception as e:
        raise _http_error(e)


@app.post("/render")
def render_api(payload: RenderRequest):
    """Photorealistic re-render of a viewport screenshot."""
    try:
        return {"image": generate_render(payload.screenshot, payload.style_prompt)}
    except Exception as e:
        raise _http_error(e)


@app.post("/infer")
async def infer_api(
    prompt: Optional[str] = Form(None),
    aspect_ratio: str = Form("1:1"),
    optimize: bool = Form(True),
    image_file: Optional[UploadFile] = File(None),
):
    """Run full pipeline via REST API."""
    try:
        temp_dir = "temp_uploads"
        os.makedirs(temp_dir, exist_ok=True)

        payload_dict = {
            "prompt": prompt,
            "aspect_ratio": aspect_ratio,
            "optimize": optimize,
        }

        if image_file:
            upload_path = os.path.join(temp_dir, os.path.basename(image_file.filename or "upload.png"))
            with open(upload_path, "wb") as f:
                f.write(await image_file.read())
            payload_dict["image_path"] = upload_path

        pipeline_input = PipelineInput(**payload_dict)
        output_dir = os.path.join("outputs", "api_run")

        results = run_pipeline(pipeline_input, output_dir)
        return FileResponse(results["model_html"], media_type="text/html")

    except Exception as e:
        raise _http_error(e)


# -----------------------------------------------------
# CLI mode
# -----------------------------------------------------

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Parametric Tower Pipeline CLI")
    parser.add_argument("--prompt", help="Concept description")
    parser.add_argument("--image", help="Reference image instead of generating one")
    parser.add_argument("--aspect", default="1:1", help="Aspect ratio of the concept image")
    parser.add_argument("--no-optimize", action="store_true", help="Send the prompt without the concept prefix")
    parser.add_argument("--zoom", type=float, default=0.8, help="Camera distance factor")
    parser.add_argument("--out_dir", default="outputs/run", help="Output directory")
    args = parser.parse_args()

    _require_api_key()
    payload = PipelineInput(
        prompt=args.prompt,
        aspect_ratio=args.aspect,
        optimize=not args.no_optimize,
        image_path=args.image,
        zoom_factor=args.zoom,
    )
    session = HostSession(zoom_factor=args.zoom, on_progress=lambda label: label and log(f"🧠 {label}"))
    results = run_pipeline(payload, args.out_dir, session)

    print("\n=== Parametric Tower Pipeline Complete ===")
    print(json.dumps(results, indent=2))
