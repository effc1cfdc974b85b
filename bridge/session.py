"""
bridge/session.py
-----------------
Host-side session: owns all state for one user working on one concept and
wires the generation stage, the document pipeline and the runtime bridge.

  prompt / upload → concept image → streamed document → extracted,
  transformed document → embedded context → bridge
"""

from typing import Any, Callable, Dict, Optional
from urllib.parse import parse_qs, urlencode

from common.io_utils import log
from document.assembler import StreamAssembler
from document.extractor import extract_document
from document.transforms import prepare_document, DEFAULT_ZOOM_FACTOR
from generation import client as generation
from generation.client import EmptyArtifactError
from generation.prompts import default_render_prompt
from .runtime_bridge import EmbeddedRuntimeBridge, BridgeState
from .state import ControlState, Measurements

IDLE = "idle"
GENERATING_IMAGE = "generating_image"
GENERATING_MODEL = "generating_model"
ERROR = "error"

ALLOWED_MIME_TYPES = ("image/png", "image/jpeg", "image/webp", "image/heic", "image/heif")

# Control keys carried in a share link, with their parsers.
_SHARED_CONTROLS = (("scale", float), ("height", float), ("levels", int), ("lighting", str))


class HostSession:
    """
    Single-threaded host state container.

    The remote collaborators are injectable so the session can run against
    fakes; by default they are the functions in generation.client. The
    document is assembled from the fragments the document generator
    forwards, not from its return value.
    """

    def __init__(
        self,
        bridge: Optional[EmbeddedRuntimeBridge] = None,
        image_generator: Optional[Callable[..., str]] = None,
        document_generator: Optional[Callable[..., str]] = None,
        render_generator: Optional[Callable[..., str]] = None,
        zoom_factor: float = DEFAULT_ZOOM_FACTOR,
        on_progress: Optional[Callable[[Optional[str]], None]] = None,
    ):
        self.bridge = bridge or EmbeddedRuntimeBridge()
        self._generate_image = image_generator or generation.generate_image
        self._generate_document = document_generator or generation.generate_document
        self._generate_render = render_generator or generation.generate_render
        self.zoom_factor = zoom_factor
        self.on_progress = on_progress

        self.prompt = ""
        self.aspect_ratio = "1:1"
        self.status = IDLE
        self.error_message = ""
        self.progress_label: Optional[str] = None
        self.image_data: Optional[str] = None
        self.document: Optional[str] = None
        self.control = ControlState()

    # ----------------------------
    # Status helpers
    # ----------------------------
    @property
    def measurements(self) -> Measurements:
        return self.bridge.measurements

    def _set_progress(self, label: Optional[str]) -> None:
        self.progress_label = label
        if self.on_progress:
            self.on_progress(label)

    def _fail(self, err: Exception) -> None:
        self.status = ERROR
        self.error_message = str(err) or "An unexpected error occurred."
        self._set_progress(None)
        log(f"❌ {self.error_message}", "ERROR")

    def _discard_model(self) -> None:
        self.document = None
        self.bridge.detach()

    # ----------------------------
    # Concept image
    # ----------------------------
    def generate_image(self, prompt: str, aspect_ratio: str = "1:1", optimize: bool = True) -> Optional[str]:
        if not prompt or not prompt.strip():
            return None
        self.prompt = prompt
        self.aspect_ratio = aspect_ratio
        self.status = GENERATING_IMAGE
        self.error_message = ""
        self.image_data = None
        self._discard_model()
        self._set_progress("Initializing image generation pipeline...")
        try:
            self.image_data = self._generate_image(prompt, aspect_ratio, optimize)
        except Exception as e:
            self._fail(e)
            raise
        self.status = IDLE
        self._set_progress(None)
        return self.image_data

    def load_image(self, data_uri: str, mime_type: str) -> None:
        """Use an uploaded image as the concept."""
        if mime_type not in ALLOWED_MIME_TYPES:
            err = ValueError("Invalid file type. Allowed: PNG, JPEG, WEBP, HEIC.")
            self._fail(err)
            raise err
        self.image_data = data_uri
        self._discard_model()
        self.status = IDLE
        self.error_message = ""

    # ----------------------------
    # Parametric document
    # ----------------------------
    def generate_model(self) -> Optional[str]:
        """
        Stream the document for the current image, extract and transform it.
        The previous embedded context is dropped; the host must load the
        new document and call on_context_load.
        """
        if not self.image_data:
            return None
        self.status = GENERATING_MODEL
        self.error_message = ""
        self._set_progress("Initializing geometry synthesis...")
        assembler = StreamAssembler(on_label=self._set_progress)
        try:
            self._generate_document(self.image_data, assembler.feed)
            doc = extract_document(assembler.finish())
            if not doc.strip():
                raise EmptyArtifactError("Failed to generate valid model code. Please try again.")
        except Exception as e:
            self._fail(e)
            raise

        self._discard_model()
        self.document = prepare_document(doc, self.zoom_factor)
        self.status = IDLE
        self._set_progress(None)
        log(f"✅ Parametric document ready ({len(self.document)} chars)", "OK")
        return self.document

    async def on_context_load(self, handle: Any) -> BridgeState:
        """Load event of the embedded context that received self.document."""
        return await self.bridge.attach(handle, self.control)

    # ----------------------------
    # Controls
    # ----------------------------
    def _update_control(self, **changes: Any) -> ControlState:
        self.control = self.control.evolve(**changes)
        self.bridge.apply(self.control)
        return self.control

    def set_params(self, **params: Any) -> ControlState:
        return self._update_control(**params)

    def set_lighting(self, preset: str) -> ControlState:
        return self._update_control(lighting=preset)

    def set_fog(self, **fog: Any) -> ControlState:
        return self._update_control(**fog)

    # ----------------------------
    # Exports & render
    # ----------------------------
    async def export_obj(self) -> Optional[str]:
        self._set_progress("Exporting 3D geometry...")
        try:
            return await self.bridge.export_geometry()
        finally:
            self._set_progress(None)

    async def capture_screenshot(self) -> Optional[str]:
        return await self.bridge.export_snapshot()

    async def render(self, style_prompt: Optional[str] = None) -> Optional[str]:
        """Screenshot the viewport and re-render it photorealistically."""
        shot = await self.capture_screenshot()
        if not shot:
            log("Could not capture screenshot. Scene may not be ready.", "WARNING")
            return None
        style_prompt = style_prompt or default_render_prompt(self.prompt)
        try:
            return self._generate_render(shot, style_prompt)
        except Exception as e:
            self.error_message = str(e) or "Failed to generate render"
            log(f"❌ {self.error_message}", "ERROR")
            raise

    # ----------------------------
    # Share links
    # ----------------------------
    def share_query(self) -> str:
        params: Dict[str, str] = {}
        if self.prompt:
            params["prompt"] = self.prompt
        params["aspect"] = self.aspect_ratio
        params["scale"] = str(self.control.params.scale)
        params["height"] = str(self.control.params.height)
        params["levels"] = str(self.control.params.levels)
        params["lighting"] = self.control.lighting
        return urlencode(params)

    def restore_query(self, query: str) -> ControlState:
        """
        Inverse of share_query. Missing keys keep their current values; a
        malformed or out-of-range value is logged and skipped. The session
        is only updated once the whole link has been read.
        """
        q = {k: v[0] for k, v in parse_qs(query.lstrip("?")).items()}
        control = self.control
        for key, cast in _SHARED_CONTROLS:
            if key not in q:
                continue
            try:
                control = control.evolve(**{key: cast(q[key])})
            except ValueError as e:
                log(f"⚠️ Ignoring share-link value {key}={q[key]!r}: {e}", "WARNING")

        aspect = q.get("aspect", self.aspect_ratio)
        if aspect not in generation.ASPECT_RATIO_SIZES:
            log(f"⚠️ Ignoring share-link value aspect={aspect!r}: unsupported aspect ratio", "WARNING")
            aspect = self.aspect_ratio

        self.prompt = q.get("prompt", self.prompt)
        self.aspect_ratio = aspect
        if control != self.control:
            self.control = control
            self.bridge.apply(control)
        return self.control
