"""
prompts.py
-----------
Prompt templates for the generation stage of the Parametric Tower pipeline.

  • IMAGE_SYSTEM_PROMPT : prefix for optimized concept-image prompts
  • PARAMETRIC_PROMPT   : instructions for the interactive 3D document,
                          including the control hooks the host drives
  • RENDER_PROMPT_*     : photorealistic re-render of a viewport screenshot
"""

from typing import Optional

# ============================================================
# CONCEPT IMAGE
# ============================================================

IMAGE_SYSTEM_PROMPT = (
    "Generate an architectural concept or structural element on a clean background. "
    "High contrast, clear form."
)


def build_image_prompt(prompt: str, optimize: bool = True) -> str:
    if not optimize:
        return prompt
    return f"{IMAGE_SYSTEM_PROMPT}\n\nSubject: {prompt}"


# ============================================================
# PARAMETRIC DOCUMENT
# ============================================================

PARAMETRIC_PROMPT = """
You are an expert Creative Technologist and Three.js specialist.
I have provided an image of an architectural structure.
Your task is to write a single, self-contained HTML file containing a Three.js application that procedurally regenerates this structure.

**CORE REQUIREMENT**: The 3D model must **visually resemble** the input image in terms of:
1. **Silhouette/Profile**: (e.g., hourglass, tapered, twisting, stepped, organic).
2. **Footprint/Plan**: (e.g., circle, square, star, complex polygon, organic curves).
3. **Surface Texture**: (e.g., ribs, panels, lattice, Voronoi patterns).

**TECHNICAL CONSTRAINTS**:
1. **Libraries**: Use Three.js r160 from unpkg. Include this exact importmap:
   <script type="importmap">
     {
       "imports": {
         "three": "https://unpkg.com/three@0.160.0/build/three.module.js",
         "three/addons/": "https://unpkg.com/three@0.160.0/examples/jsm/"
       }
     }
   </script>
2. **Setup**:
   - Scene, PerspectiveCamera, WebGLRenderer.
   - **CRITICAL**: Set `preserveDrawingBuffer: true` in the WebGLRenderer constructor (required for screenshots).
   - Enable shadows (`renderer.shadowMap.enabled = true`).
   - **OrbitControls** (autoRotate: true).
3. **Architecture**:
   - Use `THREE.InstancedMesh` if the structure is composed of many similar layers.
   - OR use `THREE.BufferGeometry` constructed procedurally if the shape is continuous and organic.
   - Trace the footprint using `THREE.Shape` and `THREE.ExtrudeGeometry` rather than stacking primitives.
4. **Parametric API**:
   - Expose `window.updateParams(scale, height, levels)` on the global scope.
   - `scale`: Global XY scale factor.
   - `height`: Global Y scale factor or spacing multiplier.
   - `levels`: Number of vertical segments/layers.
   - Dispose of old geometries/materials before creating new ones.
   - Wrap the entire logic inside `updateParams` in a `try { ... } catch (e) { console.error(e); }` block.
5. **Lighting & Atmosphere**:
   - Expose `window.setLightingPreset(name)`.
   - Handle presets: 'Studio', 'Daylight', 'Sunset', 'Night', 'Golden Hour', 'Stormy'.
   - **Fog**: Use `scene.fog = new THREE.FogExp2(color, density)`.
   - Expose `window.updateFog(color, density)`. `color` is a hex string, `density` is a float (0.0 to 0.1).
6. **Exports**:
   - `window.getOBJ()` must use `OBJExporter` from 'three/addons/exporters/OBJExporter.js' to return the scene as an OBJ string.
   - `window.getScreenshot()` must return `renderer.domElement.toDataURL('image/png')`.
   - `window.getSurfaceArea()` returns total surface area (number, approximate is fine).
   - `window.getFloorArea()` returns total floor area (number, approximate is fine).

**VISUAL STYLE**:
- Use `THREE.MeshPhysicalMaterial` or `MeshStandardMaterial`.
- Enable shadows (`castShadow`, `receiveShadow`) for all meshes and lights.
- Use `THREE.ACESFilmicToneMapping`.
- Background should default to the 'Studio' preset (light gray/white).

**OUTPUT**:
- Return ONLY the valid HTML code.
- Start with `<!DOCTYPE html>`.
- **IMPORTANT**: Call `window.updateParams(1.0, 1.0, 20)` at the very end of your script to initialize the scene immediately.
"""

# ============================================================
# REALISTIC RENDER
# ============================================================

RENDER_PROMPT_TEMPLATE = (
    "Photorealistic architectural visualization of this structure. "
    "High quality, detailed materials, realistic lighting. Context: {style_prompt}"
)

FALLBACK_RENDER_STYLE = (
    "Realistic architectural photography, 8k uhd, photorealistic, cinematic lighting"
)


def default_render_prompt(concept_prompt: Optional[str]) -> str:
    """Style prompt suggested for a re-render of the current concept."""
    if concept_prompt and concept_prompt.strip():
        return f"Realistic photo of {concept_prompt.strip()}, atmospheric lighting, 8k uhd"
    return FALLBACK_RENDER_STYLE
