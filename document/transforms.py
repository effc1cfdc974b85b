"""
document/transforms.py
----------------------
Text-level post-processing applied to an extracted document before it is
embedded in the host:

  • hide_overlay_text : suppress the document's own on-screen text
  • zoom_camera       : pull the default camera closer to the origin

Both passes are total: when their target pattern is absent the document is
returned unchanged.
"""

import math
import re
from decimal import Decimal

# Overlay ids/classes commonly emitted by generated Three.js scenes.
OVERLAY_SELECTORS = (
    "#info", "#loading", "#ui", "#instructions", ".label", ".overlay", "#description",
)

_SELECTOR_LIST = ", ".join(OVERLAY_SELECTORS)

OVERLAY_CSS = f"""
    <style>
      /* Hides common overlay IDs and classes used in generated scenes */
      {_SELECTOR_LIST} {{
        display: none !important;
        opacity: 0 !important;
        pointer-events: none !important;
        visibility: hidden !important;
      }}
      /* No text selection outside the canvas */
      body {{
        user-select: none !important;
      }}
    </style>
  """

_HEAD_CLOSE_RE = re.compile(r"</head>", re.IGNORECASE)
_BODY_CLOSE_RE = re.compile(r"</body>", re.IGNORECASE)

_NUMBER = r"(-?\d*\.?\d+)"
CAMERA_SET_RE = re.compile(
    r"camera\.position\.set\(\s*" + _NUMBER + r"\s*,\s*" + _NUMBER + r"\s*,\s*" + _NUMBER + r"\s*\)"
)

DEFAULT_ZOOM_FACTOR = 0.8


def hide_overlay_text(html: str) -> str:
    """
    Inject the overlay-suppression style block before </head>, else before
    </body>, else at the end of the document.
    """
    for closing in (_HEAD_CLOSE_RE, _BODY_CLOSE_RE):
        if closing.search(html):
            return closing.sub(lambda m: OVERLAY_CSS + m.group(0), html, count=1)
    return html + OVERLAY_CSS


def format_js_number(value: float) -> str:
    """
    Render a float the way JavaScript's Number.prototype.toString does:
    shortest round-trip digits, plain notation for magnitudes in
    [1e-6, 1e21), otherwise exponent form like 1e-7 or 1.5e+21.
    """
    if value == 0:
        return "0"
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"

    sign, digit_tuple, exponent = Decimal(repr(value)).normalize().as_tuple()
    digits = "".join(map(str, digit_tuple))
    k = len(digits)
    n = exponent + k  # value == 0.<digits> * 10**n

    if k <= n <= 21:
        body = digits + "0" * (n - k)
    elif 0 < n <= 21:
        body = f"{digits[:n]}.{digits[n:]}"
    elif -6 < n <= 0:
        body = "0." + "0" * -n + digits
    else:
        e = n - 1
        mantissa = digits[0] + (f".{digits[1:]}" if k > 1 else "")
        body = f"{mantissa}e{'+' if e >= 0 else '-'}{abs(e)}"
    return ("-" if sign else "") + body


def zoom_camera(html: str, zoom_factor: float = DEFAULT_ZOOM_FACTOR) -> str:
    """Scale every literal camera.position.set(x, y, z) call by zoom_factor."""

    def _scale(m: re.Match) -> str:
        x, y, z = (format_js_number(float(v) * zoom_factor) for v in m.groups())
        return f"camera.position.set({x}, {y}, {z})"

    return CAMERA_SET_RE.sub(_scale, html)


def prepare_document(html: str, zoom_factor: float = DEFAULT_ZOOM_FACTOR) -> str:
    """Apply both passes in the order the host uses."""
    return zoom_camera(hide_overlay_text(html), zoom_factor)
