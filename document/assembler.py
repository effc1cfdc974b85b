"""
document/assembler.py
---------------------
Accumulates a streamed generation response.

Content fragments are appended to the output buffer. Reasoning fragments go
to a scratch buffer from which a short progress label is derived: the model
tends to emphasize section headers as **Header**, so the most recent such
span is used as the current stage of work.
"""

import re
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

from common.io_utils import log

EMPHASIS_RE = re.compile(r"\*\*([^*]+)\*\*")

DEFAULT_PLACEHOLDER = "Analyzing image structure..."
PLACEHOLDER_THRESHOLD = 100


@dataclass(frozen=True)
class RawFragment:
    """One incremental unit of a streamed response."""
    text: str
    is_reasoning: bool = False


class StreamAssembler:
    """
    Consumes RawFragments in arrival order.

    Attributes:
      buffer : accumulated final-content text
      label  : current progress label (None until the first reasoning fragment)
    """

    def __init__(
        self,
        on_label: Optional[Callable[[str], None]] = None,
        placeholder: str = DEFAULT_PLACEHOLDER,
        placeholder_threshold: int = PLACEHOLDER_THRESHOLD,
    ):
        self.on_label = on_label
        self.placeholder = placeholder
        self.placeholder_threshold = placeholder_threshold
        self.reset()

    def reset(self) -> None:
        self._parts: List[str] = []
        self._reasoning = ""
        self.label: Optional[str] = None

    @property
    def buffer(self) -> str:
        return "".join(self._parts)

    def feed(self, fragment: RawFragment) -> None:
        if not fragment.text:
            return
        if fragment.is_reasoning:
            self._reasoning += fragment.text
            self._update_label()
        else:
            self._parts.append(fragment.text)

    def feed_all(self, fragments: Iterable[RawFragment]) -> str:
        """Feed a whole fragment sequence; errors raised by the source propagate."""
        for fragment in fragments:
            self.feed(fragment)
        return self.finish()

    def finish(self) -> str:
        """End of stream: drop the reasoning scratch buffer, return the content."""
        self._reasoning = ""
        return self.buffer

    def _update_label(self) -> None:
        headers = EMPHASIS_RE.findall(self._reasoning)
        if headers:
            self._set_label(headers[-1].strip())
        elif len(self._reasoning) < self.placeholder_threshold:
            self._set_label(self.placeholder)

    def _set_label(self, label: str) -> None:
        if label == self.label:
            return
        self.label = label
        log(f"Progress: {label}", "DEBUG")
        if self.on_label:
            self.on_label(label)
