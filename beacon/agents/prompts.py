"""System prompt loading.

The cache is an ordinary object owned by whoever builds the agents (usually
the CLI, once per process), not module state.
"""

import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"

PROMPT_FILES = {
    "task_assignment": "TASK_ASSIGNMENT.md",
}

FALLBACK_PROMPTS = {
    "task_assignment": (
        "You assign unassigned todo tasks to project members. "
        "Return JSON only and follow the response schema."
    ),
}


class PromptCache:
    """Load prompts once and remember where each came from."""

    def __init__(self, prompt_dir: Optional[Path] = None):
        """Initialize prompt cache.

        Args:
            prompt_dir: Directory with prompt overrides (packaged templates otherwise)
        """
        self.prompt_dir = Path(prompt_dir) if prompt_dir else TEMPLATES_DIR
        self._prompts: dict[str, str] = {}
        self._logged: set[str] = set()

    def _log_source(self, key: str, source: str, detail: str = "") -> None:
        if key in self._logged:
            return
        self._logged.add(key)
        if source == "markdown":
            logger.info(f"Loaded {key} prompt from {self.prompt_dir}")
        else:
            logger.warning(f"Using fallback {key} prompt{': ' + detail if detail else ''}")

    def get(self, key: str) -> str:
        """Return the prompt text for ``key``.

        Raises:
            KeyError: If ``key`` is not a known prompt
        """
        cached = self._prompts.get(key)
        if cached is not None:
            return cached

        path = self.prompt_dir / PROMPT_FILES[key]
        try:
            content = path.read_text(encoding="utf-8").strip()
        except OSError as e:
            content = ""
            detail = str(e)
        else:
            detail = "prompt file was empty"

        if content:
            self._log_source(key, "markdown")
        else:
            content = FALLBACK_PROMPTS[key]
            self._log_source(key, "fallback", detail)

        self._prompts[key] = content
        return content

    def clear(self) -> None:
        """Forget loaded prompts and logged sources."""
        self._prompts.clear()
        self._logged.clear()
