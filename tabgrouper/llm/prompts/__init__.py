"""
Prompt Management Module

Loads and manages LLM prompts from text files shipped with the package.
This allows experimenting with prompt versions without modifying code.
"""

from __future__ import annotations

import json
import os
from collections.abc import Iterable
from pathlib import Path

from tabgrouper.grouping.models import GroupColor, Tab

# Get the prompts directory
PROMPTS_DIR = Path(__file__).parent

# Set TABGROUPER_GROUPING_PROMPT to use an alternate prompt file
GROUPING_PROMPT_NAME = os.getenv("TABGROUPER_GROUPING_PROMPT", "grouping_system_prompt")


class PromptLoader:
    """Load and cache prompt templates from files"""

    def __init__(self, prompts_dir: Path = PROMPTS_DIR):
        self.prompts_dir = prompts_dir
        self._cache: dict[str, str] = {}

    def load_prompt(self, prompt_name: str) -> str:
        """
        Load a prompt template from file.

        Args:
            prompt_name: Name of the prompt file (without .txt extension)

        Returns:
            Prompt template string
        """
        if prompt_name not in self._cache:
            prompt_path = self.prompts_dir / f"{prompt_name}.txt"

            if not prompt_path.exists():
                raise FileNotFoundError(f"Prompt file not found: {prompt_path}")

            with open(prompt_path, encoding="utf-8") as f:
                self._cache[prompt_name] = f.read()

        return self._cache[prompt_name]

    def get_system_prompt(self, prompt_name: str = GROUPING_PROMPT_NAME) -> str:
        """Get the grouping instructions with the allowed colors injected."""
        colors = [color.value for color in GroupColor]
        template = self.load_prompt(prompt_name)
        return template.format(colors=", ".join(colors), color_choices="|".join(colors)).strip()


def build_user_message(tabs: Iterable[Tab]) -> str:
    """Render the tab list the model is asked to organize."""
    tab_data = [{"id": tab.id, "title": tab.title, "url": tab.url} for tab in tabs]
    return f"Organize these tabs:\n{json.dumps(tab_data, indent=2, ensure_ascii=False)}"


# Global instance
_loader = PromptLoader()


def get_system_prompt() -> str:
    """Convenience function for the default grouping prompt"""
    return _loader.get_system_prompt()
