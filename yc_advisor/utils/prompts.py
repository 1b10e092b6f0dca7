"""
Advisor and summarizer prompts, plus the fixed answers sent without a model call.
All texts live in config/prompts.yaml; the file is read once per process.
"""

import yaml
from dataclasses import dataclass
from pathlib import Path
from functools import lru_cache

PROMPTS_PATH = Path(__file__).parent.parent.parent / "config" / "prompts.yaml"

# (section, key) of every text the services read
_KEYS = {
    "advisor_template": ("advisor", "prompt_template"),
    "no_results_message": ("constants", "no_results_message"),
    "apology_message": ("constants", "apology_message"),
    "summary_system_message": ("summarization", "system_message"),
    "summary_template": ("summarization", "prompt_template"),
}


@dataclass(frozen=True)
class AdvisorPrompts:
    """
    Texts used by the responder and the summary service.

    advisor_template takes chat_history, query and results; summary_template
    takes current_summary and conversation.
    """

    advisor_template: str
    no_results_message: str
    apology_message: str
    summary_system_message: str
    summary_template: str


@lru_cache(maxsize=1)
def load_prompts() -> dict:
    """
    Loads the raw prompt sections from config/prompts.yaml.

    Raises:
        FileNotFoundError: If prompts.yaml is not found
    """
    with open(PROMPTS_PATH, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def build_prompts(sections: dict) -> AdvisorPrompts:
    """
    Picks the advisor texts out of parsed prompt sections.

    Raises:
        ValueError: If a text is missing or is not a string
    """
    texts = {}
    for name, (section, key) in _KEYS.items():
        value = (sections.get(section) or {}).get(key)
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"Prompt '{section}.{key}' is missing in {PROMPTS_PATH.name}")
        texts[name] = value
    return AdvisorPrompts(**texts)


@lru_cache(maxsize=1)
def get_prompts() -> AdvisorPrompts:
    """The advisor texts from config/prompts.yaml, validated once."""
    return build_prompts(load_prompts())
