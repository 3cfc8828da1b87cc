"""
HTML builders shared across test modules.
"""

import json
from typing import Any

SENTENCE = "The council voted on Tuesday to approve the annual budget after a long debate. "


def make_prose(length: int, sentence: str = SENTENCE) -> str:
    """Plain prose of exactly ``length`` characters with no trailing whitespace."""
    text = (sentence * (length // len(sentence) + 2))[:length]
    if text.endswith(" "):
        text = text[:-1] + "x"
    return text


def page(body: str, head: str = "") -> str:
    return f"<html><head>{head}</head><body>{body}</body></html>"


def json_ld(data: Any) -> str:
    return f'<script type="application/ld+json">{json.dumps(data)}</script>'
