"""Deterministic prompt construction for the bookmark classifier."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from extraction import ContentSnapshot


PROMPT_HEADINGS = 5
PROMPT_PARAGRAPHS = 3

_WHITESPACE_RE = re.compile(r"\s+")

_HEADER = (
    "You are an expert bookmark organizer. Your task is to classify a new bookmark into ONE of the "
    "following categories based on its title, URL and page content. The categories are defined in a "
    "hierarchical JSON structure.",
    "",
    'Your response MUST be the full path to the chosen category, like "Grandparent/Parent/Child". '
    "Do NOT add any other text, explanation, or markdown. If none of the categories fits, answer with "
    "a new path in the same format.",
)

_EXAMPLE_PATHS = {
    "en": ("Technology/Backend Development", "Finance & Business/Investing"),
    "zh": ("技术/后端开发与框架", "金融与商业/投资理财"),
}


def _examples(language: str) -> List[str]:
    backend_path, finance_path = _EXAMPLE_PATHS.get(language, _EXAMPLE_PATHS["en"])
    return [
        "Example:",
        'If the user wants to classify "Spring Boot Official Documentation", a good response would be '
        f'"{backend_path}".',
        'If the user wants to classify "A Guide to Investment Banking", a good response would be '
        f'"{finance_path}".',
    ]


_CLOSING = "Now, classify the following bookmark."


@dataclass
class PageAnalysis:
    """What a classification was based on, as shown to the user."""

    description: str = ""
    keywords: List[str] = field(default_factory=list)
    headings: List[str] = field(default_factory=list)
    paragraphs: List[str] = field(default_factory=list)


def _one_line(value: str) -> str:
    return _WHITESPACE_RE.sub(" ", value or "").strip()


def _content_block(snapshot: ContentSnapshot) -> List[str]:
    meta = snapshot.metadata
    lines = ["Page Content Analysis:"]
    if snapshot.title:
        lines.append(f"- Page Title: {_one_line(snapshot.title)}")
    if snapshot.url:
        lines.append(f"- URL: {snapshot.url}")
    if meta.description:
        lines.append(f"- Description: {_one_line(meta.description)}")
    if meta.keywords:
        lines.append(f"- Keywords: {', '.join(_one_line(item) for item in meta.keywords)}")
    headings = [_one_line(item) for item in snapshot.headings[:PROMPT_HEADINGS]]
    if headings:
        lines.append("- Main Headings:")
        lines.extend(f"  - {item}" for item in headings)
    paragraphs = [_one_line(item) for item in snapshot.paragraphs[:PROMPT_PARAGRAPHS]]
    if paragraphs:
        lines.append("- Main Paragraphs:")
        lines.extend(f"  - {item}" for item in paragraphs)
    return lines


def compose_prompt(
    title: str,
    url: str,
    taxonomy: Mapping[str, object],
    snapshot: Optional[ContentSnapshot],
    examples: str = "en",
) -> str:
    """Build the system prompt. Identical input yields identical output.

    ``examples`` picks the worked-example paths, ``en`` or ``zh`` for
    taxonomies kept in Chinese.
    """

    categories = json.dumps(taxonomy, ensure_ascii=False, indent=2)
    lines: List[str] = [
        *_HEADER,
        "",
        "Bookmark:",
        f"- Title: {_one_line(title)}",
        f"- URL: {url}",
        "",
        "Available Categories:",
        categories,
        "",
    ]
    if snapshot is not None and not snapshot.error:
        lines.extend(_content_block(snapshot))
        lines.append("")
    lines.extend(_examples(examples))
    lines.extend(["", _CLOSING, ""])
    return "\n".join(lines)


def build_user_message(title: str) -> str:
    return f'Bookmark to classify: "{title}"'


def summarize_snapshot(snapshot: Optional[ContentSnapshot]) -> Optional[PageAnalysis]:
    if snapshot is None or snapshot.error:
        return None
    analysis = PageAnalysis(
        description=snapshot.metadata.description,
        keywords=list(snapshot.metadata.keywords),
        headings=list(snapshot.headings[:PROMPT_HEADINGS]),
        paragraphs=list(snapshot.paragraphs[:PROMPT_PARAGRAPHS]),
    )
    if not (analysis.description or analysis.keywords or analysis.headings or analysis.paragraphs):
        return None
    return analysis
