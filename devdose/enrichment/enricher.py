"""Per-post enrichment: code-derived tags, reading time and prerequisites."""

from __future__ import annotations

import math
import re

from devdose.models import EnrichmentData, ProcessedPost

WORDS_PER_SECOND = 200 / 60
SECONDS_PER_CODE_LINE = 2

FRAMEWORK_PATTERNS: dict[str, tuple[re.Pattern, ...]] = {
    "react": tuple(
        re.compile(hook)
        for hook in (
            "useState",
            "useEffect",
            "useCallback",
            "useMemo",
            "useRef",
            "useContext",
            "useReducer",
        )
    ),
    "vue": tuple(
        re.compile(p) for p in (r"ref\(", r"computed\(", r"watch\(", r"onMounted", r"reactive\(")
    ),
    "angular": tuple(
        re.compile(p) for p in (r"@Component", r"@Injectable", r"@Input", r"@Output", r"ngOnInit")
    ),
    "css": tuple(
        re.compile(p)
        for p in (r"grid", r"flexbox", r"animation", r"@media", r"transform", r"transition")
    ),
}

CONCEPT_PATTERNS: tuple[tuple[str, re.Pattern], ...] = (
    ("async", re.compile(r"async|await|Promise")),
    ("array-methods", re.compile(r"map|filter|reduce")),
    ("oop", re.compile(r"class |extends ")),
    ("functions", re.compile(r"=>|function")),
)

_BASE_PREREQUISITES = {
    "react": ("JavaScript", "React basics"),
    "typescript": ("JavaScript",),
    "vue": ("JavaScript", "Vue basics"),
    "angular": ("TypeScript", "Angular basics"),
}
_ADVANCED_PREREQUISITES = {
    "react": ("React Hooks",),
    "typescript": ("TypeScript generics",),
}


def extract_tags(code: str) -> list[str]:
    """Framework and concept tags detected in the code, first-seen order."""
    tags = [
        tag
        for tag, patterns in FRAMEWORK_PATTERNS.items()
        if any(pattern.search(code) for pattern in patterns)
    ]
    tags.extend(tag for tag, pattern in CONCEPT_PATTERNS if pattern.search(code))
    return list(dict.fromkeys(tags))


def reading_time_seconds(code: str, explanation: str) -> int:
    words = len(explanation.split())
    lines = len(code.split("\n"))
    return math.ceil(words / WORDS_PER_SECOND + lines * SECONDS_PER_CODE_LINE)


def prerequisites_for(tags: list[str], difficulty: str) -> list[str]:
    found: list[str] = []
    for tag, prereqs in _BASE_PREREQUISITES.items():
        if tag in tags:
            found.extend(prereqs)
    if difficulty == "advanced":
        for tag, prereqs in _ADVANCED_PREREQUISITES.items():
            if tag in tags:
                found.extend(prereqs)
    return list(dict.fromkeys(found))


def enrich_post(post: ProcessedPost) -> EnrichmentData:
    """Phase-one enrichment. Related posts are linked later, across the batch."""
    return EnrichmentData(
        extracted_tags=extract_tags(post.code),
        reading_time_seconds=reading_time_seconds(post.code, post.explanation),
        prerequisites=prerequisites_for(post.tags, post.difficulty),
    )
