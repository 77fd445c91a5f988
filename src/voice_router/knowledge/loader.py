"""Loader for the critical-answer override table.

The table is product content: an ordered JSON list of
``{"name", "patterns", "answer"}`` entries. Order matters because the
first entry with a matching pattern wins, so narrow topics must come
before the general ones they overlap with.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

KNOWLEDGE_PATH = Path(__file__).parent / "critical_answers.json"


@dataclass(frozen=True)
class CriticalAnswer:
    name: str
    patterns: Tuple[str, ...]
    answer: str

    def matches(self, query_lower: str) -> bool:
        return any(pattern in query_lower for pattern in self.patterns)


def load_critical_answers(path: Union[str, Path, None] = None) -> List[CriticalAnswer]:
    with open(path or KNOWLEDGE_PATH, "r", encoding="utf-8") as f:
        entries = json.load(f)
    return [
        CriticalAnswer(
            name=entry.get("name", ""),
            patterns=tuple(p.lower() for p in entry.get("patterns", [])),
            answer=entry["answer"],
        )
        for entry in entries
    ]


def match_critical_answer(query: str, table: Sequence[CriticalAnswer]) -> Optional[CriticalAnswer]:
    """Return the first entry whose pattern occurs in ``query`` (case-insensitive)."""
    query_lower = (query or "").lower()
    for entry in table:
        if entry.matches(query_lower):
            return entry
    return None
