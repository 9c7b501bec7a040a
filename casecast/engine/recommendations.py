"""
Scenario Recommendations.

Scores a JSON corpus of past investigation scenarios against the case
keywords and the client's own words:

    weight  = Σ over corpus tokens: +2 if in keywords, else +0.8 if said by the client
    overlap = clamp(weight / token_count, 0, 1)

Scenarios with overlap > 0.08 are returned, best first, at most four.
"""

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Union

import structlog

from casecast.config import settings
from casecast.engine.numeric import clamp
from casecast.exceptions import ConfigurationError
from casecast.schemas.insights import ScenarioRecommendation

logger = structlog.get_logger(__name__)

# ── Configuration ─────────────────────────────────────────────────────────

KEYWORD_WEIGHT: float = 2.0
CONTENT_WEIGHT: float = 0.8
MIN_OVERLAP: float = 0.08
HIGHLIGHT_OVERLAP: float = 0.45
MAX_RECOMMENDATIONS: int = 4
SUMMARY_LENGTH: int = 160

HIGH_SIMILARITY = "Closely matches the case description; review first."
REFERENCE_SIMILARITY = "A similar case record worth consulting."

_NON_WORD = re.compile(r"[^a-z0-9가-힣\s]")
_WHITESPACE = re.compile(r"\s+")
_TITLE_SEPARATORS = re.compile(r"[_-]+")


def tokenize(text: str) -> list[str]:
    return _NON_WORD.sub(" ", text.lower()).split()


@dataclass(frozen=True)
class CorpusEntry:
    id: str
    title: str
    text: str                       # lowercased searchable text


class ScenarioCorpus:
    """In-memory scenario corpus loaded from a JSON object of id → record."""

    def __init__(self, entries: Iterable[CorpusEntry] = ()):
        self.entries = list(entries)

    def __len__(self) -> int:
        return len(self.entries)

    @classmethod
    def from_mapping(cls, data: dict) -> "ScenarioCorpus":
        entries = []
        for scenario_id, record in data.items():
            record = record if isinstance(record, dict) else {}
            raw_title = record.get("title")
            title = (
                raw_title.strip()
                if isinstance(raw_title, str) and raw_title.strip()
                else _TITLE_SEPARATORS.sub(" ", scenario_id).strip()
            )
            text = json.dumps(record, ensure_ascii=False, separators=(",", ":")).lower()
            entries.append(CorpusEntry(id=str(scenario_id), title=title, text=text))
        return cls(entries)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ScenarioCorpus":
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigurationError(
                f"Scenario corpus could not be loaded: {path}",
                details={"path": str(path), "error": str(exc)},
            ) from exc
        if not isinstance(data, dict):
            raise ConfigurationError(f"Scenario corpus must be a JSON object: {path}")

        corpus = cls.from_mapping(data)
        logger.info("scenario_corpus_loaded", path=str(path), scenarios=len(corpus))
        return corpus

    def rank(
        self,
        keywords: Iterable[str],
        content: str,
        limit: int = MAX_RECOMMENDATIONS,
    ) -> list[ScenarioRecommendation]:
        keyword_set = {k.lower() for k in keywords}
        content_tokens = set(tokenize(content))

        scored = []
        for entry in self.entries:
            tokens = tokenize(entry.text)
            weight = 0.0
            for token in tokens:
                if token in keyword_set:
                    weight += KEYWORD_WEIGHT
                elif token in content_tokens:
                    weight += CONTENT_WEIGHT
            overlap = clamp(weight / (len(tokens) or 1), 0, 1)
            if overlap <= MIN_OVERLAP:
                continue
            scored.append(ScenarioRecommendation(
                id=entry.id,
                title=entry.title,
                similarity=overlap,
                summary=_WHITESPACE.sub(" ", entry.text[:SUMMARY_LENGTH]) + "...",
                highlight=HIGH_SIMILARITY if overlap > HIGHLIGHT_OVERLAP else REFERENCE_SIMILARITY,
            ))

        scored.sort(key=lambda r: r.similarity, reverse=True)
        return scored[:limit]


def load_corpus(path: Optional[Union[str, Path]] = None) -> ScenarioCorpus:
    return ScenarioCorpus.from_file(path or settings.scenario_corpus_path)
