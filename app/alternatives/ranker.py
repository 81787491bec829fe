import json
import re
from typing import Any

from openai import OpenAI
from pydantic import ValidationError

from app.alternatives.scoring import round_half_up
from app.models.alternatives import AIRanking, RankingFailed, RankingOk, RankingOutcome
from app.models.exercise import Exercise
from app.settings import settings
from app.utils.log import logger

MAX_REASON_LENGTH = 100

# Rough per-request and per-candidate token costs, for accounting only
BASE_TOKEN_ESTIMATE = 150
TOKENS_PER_CANDIDATE = 10

JSON_BLOCK = re.compile(r"\{.*\}", re.DOTALL)

REASON_LANGUAGES = {"es": "Spanish", "en": "English"}

SYSTEM_PROMPT = "You are an expert exercise physiologist. Respond only with valid JSON."

RANKING_PROMPT = """Given a source exercise and a list of candidate alternatives, rank the candidates by how well they substitute for the source.

Source exercise:
- Name: {source_name}
- Category: {source_category}
- Muscle groups: {source_muscles}
- Equipment: {source_equipment}
- Movement pattern: {source_movement_pattern}
- Difficulty: {source_difficulty}

Equipment available at the gym: {available_equipment}

Candidate alternatives:
{candidates_list}

For each candidate provide:
1. A similarity score (0-100) considering muscle activation, movement pattern and practical substitutability
2. A short reason (at most 15 words, in {language}) explaining why it is a good alternative

Respond ONLY with valid JSON in exactly this format:
{{
  "rankings": [
    {{"id": "uuid", "score": 85, "reason": "Same pressing pattern, trains the same muscles"}}
  ]
}}

Rules:
- Prefer exercises that use the available equipment
- Treat bodyweight exercises as highly versatile
- Higher score = better substitute
- Focus on functional similarity, not just muscle overlap"""


class RankerError(Exception):
    """Base class for external ranker errors."""

    pass


class RankerNotConfiguredError(RankerError):
    pass


class RankingParseError(RankerError):
    pass


def estimate_tokens(candidate_count: int) -> int:
    return BASE_TOKEN_ESTIMATE + candidate_count * TOKENS_PER_CANDIDATE


def _join(values: list[str], empty: str) -> str:
    return ", ".join(values) if values else empty


def format_candidates(candidates: list[Exercise]) -> str:
    blocks = []
    for i, c in enumerate(candidates, start=1):
        blocks.append(
            f"{i}. [{c.exercise_id}] {c.name}\n"
            f"   Muscles: {_join(c.muscle_groups, 'N/A')}\n"
            f"   Equipment: {_join(c.equipment, 'None')}\n"
            f"   Pattern: {c.movement_pattern or 'N/A'}\n"
            f"   Difficulty: {c.difficulty or 'N/A'}"
        )
    return "\n\n".join(blocks)


def build_prompt(
    source: Exercise,
    candidates: list[Exercise],
    available_equipment: list[str],
    locale: str | None = None,
) -> str:
    language = REASON_LANGUAGES.get(
        (locale or settings.REASON_LOCALE).lower(), REASON_LANGUAGES["es"]
    )
    return RANKING_PROMPT.format(
        source_name=source.name,
        source_category=source.category or "N/A",
        source_muscles=_join(source.muscle_groups, "N/A"),
        source_equipment=_join(source.equipment, "None"),
        source_movement_pattern=source.movement_pattern or "N/A",
        source_difficulty=source.difficulty or "N/A",
        available_equipment=_join(available_equipment, "None"),
        candidates_list=format_candidates(candidates),
        language=language,
    )


def parse_rankings(content: str) -> list[AIRanking]:
    """
    Pull the rankings out of a model reply. Entries that are not
    {id: str, score: number, reason: str} are dropped; scores are clamped
    to 0-100 and reasons truncated.
    """
    match = JSON_BLOCK.search(content)
    if not match:
        raise RankingParseError(f"No JSON found in ranker response: {content[:100]}")

    try:
        parsed: Any = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise RankingParseError(f"Malformed JSON in ranker response: {e}") from e

    raw_rankings = parsed.get("rankings") if isinstance(parsed, dict) else None
    if not isinstance(raw_rankings, list):
        raise RankingParseError("Invalid rankings format from ranker")

    rankings: list[AIRanking] = []
    for raw in raw_rankings:
        try:
            ranking = AIRanking.model_validate(raw, strict=True)
        except ValidationError:
            logger.debug(f"Dropping malformed ranking entry: {raw!r}")
            continue

        score = round_half_up(min(100.0, max(0.0, ranking.score)))
        rankings.append(
            AIRanking(
                id=ranking.id,
                score=score,
                reason=ranking.reason[:MAX_REASON_LENGTH],
            )
        )

    return sorted(rankings, key=lambda r: r.score, reverse=True)


class OpenAIRanker:
    """
    Ranks candidates with an OpenAI chat model. rank() never raises: every
    failure comes back as RankingFailed so the caller can fall back.
    """

    def __init__(
        self,
        client: OpenAI | None = None,
        *,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        locale: str | None = None,
    ):
        self._client = client
        self.model = model or settings.OPENAI_MODEL
        self.temperature = (
            settings.OPENAI_TEMPERATURE if temperature is None else temperature
        )
        self.max_tokens = max_tokens or settings.OPENAI_MAX_TOKENS
        self.locale = locale

    def _get_client(self) -> OpenAI:
        if self._client is None:
            if not settings.openai_configured:
                raise RankerNotConfiguredError("OPENAI_API_KEY is not configured")
            self._client = OpenAI(api_key=settings.OPENAI_API_KEY)
        return self._client

    def _complete(self, prompt: str, model: str) -> str:
        client = self._get_client()
        response = client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            response_format={"type": "json_object"},
        )
        if not response.choices:
            raise RankingParseError("Ranker returned no choices")
        return (response.choices[0].message.content or "").strip()

    def rank(
        self,
        source: Exercise,
        candidates: list[Exercise],
        available_equipment: list[str],
        *,
        model: str | None = None,
    ) -> RankingOutcome:
        model = model or self.model
        prompt = build_prompt(source, candidates, available_equipment, self.locale)

        try:
            content = self._complete(prompt, model)
            rankings = parse_rankings(content)
        except Exception as e:
            logger.exception(
                f"AI ranking failed for exercise {source.exercise_id} with model {model}"
            )
            return RankingFailed(reason=f"{type(e).__name__}: {e}")

        logger.info(
            f"AI ranked {len(rankings)}/{len(candidates)} candidates "
            f"for exercise {source.exercise_id}"
        )
        return RankingOk(rankings=rankings, tokens_used=estimate_tokens(len(candidates)))
