"""
Rule-based intent extraction.
Deterministic heuristics used when no model provider is configured,
plus the default intent substituted when extraction fails.
"""
import logging
import re
from typing import List, Optional, Tuple

from media_discovery.config.lexicon import (
    GENRE_ALIASES,
    KNOWN_GENRES,
    LANGUAGE_NAMES,
    MEDIA_TYPE_ALIASES,
    MOOD_ALIASES,
    MOOD_GENRES,
    normalize_mood,
)
from media_discovery.models.schemas import Intent

logger = logging.getLogger(__name__)

MAX_REQUESTED_COUNT = 100


def default_intent() -> Intent:
    """Unconstrained intent: nothing requested, suggestions wanted."""
    return Intent(is_requesting_suggestions=True)


def _keyword_pattern(keyword: str) -> re.Pattern:
    """Word-bounded pattern; hyphens and spaces are interchangeable."""
    parts = re.split(r"[\s-]+", keyword)
    body = r"[\s-]?".join(re.escape(p) for p in parts)
    return re.compile(rf"\b{body}s?\b", re.I)


class RuleBasedIntentExtractor:
    """
    IntentExtractor implementation built on regular expressions.
    Covers counts, year ranges, runtime ceilings, media types, moods,
    genres, languages, people and similarity-cued titles.
    """

    RE_COUNT_BEFORE = re.compile(r"\b(?:top|best|give me|show me|find|list|recommend)\s+(\d{1,3})\b", re.I)
    RE_COUNT_AFTER = re.compile(r"\b(\d{1,3})\s+(?:movies|films|shows|series|titles|picks|recommendations)\b", re.I)

    RE_RANGE = re.compile(r"\b(19\d{2}|20\d{2})\s*(?:-|–|to|through)\s*(19\d{2}|20\d{2})\b", re.I)
    RE_BEFORE = re.compile(r"\b(?:before|pre)[\s-]+(19\d{2}|20\d{2})\b", re.I)
    RE_AFTER = re.compile(r"\b(?:after|post|since)[\s-]+(19\d{2}|20\d{2})\b", re.I)
    RE_CENTURY_DECADE = re.compile(r"\b(?:(early|mid|late)[\s-]+)?(19\d0|20\d0)'?s\b", re.I)
    RE_DECADE = re.compile(r"(?:\b(early|mid|late)[\s-]+)?(?<![\w])'?(\d0)'?s\b", re.I)
    RE_YEAR = re.compile(r"\b(19\d{2}|20\d{2})\b")

    RE_RUNTIME = re.compile(
        r"\b(?:under|less than|shorter than|at most|no longer than|max(?:imum)?|within)\s+"
        r"(\d+(?:\.\d+)?)\s*(hours?|hrs?|h|minutes?|mins?|m)\b",
        re.I,
    )

    RE_MEDIA = re.compile(
        r"\b(tv\s+shows?|tv\s+series|television|series|shows?(?!\s+me\b)|movies?|films?|cinema|tv)\b",
        re.I,
    )

    # Capitalised multi-word names, matched case-sensitively on the raw query
    RE_PEOPLE = re.compile(
        r"\b(?:[Ww]ith|[Ss]tarring|[Ff]eaturing|[Dd]irected by|[Bb]y)\s+"
        r"([A-Z][\w'.-]*(?:\s+[A-Z][\w'.-]*)+)"
    )

    RE_SIMILAR_CUE = re.compile(
        r"(?<!would )(?<!'d )\b(?:like|similar to|such as|in the vein of|reminds me of)\s+(.+)",
        re.I,
    )
    RE_TITLE_STOP = re.compile(
        r"\b(?:from|in the|with|starring|featuring|directed|but|and|or|under|before|after|"
        r"that|which|for|released|set in|made in)\b|[,;.!?()]",
        re.I,
    )
    RE_QUOTED = re.compile(r"[\"“]([^\"”]+)[\"”]")

    RE_SUGGESTION_CUE = re.compile(
        r"\b(?:like|similar|recommend\w*|suggest\w*|what should i watch|something|some|"
        r"top|best|ideas?)\b",
        re.I,
    )

    # "movies about space" names a topic, not a title
    RE_TOPIC = re.compile(r"\babout\s+.+$", re.I)

    LEADING_FILLER = frozenset({"from", "in", "of", "with", "for", "and", "or", "to", "released", "made"})
    TRAILING_FILLER = LEADING_FILLER | {"the", "a", "an", "set"}
    DESCRIPTIVE_FILLER = re.compile(
        r"\b(?:a|an|the|some|something|good|great|best|top|new|recent|popular|classic|any|"
        r"from|in|of|for|and|or)\b",
        re.I,
    )

    def __init__(self) -> None:
        self._mood_patterns = [
            (_keyword_pattern(key), key)
            for key in sorted({*MOOD_GENRES, *MOOD_ALIASES}, key=len, reverse=True)
        ]
        self._genre_patterns = [
            (_keyword_pattern(key), key)
            for key in sorted({*KNOWN_GENRES, *GENRE_ALIASES}, key=len, reverse=True)
        ]
        self._language_patterns = [
            (re.compile(rf"\b{name}\b", re.I), code) for name, code in LANGUAGE_NAMES.items()
        ]

    async def extract(self, query: str) -> Intent:
        return self.parse(query)

    def parse(self, query: str) -> Intent:
        """Parse query text into an Intent."""
        text = " ".join(query.split())

        requested_count = self._extract_count(text)
        year_from, year_to = self._extract_year_range(text)
        runtime = self._extract_runtime(text)
        media_types = self._extract_media_types(text)
        claimed: List[Tuple[int, int]] = []
        moods = self._match_keywords(text, self._mood_patterns, claimed)
        genres = self._match_keywords(text, self._genre_patterns, claimed)
        language = self._extract_language(text)
        people = self._extract_people(text)
        titles = self._extract_titles(text)
        suggestion_cue = bool(self.RE_SUGGESTION_CUE.search(text))

        if titles:
            lookup = self._is_lookup(text, titles)
        else:
            # "Inception", "Inception 2010", "The Dark Knight": whatever is
            # left once counts, years, runtimes, media words and people are
            # removed goes to the resolver as a title
            residual = None if suggestion_cue else self._residual_title(text)
            titles = [residual] if residual else []
            lookup = bool(residual) and requested_count is None

        intent = Intent(
            titles=titles,
            people=people,
            genres=genres,
            moods=[normalize_mood(m) for m in moods],
            year_from=year_from,
            year_to=year_to,
            runtime_max_minutes=runtime,
            media_types=media_types,
            requested_count=requested_count,
            is_requesting_suggestions=suggestion_cue or not lookup,
            original_language=language,
        )
        logger.debug(f"Rule-based intent for '{text}': {intent.model_dump(mode='json')}")
        return intent

    # -------------------------------------------------------------------------
    # Extractors
    # -------------------------------------------------------------------------

    def _extract_count(self, text: str) -> Optional[int]:
        for pattern in (self.RE_COUNT_BEFORE, self.RE_COUNT_AFTER):
            match = pattern.search(text)
            if match:
                count = int(match.group(1))
                if 1 <= count <= MAX_REQUESTED_COUNT:
                    return count
        return None

    def _extract_year_range(self, text: str) -> Tuple[Optional[int], Optional[int]]:
        match = self.RE_RANGE.search(text)
        if match:
            start, end = int(match.group(1)), int(match.group(2))
            return min(start, end), max(start, end)

        match = self.RE_BEFORE.search(text)
        if match:
            return None, int(match.group(1)) - 1
        match = self.RE_AFTER.search(text)
        if match:
            return int(match.group(1)) + 1, None

        match = self.RE_CENTURY_DECADE.search(text)
        if match:
            return self._decade_range(int(match.group(2)), match.group(1))

        match = self.RE_DECADE.search(text)
        if match:
            decade = int(match.group(2))
            base = 1900 if decade >= 30 else 2000
            return self._decade_range(base + decade, match.group(1))

        match = self.RE_YEAR.search(text)
        if match:
            year = int(match.group(1))
            return year, year
        return None, None

    @staticmethod
    def _decade_range(start: int, prefix: Optional[str]) -> Tuple[int, int]:
        prefix = (prefix or "").lower()
        if prefix == "early":
            return start, start + 3
        if prefix == "mid":
            return start + 3, start + 6
        if prefix == "late":
            return start + 6, start + 9
        return start, start + 9

    def _extract_runtime(self, text: str) -> Optional[int]:
        match = self.RE_RUNTIME.search(text)
        if not match:
            return None
        amount = float(match.group(1))
        unit = match.group(2).lower()
        minutes = amount * 60 if unit.startswith("h") else amount
        return int(round(minutes)) or None

    def _extract_media_types(self, text: str) -> List[str]:
        found: List[str] = []
        for match in self.RE_MEDIA.finditer(text):
            phrase = " ".join(match.group(1).lower().split())
            media_type = MEDIA_TYPE_ALIASES.get(phrase)
            if media_type and media_type not in found:
                found.append(media_type)
        return found

    @staticmethod
    def _match_keywords(
        text: str,
        patterns: List[Tuple[re.Pattern, str]],
        claimed: List[Tuple[int, int]],
    ) -> List[str]:
        """Longest keywords first; a span already claimed is not matched again."""
        found: List[Tuple[int, str]] = []
        for pattern, key in patterns:
            for match in pattern.finditer(text):
                span = match.span()
                if any(span[0] < end and start < span[1] for start, end in claimed):
                    continue
                claimed.append(span)
                found.append((span[0], key))
                break
        found.sort()
        keys: List[str] = []
        for _, key in found:
            if key not in keys:
                keys.append(key)
        return keys

    def _extract_language(self, text: str) -> Optional[str]:
        for pattern, code in self._language_patterns:
            if pattern.search(text):
                return code
        return None

    def _extract_people(self, text: str) -> List[str]:
        people: List[str] = []
        for match in self.RE_PEOPLE.finditer(text):
            name = match.group(1).strip(" .'")
            if name and name not in people:
                people.append(name)
        return people

    def _extract_titles(self, text: str) -> List[str]:
        titles = [m.group(1).strip() for m in self.RE_QUOTED.finditer(text)]
        match = self.RE_SIMILAR_CUE.search(text)
        if match:
            remainder = match.group(1)
            stop = self.RE_TITLE_STOP.search(remainder)
            title = (remainder[:stop.start()] if stop else remainder).strip(" \"'“”")
            if title and title not in titles and not self._is_descriptive(title):
                titles.append(title)
        return titles

    def _residual_title(self, text: str) -> Optional[str]:
        """Query text minus the recognised constraint spans, if it still reads as a title."""
        patterns = (
            self.RE_COUNT_BEFORE, self.RE_COUNT_AFTER,
            self.RE_RANGE, self.RE_BEFORE, self.RE_AFTER,
            self.RE_CENTURY_DECADE, self.RE_DECADE, self.RE_YEAR,
            self.RE_RUNTIME, self.RE_MEDIA, self.RE_PEOPLE, self.RE_TOPIC,
        )
        chars = list(text)
        for pattern in patterns:
            for match in pattern.finditer(text):
                for i in range(*match.span()):
                    chars[i] = " "

        words = [w.strip("\"'“”()[],;") for w in "".join(chars).split()]
        words = [w for w in words if w]
        while words and words[0].lower() in self.LEADING_FILLER:
            words.pop(0)
        while words and words[-1].lower() in self.TRAILING_FILLER:
            words.pop()

        title = " ".join(words).strip(" -:?")
        if not title or self._is_descriptive(title):
            return None
        return title

    def _is_descriptive(self, phrase: str) -> bool:
        """True for phrases made only of genre, mood, media or language words ("like comedies")."""
        rest = phrase
        for patterns in (self._genre_patterns, self._mood_patterns):
            for pattern, _ in patterns:
                rest = pattern.sub(" ", rest)
        for pattern, _ in self._language_patterns:
            rest = pattern.sub(" ", rest)
        rest = self.RE_MEDIA.sub(" ", rest)
        rest = self.DESCRIPTIVE_FILLER.sub(" ", rest)
        return not re.sub(r"[\s\-,;:!?.'\"]+", "", rest)

    def _is_lookup(self, text: str, titles: List[str]) -> bool:
        """A query that is a title plus only a media word or a year reads as a lookup."""
        if not titles:
            return False
        rest = text
        for title in titles:
            rest = rest.replace(title, " ")
        rest = self.RE_MEDIA.sub(" ", rest)
        rest = self.RE_YEAR.sub(" ", rest)
        rest = re.sub(r"[\s\"'()]+", "", rest)
        return not rest
