"""
Unit tests for Intent normalisation and the rule-based extractor.
"""
import pytest

from media_discovery.models.schemas import Intent, MediaType
from media_discovery.services.intent import RuleBasedIntentExtractor, default_intent


class TestIntentModel:
    def test_default_intent_is_unconstrained(self):
        intent = default_intent()
        assert intent.titles == ()
        assert intent.genres == ()
        assert intent.media_types == ()
        assert intent.requested_count is None
        assert intent.is_requesting_suggestions is True

    def test_accepts_camel_case_keys(self):
        intent = Intent.model_validate({
            "titles": ["Forrest Gump"],
            "yearFrom": 1990,
            "yearTo": 1999,
            "runtimeMaxMinutes": 120,
            "mediaTypes": ["movies"],
            "requestedCount": 5,
            "isRequestingSuggestions": True,
        })
        assert intent.titles == ("Forrest Gump",)
        assert (intent.year_from, intent.year_to) == (1990, 1999)
        assert intent.runtime_max_minutes == 120
        assert intent.media_types == (MediaType.MOVIE,)
        assert intent.requested_count == 5
        assert intent.is_requesting_suggestions is True

    def test_normalises_lists(self):
        intent = Intent(
            genres=["Comedy", "comedy", " Drama "],
            moods=["Feel Good", "heartwarming", "dark"],
            titles=["", "  Inception "],
        )
        assert intent.genres == ("comedy", "drama")
        assert intent.moods == ("feel-good", "dark")
        assert intent.titles == ("Inception",)

    def test_media_type_aliases(self):
        intent = Intent(media_types=["Films", "TV Series", "shows", "podcast", MediaType.MOVIE])
        assert intent.media_types == (MediaType.MOVIE, MediaType.SHOW)

    def test_null_lists_from_model_output(self):
        intent = Intent.model_validate({"titles": None, "people": None, "mediaTypes": None})
        assert intent.titles == ()
        assert intent.people == ()
        assert intent.media_types == ()

    def test_non_positive_count_is_absent(self):
        assert Intent(requested_count=0).requested_count is None
        assert Intent(requested_count=-3).requested_count is None
        assert Intent(runtime_max_minutes=0).runtime_max_minutes is None

    def test_reversed_year_range_is_swapped(self):
        intent = Intent.model_validate({"yearFrom": 1999, "yearTo": 1990})
        assert (intent.year_from, intent.year_to) == (1990, 1999)

    def test_intent_is_immutable(self):
        intent = Intent(titles=["Inception"])
        with pytest.raises(Exception):
            intent.titles = ("Tenet",)

    def test_allows(self):
        assert Intent().allows(MediaType.SHOW)
        assert not Intent(media_types=["movie"]).allows(MediaType.SHOW)


class TestRuleBasedIntentExtractor:
    def setup_method(self):
        self.extractor = RuleBasedIntentExtractor()

    def test_bare_title_is_lookup(self):
        intent = self.extractor.parse("Inception")
        assert intent.titles == ("Inception",)
        assert intent.is_requesting_suggestions is False

    @pytest.mark.parametrize(
        "query, year",
        [
            ("Inception movie", None),
            ("Inception 2010", 2010),
            ("Inception (2010)", 2010),
        ],
    )
    def test_title_with_media_word_or_year_is_lookup(self, query, year):
        intent = self.extractor.parse(query)
        assert intent.titles == ("Inception",)
        assert intent.year_from == year
        assert intent.is_requesting_suggestions is False

    def test_title_with_media_word_keeps_media_type(self):
        intent = self.extractor.parse("Inception movie")
        assert intent.media_types == (MediaType.MOVIE,)

    def test_title_containing_mood_word(self):
        intent = self.extractor.parse("The Dark Knight")
        assert intent.titles == ("The Dark Knight",)
        assert intent.moods == ("dark",)
        assert intent.is_requesting_suggestions is False

    @pytest.mark.parametrize(
        "query",
        [
            "feel-good movies",
            "thrillers from the 80s",
            "comedies from 2015",
            "10 movies about space",
            "french romantic comedies",
            "movies with Tom Hanks",
            "dark",
        ],
    )
    def test_descriptive_query_has_no_title(self, query):
        intent = self.extractor.parse(query)
        assert intent.titles == ()
        assert intent.is_requesting_suggestions is True

    def test_similarity_query(self):
        intent = self.extractor.parse("feel-good movies like Forrest Gump from the 90s")
        assert intent.titles == ("Forrest Gump",)
        assert intent.moods == ("feel-good",)
        assert intent.media_types == (MediaType.MOVIE,)
        assert (intent.year_from, intent.year_to) == (1990, 1999)
        assert intent.is_requesting_suggestions is True

    def test_mood_only_query(self):
        intent = self.extractor.parse("feel-good movies")
        assert intent.moods == ("feel-good",)
        assert intent.titles == ()
        assert intent.media_types == (MediaType.MOVIE,)
        assert intent.is_requesting_suggestions is True

    @pytest.mark.parametrize(
        "query, expected",
        [
            ("top 5 comedies", 5),
            ("give me 3 thrillers", 3),
            ("10 movies about space", 10),
            ("comedies", None),
        ],
    )
    def test_requested_count(self, query, expected):
        assert self.extractor.parse(query).requested_count == expected

    @pytest.mark.parametrize(
        "query, expected",
        [
            ("comedies from 1990-1995", (1990, 1995)),
            ("thrillers from the 80s", (1980, 1989)),
            ("dramas from the early 2000s", (2000, 2003)),
            ("horror before 2000", (None, 1999)),
            ("action after 2010", (2011, None)),
            ("comedies from 2015", (2015, 2015)),
        ],
    )
    def test_year_ranges(self, query, expected):
        intent = self.extractor.parse(query)
        assert (intent.year_from, intent.year_to) == expected

    @pytest.mark.parametrize(
        "query, expected",
        [
            ("sci-fi movies under 2 hours", 120),
            ("comedies less than 100 minutes", 100),
            ("dramas under 1.5 hours", 90),
        ],
    )
    def test_runtime_ceiling(self, query, expected):
        assert self.extractor.parse(query).runtime_max_minutes == expected

    def test_genres_and_aliases(self):
        intent = self.extractor.parse("sci-fi thrillers")
        assert intent.genres == ("sci-fi", "thriller")

    def test_action_packed_is_mood_not_genre(self):
        intent = self.extractor.parse("action-packed shows")
        assert intent.moods == ("action-packed",)
        assert intent.genres == ()
        assert intent.media_types == (MediaType.SHOW,)

    def test_show_me_is_not_a_media_type(self):
        intent = self.extractor.parse("show me 5 movies")
        assert intent.media_types == (MediaType.MOVIE,)
        assert intent.requested_count == 5

    def test_people(self):
        intent = self.extractor.parse("movies with Tom Hanks directed by Robert Zemeckis")
        assert intent.people == ("Tom Hanks", "Robert Zemeckis")

    def test_language(self):
        intent = self.extractor.parse("french romantic comedies")
        assert intent.original_language == "fr"
        assert intent.moods == ("romantic",)
        assert intent.genres == ("comedies",)

    def test_descriptive_like_is_not_a_title(self):
        intent = self.extractor.parse("something like a cozy comedy")
        assert intent.titles == ()
        assert intent.is_requesting_suggestions is True

    def test_quoted_title_with_media_type_is_lookup(self):
        intent = self.extractor.parse('"Breaking Bad" series')
        assert intent.titles == ("Breaking Bad",)
        assert intent.is_requesting_suggestions is False

    @pytest.mark.asyncio
    async def test_extract_is_async(self):
        intent = await self.extractor.extract("Inception")
        assert intent.titles == ("Inception",)
