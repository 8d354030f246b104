"""
Unit tests for CandidateResolver.
"""
import pytest

from media_discovery.clients.memory import InMemoryCatalogClient
from media_discovery.models.schemas import Intent, MediaType, SourceKind
from media_discovery.services.resolver import CandidateResolver, title_similarity, year_within


class TestTitleSimilarity:
    def test_identical_titles(self):
        assert title_similarity("Inception", "inception") == 1.0

    def test_punctuation_and_word_order_ignored(self):
        assert title_similarity("Mrs Doubtfire", "Mrs. Doubtfire") == 1.0
        assert title_similarity("Knight The Dark", "The Dark Knight") == 1.0

    def test_different_titles_score_low(self):
        assert title_similarity("Inception", "Interstellar") < 0.9

    def test_empty(self):
        assert title_similarity("", "Inception") == 0.0


class TestYearWithin:
    def test_no_constraint(self):
        assert year_within(None, Intent())

    def test_tolerance(self):
        intent = Intent(year_from=2010, year_to=2010)
        assert year_within(2011, intent, tolerance=1)
        assert not year_within(2012, intent, tolerance=1)
        assert not year_within(None, intent, tolerance=1)


class TestCandidateResolver:
    @pytest.mark.asyncio
    async def test_exact_title_match(self, catalog):
        resolver = CandidateResolver(catalog)
        result = await resolver.resolve(Intent(titles=["Inception"]))

        assert result.best_match is not None
        assert result.best_match.catalog_id == 27205
        assert result.best_match.source == SourceKind.EXACT_MATCH
        assert [seed.catalog_id for seed in result.seeds] == [27205]

    @pytest.mark.asyncio
    async def test_year_outside_tolerance_rejects_match(self, catalog):
        resolver = CandidateResolver(catalog)
        result = await resolver.resolve(Intent(titles=["Inception"], year_from=2015, year_to=2015))
        assert result.exact_matches == []

    @pytest.mark.asyncio
    async def test_year_within_one(self, catalog):
        resolver = CandidateResolver(catalog)
        result = await resolver.resolve(Intent(titles=["Inception"], year_from=2011, year_to=2011))
        assert result.best_match.catalog_id == 27205

    @pytest.mark.asyncio
    async def test_media_type_filter(self, catalog):
        resolver = CandidateResolver(catalog)
        result = await resolver.resolve(Intent(titles=["Inception"], media_types=["tv"]))
        assert result.exact_matches == []

    @pytest.mark.asyncio
    async def test_partial_title_is_not_exact(self, catalog):
        resolver = CandidateResolver(catalog)
        result = await resolver.resolve(Intent(titles=["Dark"]))
        assert result.exact_matches == []

    @pytest.mark.asyncio
    async def test_falls_back_to_exact_title_lookup(self):
        catalog = InMemoryCatalogClient(failing_operations={"multi_search"})
        resolver = CandidateResolver(catalog)

        result = await resolver.resolve(Intent(titles=["Forrest Gump"]))

        assert result.best_match.catalog_id == 13
        assert "find_exact_title" in catalog.calls

    @pytest.mark.asyncio
    async def test_multiple_titles_keep_order(self, catalog):
        resolver = CandidateResolver(catalog)
        result = await resolver.resolve(Intent(titles=["Groundhog Day", "Forrest Gump"]))

        assert [c.catalog_id for c in result.exact_matches] == [137, 13]
        assert all(c.source == SourceKind.EXACT_MATCH for c in result.exact_matches)

    @pytest.mark.asyncio
    async def test_resolves_people(self, catalog):
        resolver = CandidateResolver(catalog)
        result = await resolver.resolve(Intent(people=["tom hanks", "Nobody Atall"]))
        assert result.people == {31: "Tom Hanks"}

    @pytest.mark.asyncio
    async def test_catalog_failure_is_isolated(self):
        catalog = InMemoryCatalogClient(failing_operations={"multi_search", "find_exact_title"})
        resolver = CandidateResolver(catalog)

        result = await resolver.resolve(Intent(titles=["Inception"], people=["Tom Hanks"]))

        assert result.exact_matches == []
        assert result.people == {}

    @pytest.mark.asyncio
    async def test_show_titles(self, catalog):
        resolver = CandidateResolver(catalog)
        result = await resolver.resolve(Intent(titles=["Breaking Bad"]))
        assert result.best_match.media_type == MediaType.SHOW
        assert result.best_match.catalog_id == 1396
