"""
Unit tests for candidate merge & dedup.
"""
from media_discovery.models.schemas import MediaType, SourceKind
from media_discovery.services.merge import combine, merge_candidates, source_confidence


class TestCombine:
    def test_stronger_source_wins(self, make_candidate):
        genre_hit = make_candidate(13, source=SourceKind.GENRE_DISCOVERY, vote_average=6.0)
        similar_hit = make_candidate(13, source=SourceKind.TMDB_SIMILAR, vote_average=8.5)

        merged = combine(genre_hit, similar_hit)

        assert merged.source == SourceKind.TMDB_SIMILAR
        assert merged.vote_average == 8.5

    def test_tie_keeps_existing(self, make_candidate):
        first = make_candidate(13, name="First")
        second = make_candidate(13, name="Second")
        assert combine(first, second).name == "First"

    def test_sets_are_unioned(self, make_candidate):
        person_hit = make_candidate(
            13,
            source=SourceKind.PERSON_SEARCH,
            matched_person_ids=frozenset({31}),
            matched_genre_ids=frozenset({18}),
        )
        genre_hit = make_candidate(13, matched_genre_ids=frozenset({35, 10749}))

        merged = combine(genre_hit, person_hit)

        assert merged.source == SourceKind.PERSON_SEARCH
        assert merged.matched_genre_ids == {18, 35, 10749}
        assert merged.matched_person_ids == {31}

    def test_missing_fields_filled_from_weaker(self, make_candidate):
        strong = make_candidate(13, source=SourceKind.EXACT_MATCH, runtime_minutes=None, original_language=None)
        weak = make_candidate(13, runtime_minutes=142, original_language="en")

        merged = combine(weak, strong)

        assert merged.source == SourceKind.EXACT_MATCH
        assert merged.runtime_minutes == 142
        assert merged.original_language == "en"

    def test_inputs_are_not_mutated(self, make_candidate):
        first = make_candidate(13, matched_genre_ids=frozenset({35}))
        second = make_candidate(13, matched_genre_ids=frozenset({18}), source=SourceKind.TMDB_SIMILAR)

        combine(first, second)

        assert first.matched_genre_ids == {35}
        assert second.matched_genre_ids == {18}


class TestMergeCandidates:
    def test_dedup_by_media_type_and_id(self, make_candidate):
        genre = [make_candidate(13), make_candidate(137)]
        similar = [make_candidate(13, source=SourceKind.TMDB_SIMILAR), make_candidate(278)]

        merged = merge_candidates(genre, similar)

        assert [c.catalog_id for c in merged] == [13, 137, 278]
        assert merged[0].source == SourceKind.TMDB_SIMILAR

    def test_same_id_different_media_type_kept_apart(self, make_candidate):
        movie = make_candidate(16, media_type=MediaType.MOVIE)
        show = make_candidate(16, media_type=MediaType.SHOW)
        assert len(merge_candidates([movie], [show])) == 2

    def test_empty(self):
        assert merge_candidates() == []
        assert merge_candidates([], []) == []

    def test_source_confidence_order(self, make_candidate):
        kinds = list(SourceKind)
        scores = [source_confidence(make_candidate(1, source=kind)) for kind in kinds]
        assert scores == sorted(scores, reverse=True)
