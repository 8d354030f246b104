"""
In-memory catalog implementation.
Used for prototyping and testing.
Production would replace this with the TMDb client.
"""
import logging
from typing import Collection, Dict, List, Optional, Sequence

from media_discovery.core.exceptions import CatalogError
from media_discovery.core.rate_limiter import RateLimiter
from media_discovery.models.schemas import (
    CatalogItem,
    CatalogPage,
    DiscoverQuery,
    DiscoverSort,
    MediaType,
    PersonRef,
)

logger = logging.getLogger(__name__)

PAGE_SIZE = 20

MOVIE_GENRES: Dict[str, int] = {
    "action": 28,
    "adventure": 12,
    "animation": 16,
    "comedy": 35,
    "crime": 80,
    "documentary": 99,
    "drama": 18,
    "family": 10751,
    "fantasy": 14,
    "history": 36,
    "horror": 27,
    "music": 10402,
    "mystery": 9648,
    "romance": 10749,
    "science fiction": 878,
    "thriller": 53,
    "war": 10752,
    "western": 37,
}

TV_GENRES: Dict[str, int] = {
    "action & adventure": 10759,
    "animation": 16,
    "comedy": 35,
    "crime": 80,
    "documentary": 99,
    "drama": 18,
    "family": 10751,
    "kids": 10762,
    "mystery": 9648,
    "sci-fi & fantasy": 10765,
    "war & politics": 10768,
    "western": 37,
}


class InMemoryCatalogClient:
    """
    In-memory implementation of CatalogClient.
    Simulates the TMDb catalog with a small fixed dataset.

    Operations named in `failing_operations` raise CatalogError, which lets
    tests exercise per-source failure isolation.
    """

    def __init__(
        self,
        rate_limiter: Optional[RateLimiter] = None,
        failing_operations: Optional[Collection[str]] = None,
    ) -> None:
        self._limiter = rate_limiter or RateLimiter()
        self._failing = set(failing_operations or ())
        self._items: Dict[tuple, CatalogItem] = {}
        self._people: Dict[int, PersonRef] = {}
        self._credits: Dict[int, List[int]] = {}
        self._similar: Dict[tuple, List[int]] = {}
        self._recommendations: Dict[tuple, List[int]] = {}
        self.calls: List[str] = []
        self._initialize_mock_data()

    def _initialize_mock_data(self) -> None:
        """Load a small slice of the real catalog for testing."""
        movies = [
            (27205, "Inception", 2010, (28, 878, 12), 8.4, 35000, "en", 148,
             "Cobb, a skilled thief who steals secrets from deep within the subconscious "
             "during the dream state, is offered a chance to have his past crimes forgiven "
             "if he can plant an idea in a target's mind.",
             "/oYuLEt3zVCKq57qu2F8dT7NIa6f.jpg"),
            (13, "Forrest Gump", 1994, (35, 18, 10749), 8.5, 26000, "en", 142,
             "A man with a low IQ has accomplished great things in his life and been present "
             "during significant historic events. But despite all he has achieved, his one "
             "true love eludes him in this heartwarming story.",
             "/arw2vcBveWOVZr6pxd9XTd1TdQa.jpg"),
            (278, "The Shawshank Redemption", 1994, (18, 80), 8.7, 26000, "en", 142,
             "Imprisoned in the 1940s for the double murder of his wife and her lover, "
             "upstanding banker Andy Dufresne begins a new life at the Shawshank prison, "
             "finding hope and friendship.",
             "/9cqNxx0GxF0bflZmeSMuL5tnGzr.jpg"),
            (137, "Groundhog Day", 1993, (14, 35, 10749), 7.6, 6500, "en", 101,
             "A cynical TV weatherman finds himself reliving the same day over and over "
             "again in a small town, a funny and charming tale about love and second chances.",
             "/gCgt1WARPZaXnq523ySQEUKinCs.jpg"),
            (788, "Mrs. Doubtfire", 1993, (35, 18, 10751), 7.2, 6000, "en", 125,
             "Loving but irresponsible dad Daniel Hillard disguises himself as a British "
             "nanny to spend time with his children, a hilarious family comedy.",
             "/shHrSmXS5140o6sQzgzXxn3KqSm.jpg"),
            (771, "Home Alone", 1990, (35, 10751), 7.4, 10000, "en", 103,
             "Eight-year-old Kevin McCallister makes the most of the situation after his "
             "family unwittingly leaves him behind when they go on Christmas vacation.",
             "/onTSipZ8R3bliBdKfPtsDuHTdlL.jpg"),
            (2005, "Sister Act", 1992, (35, 10402, 80), 6.9, 3000, "en", 100,
             "A Reno lounge singer witnesses a mob murder and hides out in a convent, "
             "where she turns the struggling choir into a joyful musical sensation.",
             "/xZvVSZ0RTxIjblLV87vs7ADM12m.jpg"),
            (509, "Notting Hill", 1999, (35, 10749, 18), 7.2, 5500, "en", 124,
             "The life of a simple bookshop owner changes when he meets the most famous "
             "film star in the world, a warm romantic comedy about love and fame.",
             "/hHRIf2XHeQMbyRb3HUx19SF5Ujw.jpg"),
            (862, "Toy Story", 1995, (16, 12, 10751, 35), 8.0, 18000, "en", 81,
             "Led by Woody, Andy's toys live happily in his room until Andy's birthday "
             "brings Buzz Lightyear onto the scene, an animated adventure about friendship.",
             "/uXDfjJbdP4ijW5hWSBrPrlKpxab.jpg"),
            (155, "The Dark Knight", 2008, (18, 28, 80, 53), 8.5, 32000, "en", 152,
             "Batman raises the stakes in his war on crime as the Joker unleashes a reign "
             "of chaos on Gotham, in a dark and gritty battle for the soul of a city.",
             "/qJ2tW6WMUDux911r6m7haRef0WH.jpg"),
            (807, "Se7en", 1995, (80, 9648, 53), 8.4, 21000, "en", 127,
             "Two homicide detectives are on a desperate hunt for a serial killer who "
             "justifies his crimes as absolution for the world's ignorance of the seven "
             "deadly sins.",
             "/191nKfP0ehp3uIvWqgPbFmI4lv9.jpg"),
            (157336, "Interstellar", 2014, (12, 18, 878), 8.4, 35000, "en", 169,
             "A team of explorers travel through a wormhole in space in an attempt to "
             "ensure humanity's survival as the future of Earth fades.",
             "/gEU2QniE6E77NI6lCU6MxlNBvIx.jpg"),
            (346648, "Paddington 2", 2017, (12, 35, 10751), 7.6, 2500, "en", 104,
             "Paddington, now happily settled with the Brown family, picks up odd jobs to "
             "buy the perfect present, a heartwarming and funny family adventure.",
             "/1OJ9vkD5xPt3skC6KguyXAgagRZ.jpg"),
            (8358, "Cast Away", 2000, (12, 18), 7.7, 11000, "en", 143,
             "Chuck Noland, a FedEx executive, is stranded on a deserted island after his "
             "plane crashes, a story of survival, loss and hope.",
             "/7lLJgKnAicAcR5UEuo8xhSMj18w.jpg"),
            (858, "Sleepless in Seattle", 1993, (35, 18, 10749), 6.9, 3000, "en", 105,
             "A young boy calls a radio talk show in an attempt to find a new love for his "
             "widowed father, a tender romantic comedy.",
             "/iLWsLVrfkFvOXOG9PbUAYg7AK3E.jpg"),
            (568, "Apollo 13", 1995, (18, 36), 7.4, 6000, "en", 140,
             "The true story of the doomed Apollo 13 lunar mission and the courage of the "
             "crew and mission control to bring the astronauts home.",
             "/tVeiYzEG3XYH0sjHbhDaIZfdJ7S.jpg"),
            (577922, "Tenet", 2020, (28, 53, 878), 7.2, 10000, "en", 150,
             "Armed with only one word, Tenet, a protagonist fights for the survival of the "
             "entire world through a twilight world of international espionage and time inversion.",
             "/aCIFMriQh8rvhxpN1IWGgvH0Tlg.jpg"),
            (194, "Amélie", 2001, (35, 10749), 7.9, 11000, "fr", 122,
             "At a tiny Parisian café, the adorable yet painfully shy Amélie accidentally "
             "discovers a gift for helping others and a charming path to love.",
             "/nSxDa3M9aMvGVLoItzWTepQ5h5d.jpg"),
            (77338, "The Intouchables", 2011, (18, 35), 8.3, 17000, "fr", 112,
             "A true story of two men who should never have met, a quadriplegic aristocrat "
             "and a young man from the projects, and an uplifting friendship.",
             "/1QU7HKgsQbGpzsJbJK4pAVQV9F5.jpg"),
        ]
        shows = [
            (66732, "Stranger Things", 2016, (18, 10765, 9648), 8.6, 18000, "en", None,
             "When a young boy vanishes, a small town uncovers a mystery involving secret "
             "experiments, terrifying supernatural forces and one strange little girl.",
             "/49WJfeN0moxb9IPfGn8AIqMGskD.jpg"),
            (97546, "Ted Lasso", 2020, (35, 18), 8.4, 1500, "en", None,
             "An American college football coach is hired to manage an English soccer team, "
             "winning over skeptics with kindness, optimism and a funny, uplifting spirit.",
             "/5fhZdwP1DVJ0FyVH6vrFdHwpXIn.jpg"),
            (1396, "Breaking Bad", 2008, (18, 80), 8.9, 14000, "en", None,
             "A chemistry teacher diagnosed with terminal cancer turns to a life of crime "
             "to secure his family's future, in a gritty and intense drama.",
             "/ggFHVNu6YYI5L9pCfOacjizRGt.jpg"),
            (2316, "The Office", 2005, (35,), 8.6, 4000, "en", None,
             "The everyday lives of office employees in a paper company, told as a funny "
             "mockumentary full of awkward humor.",
             "/7DJKHzAi83BmQrWLrYYOqcoKfhR.jpg"),
        ]

        for media_type, rows in ((MediaType.MOVIE, movies), (MediaType.SHOW, shows)):
            for (item_id, name, year, genres, rating, votes, lang, runtime,
                 overview, poster) in rows:
                self._items[(media_type, item_id)] = CatalogItem(
                    id=item_id,
                    media_type=media_type,
                    name=name,
                    overview=overview,
                    vote_average=rating,
                    vote_count=votes,
                    release_year=year,
                    poster_path=poster,
                    genre_ids=genres,
                    original_language=lang,
                    popularity=votes / 100,
                    runtime_minutes=runtime,
                )

        for person in (
            PersonRef(id=31, name="Tom Hanks", known_for_department="Acting", popularity=60.0),
            PersonRef(id=525, name="Christopher Nolan", known_for_department="Directing", popularity=30.0),
            PersonRef(id=2157, name="Robin Williams", known_for_department="Acting", popularity=40.0),
            PersonRef(id=192, name="Morgan Freeman", known_for_department="Acting", popularity=45.0),
        ):
            self._people[person.id] = person

        # Movie credits (TV discover has no people filter)
        self._credits = {
            31: [13, 862, 8358, 858, 568],
            525: [27205, 155, 157336, 577922],
            2157: [788],
            192: [807, 278],
        }

        movie = MediaType.MOVIE
        self._similar = {
            (movie, 13): [568, 8358, 278, 858],
            (movie, 27205): [157336, 577922, 155],
            (movie, 137): [509, 858],
        }
        self._recommendations = {
            (movie, 13): [278, 8358, 862, 509],
            (movie, 27205): [155, 157336, 807],
            (movie, 137): [788, 771],
        }

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _enter(self, operation: str) -> None:
        """Record the call, take a rate-limit slot and fail if configured to."""
        self.calls.append(operation)
        async with self._limiter:
            if operation in self._failing:
                raise CatalogError(operation, "simulated failure")

    def _lookup(self, media_type: MediaType, ids: List[int]) -> List[CatalogItem]:
        return [self._items[(media_type, i)] for i in ids if (media_type, i) in self._items]

    # -------------------------------------------------------------------------
    # CatalogClient
    # -------------------------------------------------------------------------

    async def multi_search(self, query: str) -> CatalogPage:
        await self._enter("multi_search")
        needle = query.strip().casefold()
        if not needle:
            return CatalogPage()
        items = [
            item for item in self._items.values()
            if needle in item.name.casefold()
        ]
        people = [
            person for person in self._people.values()
            if needle in person.name.casefold()
        ]
        items.sort(key=lambda item: item.popularity, reverse=True)
        return CatalogPage(items=items[:PAGE_SIZE], people=people)

    async def discover(self, query: DiscoverQuery) -> List[CatalogItem]:
        await self._enter("discover")
        wanted_genres = set(query.genre_ids)

        credited: Optional[set] = None
        if query.person_ids:
            if query.media_type != MediaType.MOVIE:
                return []
            credited = set.intersection(
                *(set(self._credits.get(p, [])) for p in query.person_ids)
            )

        hits = []
        for item in self._items.values():
            if item.media_type != query.media_type:
                continue
            if wanted_genres:
                item_genres = set(item.genre_ids)
                if query.genre_match_any and not wanted_genres & item_genres:
                    continue
                if not query.genre_match_any and not wanted_genres <= item_genres:
                    continue
            if credited is not None and item.id not in credited:
                continue
            if query.year_from is not None and (item.release_year or 0) < query.year_from:
                continue
            if query.year_to is not None and (item.release_year or 9999) > query.year_to:
                continue
            if (
                query.runtime_max_minutes is not None
                and query.media_type == MediaType.MOVIE
                and item.runtime_minutes is not None
                and item.runtime_minutes > query.runtime_max_minutes
            ):
                continue
            if item.vote_count < query.min_vote_count:
                continue
            if query.original_language and item.original_language != query.original_language:
                continue
            hits.append(item)

        if query.sort_by == DiscoverSort.RATING:
            hits.sort(key=lambda item: (item.vote_average, item.vote_count), reverse=True)
        else:
            hits.sort(key=lambda item: item.popularity, reverse=True)
        return hits[:PAGE_SIZE]

    async def find_exact_title(
        self,
        title: str,
        year: Optional[int] = None,
        media_types: Optional[Sequence[MediaType]] = None,
    ) -> List[CatalogItem]:
        await self._enter("find_exact_title")
        wanted = title.strip().casefold()
        types = set(media_types or (MediaType.MOVIE, MediaType.SHOW))
        return [
            item for item in self._items.values()
            if item.media_type in types
            and item.name.casefold() == wanted
            and (year is None or item.release_year == year)
        ]

    async def recommendations(self, media_type: MediaType, catalog_id: int) -> List[CatalogItem]:
        await self._enter("recommendations")
        return self._lookup(media_type, self._recommendations.get((media_type, catalog_id), []))

    async def similar(self, media_type: MediaType, catalog_id: int) -> List[CatalogItem]:
        await self._enter("similar")
        return self._lookup(media_type, self._similar.get((media_type, catalog_id), []))

    async def genre_map(self, media_type: MediaType) -> Dict[str, int]:
        await self._enter("genre_map")
        return dict(MOVIE_GENRES if media_type == MediaType.MOVIE else TV_GENRES)

    async def aclose(self) -> None:
        logger.debug("In-memory catalog closed")
