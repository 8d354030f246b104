"""
Vocabulary tables for intent normalization, discovery and theme scoring.
Genre names are lower-case TMDb genre names (movie and TV lists).
"""
from typing import Dict, List, Tuple


# =============================================================================
# Media Types
# =============================================================================

MEDIA_TYPE_ALIASES: Dict[str, str] = {
    "movie": "movie",
    "movies": "movie",
    "film": "movie",
    "films": "movie",
    "cinema": "movie",
    "tv": "tv",
    "television": "tv",
    "series": "tv",
    "show": "tv",
    "shows": "tv",
    "tvshow": "tv",
    "tv show": "tv",
    "tv shows": "tv",
    "tv series": "tv",
}


# =============================================================================
# Genres
# =============================================================================

# Requested genre -> catalog genre names it may resolve to (movie and TV lists)
GENRE_ALIASES: Dict[str, Tuple[str, ...]] = {
    "action": ("action", "action & adventure"),
    "adventure": ("adventure", "action & adventure"),
    "animated": ("animation",),
    "cartoon": ("animation",),
    "comedies": ("comedy",),
    "documentaries": ("documentary",),
    "fantasy": ("fantasy", "sci-fi & fantasy"),
    "kids": ("kids", "family"),
    "musical": ("music",),
    "rom-com": ("romance", "comedy"),
    "romcom": ("romance", "comedy"),
    "sci-fi": ("science fiction", "sci-fi & fantasy"),
    "scifi": ("science fiction", "sci-fi & fantasy"),
    "science fiction": ("science fiction", "sci-fi & fantasy"),
    "suspense": ("thriller",),
    "war": ("war", "war & politics"),
    "politics": ("war & politics",),
}

KNOWN_GENRES: Tuple[str, ...] = (
    "action",
    "adventure",
    "animation",
    "comedy",
    "crime",
    "documentary",
    "drama",
    "family",
    "fantasy",
    "history",
    "horror",
    "music",
    "mystery",
    "romance",
    "science fiction",
    "thriller",
    "war",
    "western",
)


# =============================================================================
# Moods
# =============================================================================

MOOD_GENRES: Dict[str, Tuple[str, ...]] = {
    "feel-good": ("comedy", "family", "music", "romance"),
    "dark": ("thriller", "horror", "crime"),
    "mind-bending": ("science fiction", "mystery", "thriller"),
    "cozy": ("family", "comedy", "romance"),
    "gritty": ("crime", "thriller", "drama", "war"),
    "emotional": ("drama", "romance"),
    "action-packed": ("action", "adventure", "thriller"),
    "funny": ("comedy",),
    "scary": ("horror", "thriller"),
    "romantic": ("romance",),
    "inspiring": ("drama", "family"),
    "epic": ("adventure", "fantasy", "war", "history"),
    "mysterious": ("mystery", "thriller", "crime"),
    "uplifting": ("family", "comedy", "music"),
    "intense": ("thriller", "action", "crime"),
}

MOOD_ALIASES: Dict[str, str] = {
    "feelgood": "feel-good",
    "heartwarming": "feel-good",
    "wholesome": "cozy",
    "creepy": "scary",
    "spooky": "scary",
    "sad": "emotional",
    "tearjerker": "emotional",
    "hilarious": "funny",
    "thrilling": "intense",
    "trippy": "mind-bending",
}


# =============================================================================
# Theme Keywords (matched against overview tokens)
# =============================================================================

THEME_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    # genres
    "action": ("fight", "battle", "combat", "explosive", "chase", "mission"),
    "adventure": ("journey", "quest", "expedition", "exploration", "treasure"),
    "animation": ("animated", "cartoon"),
    "comedy": ("funny", "humor", "hilarious", "comic", "laugh", "comedic"),
    "crime": ("criminal", "detective", "police", "heist", "murder", "gang"),
    "documentary": ("real", "true", "history", "footage"),
    "drama": ("dramatic", "emotional", "relationship", "struggle", "life"),
    "family": ("family", "kids", "children", "child", "parents"),
    "fantasy": ("magic", "magical", "wizard", "dragon", "mythical", "kingdom"),
    "history": ("historical", "war", "era", "century", "king", "queen"),
    "horror": ("scary", "terror", "haunted", "supernatural", "demon", "ghost", "killer"),
    "music": ("musical", "song", "singer", "band", "dance", "choir"),
    "mystery": ("puzzle", "investigation", "detective", "clue", "secret", "disappearance"),
    "romance": ("romantic", "love", "relationship", "passion", "dating", "wedding"),
    "science fiction": ("space", "alien", "future", "technology", "robot", "time", "dream"),
    "thriller": ("suspense", "tension", "psychological", "conspiracy", "danger"),
    "war": ("battle", "military", "soldier", "soldiers", "combat"),
    "western": ("cowboy", "frontier", "gunfighter", "outlaw", "sheriff"),
    # moods
    "feel-good": ("uplifting", "heartwarming", "positive", "inspiring", "cheerful", "happy", "kind"),
    "dark": ("gritty", "noir", "bleak", "sinister", "disturbing", "twisted", "nightmare"),
    "mind-bending": ("complex", "psychological", "twist", "surreal", "reality", "dream", "dreams"),
    "cozy": ("warm", "charming", "gentle", "peaceful", "small", "town"),
    "gritty": ("raw", "realistic", "harsh", "brutal", "streets"),
    "emotional": ("touching", "moving", "heartbreaking", "loss", "grief"),
    "action-packed": ("explosive", "thrilling", "adrenaline", "chase"),
    "funny": ("hilarious", "comedy", "humorous", "witty", "laugh"),
    "scary": ("frightening", "terrifying", "horror", "creepy", "haunted"),
    "romantic": ("love", "passion", "tender", "romance"),
    "inspiring": ("motivational", "uplifting", "triumph", "hope", "courage"),
    "epic": ("saga", "legendary", "empire", "battle", "quest"),
    "mysterious": ("mystery", "enigma", "secret", "hidden", "strange"),
    "uplifting": ("hope", "joy", "inspiring", "kindness"),
    "intense": ("tension", "relentless", "survival", "desperate"),
}


def normalize_mood(mood: str) -> str:
    """Canonical mood key: lower-case, hyphenated, aliases resolved."""
    key = "-".join(mood.strip().lower().replace("_", " ").split())
    return MOOD_ALIASES.get(key, key)


def genre_candidates(genre: str) -> List[str]:
    """Catalog genre names a requested genre may resolve to."""
    key = genre.strip().lower()
    return list(GENRE_ALIASES.get(key, (key,)))


# =============================================================================
# Languages (ISO 639-1)
# =============================================================================

LANGUAGE_NAMES: Dict[str, str] = {
    "english": "en",
    "french": "fr",
    "spanish": "es",
    "german": "de",
    "italian": "it",
    "japanese": "ja",
    "korean": "ko",
    "chinese": "zh",
    "hindi": "hi",
    "portuguese": "pt",
    "swedish": "sv",
    "danish": "da",
}
