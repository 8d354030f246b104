"""Catalog and intent provider clients."""
from .llm import ChatCompletionIntentExtractor
from .memory import InMemoryCatalogClient
from .tmdb import TmdbCatalogClient

__all__ = [
    "ChatCompletionIntentExtractor",
    "InMemoryCatalogClient",
    "TmdbCatalogClient",
]
