from .client import HttpxTmdbClient
from .imdb_suggest import ImdbSuggestClient

__all__ = ["HttpxTmdbClient", "ImdbSuggestClient"]
