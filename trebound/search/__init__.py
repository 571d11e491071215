# Free-text search over the content corpus
# Query → corpus load → candidates → filter/score/rank → answer (generated or template)

from .pipeline import SearchEngine
from .models.responses import SearchResult

__all__ = ["SearchEngine", "SearchResult"]
