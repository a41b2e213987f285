"""
Ingestion module for TechDocs.

Turns a GitHub repository or a local directory into a ranked list of
FileRecords:
1. Enumerate files (recursive tree listing, or a depth-bounded walk)
2. Filter by size, skip list and name rules
3. Drop binary content, truncate long files
4. Rank by importance
"""

from .github_fetcher import RemoteTreeFetcher
from .local_walker import SourceWalker
from .ranking import importance_score, rank
from .repository import RepositoryIngestor

__all__ = [
    "RemoteTreeFetcher",
    "SourceWalker",
    "importance_score",
    "rank",
    "RepositoryIngestor",
]
