"""
Pydantic schemas for API request/response models
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


# ===== SEARCH SCHEMAS =====

class SearchRequest(BaseModel):
    """Request body for search endpoint."""
    query: str = Field(..., min_length=1, max_length=500)


# ===== BUNDLE SCHEMAS =====

class BatchResultOut(BaseModel):
    """One descriptor outcome in a batch response"""
    key: str
    data: Optional[Any] = None
    error: Optional[str] = None
    fromCache: bool = False


class BundleResponse(BaseModel):
    """Named bundle with per-key outcomes"""
    bundle: str
    count: int
    failed: int
    results: Dict[str, BatchResultOut]


# ===== CACHE SCHEMAS =====

class ClearCacheResponse(BaseModel):
    """Result of a cache clear"""
    cleared: int
    keys: Optional[List[str]] = None
