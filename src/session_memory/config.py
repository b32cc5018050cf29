"""
Runtime configuration for session-memory.

Read once at startup from the environment (``MEMO_`` prefix) or a ``.env``
file, then passed explicitly to the components that need it. The settings
object is frozen.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MemoryConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MEMO_",
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    # Vector index
    vector_size: int = Field(default=1536, gt=0, description="Embedding dimensionality D")
    qdrant_url: str = "http://localhost:6333"
    qdrant_api_key: Optional[str] = None

    # Document store
    database_url: str = "sqlite:///memo.db"
    dual_write: bool = Field(
        default=True, description="Keep canonical memory records in the document store"
    )

    # Paging and search defaults
    search_limit: int = Field(default=5, gt=0)
    search_score_threshold: Optional[float] = Field(default=None, ge=-1.0, le=1.0)
    list_limit: int = Field(default=5, gt=0)
    session_list_limit: int = Field(default=5, gt=0)

    # Providers
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    embedding_model: str = "text-embedding-3-small"
    completion_model: str = "gpt-4o-mini"
    score_importance: bool = False
