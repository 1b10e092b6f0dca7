"""
Embeddings used to vectorize founder messages for the advisor index.
Query vectors are memoized: short messages ("hi", "ok", "next") repeat a lot.
"""

from typing import Literal
from functools import lru_cache
from langchain_core.embeddings import Embeddings
from langchain_openai import OpenAIEmbeddings
from langchain_google_genai import GoogleGenerativeAIEmbeddings

from yc_advisor.utils.logger import get_logger

logger = get_logger(__name__)

Provider = Literal["openai", "google"]


class QueryCachedEmbeddings(Embeddings):
    """Memoizes embed_query per trimmed text; documents pass straight through."""

    def __init__(self, inner: Embeddings, cache_size: int = 100):
        self.inner = inner
        self._lookup = lru_cache(maxsize=cache_size)(self._vector)

    def _vector(self, text: str) -> tuple[float, ...]:
        # lru_cache values are shared, tuples keep them immutable
        return tuple(self.inner.embed_query(text))

    def embed_query(self, text: str) -> list[float]:
        return list(self._lookup(text.strip()))

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return self.inner.embed_documents(texts)

    def cache_info(self):
        return self._lookup.cache_info()


def _provider_embeddings(provider: Provider, model: str, api_key: str) -> Embeddings:
    if provider == "openai":
        return OpenAIEmbeddings(api_key=api_key, model=model)
    if provider == "google":
        return GoogleGenerativeAIEmbeddings(google_api_key=api_key, model=model)
    raise ValueError(
        f"Unsupported embeddings provider: {provider}. Use 'openai' or 'google'"
    )


def get_embeddings_model(
    provider: Provider,
    model: str,
    api_key: str,
    cache_size: int = 100,
) -> Embeddings:
    """
    Creates the query embeddings model.

    It has to be the model the advisor index was built with, otherwise
    similarity scores are meaningless.

    Args:
        provider: "openai" or "google"
        model: Embeddings model name
        api_key: Key for the provider
        cache_size: Memoized queries (0 disables memoization)

    Raises:
        ValueError: If the provider is not supported
    """
    embeddings = _provider_embeddings(provider, model, api_key)
    logger.info(
        "embeddings_model_ready", provider=provider, model=model, cache_size=cache_size
    )
    if cache_size <= 0:
        return embeddings
    return QueryCachedEmbeddings(embeddings, cache_size)
