"""
Unit tests for query embeddings memoization.
"""

import pytest

from yc_advisor.models.embeddings import QueryCachedEmbeddings, get_embeddings_model


def test_repeated_queries_hit_cache(mock_embeddings):
    embeddings = QueryCachedEmbeddings(mock_embeddings, cache_size=10)

    first = embeddings.embed_query("hi")
    second = embeddings.embed_query("  hi ")

    assert first == second == [0.1, 0.2, 0.3]
    mock_embeddings.embed_query.assert_called_once_with("hi")
    assert embeddings.cache_info().hits == 1


def test_documents_bypass_cache(mock_embeddings):
    mock_embeddings.embed_documents.return_value = [[1.0], [2.0]]
    embeddings = QueryCachedEmbeddings(mock_embeddings)

    assert embeddings.embed_documents(["a", "b"]) == [[1.0], [2.0]]


def test_unknown_provider():
    with pytest.raises(ValueError, match="Unsupported embeddings provider"):
        get_embeddings_model("cohere", model="embed-v3", api_key="key")
