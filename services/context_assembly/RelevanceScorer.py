"""Keyword-overlap relevance ranking."""

from shared.clients.dms.models.Document import DocumentSummary

MAX_RESULTS = 3


class RelevanceScorer:
    """Ranks document summaries against a free-text query.

    The query is lowercased and split on whitespace. A document scores one
    point for every query token that occurs anywhere in its searchable text,
    regardless of how often it occurs. There is no stemming and no stopword
    removal, so short common tokens such as "the" match generously; callers
    rely on this behaviour.
    """

    def __init__(self, max_results: int = MAX_RESULTS) -> None:
        self._max_results = max_results

    @staticmethod
    def tokenize(query: str) -> list[str]:
        return query.lower().split()

    def score(self, document: DocumentSummary, tokens: list[str]) -> int:
        """Count the tokens present in the document's searchable text."""
        searchable = document.get_searchable_text()
        return sum(1 for token in tokens if token in searchable)

    def score_all(self, documents: list[DocumentSummary], query: str) -> list[tuple[DocumentSummary, int]]:
        """Score, filter and order documents.

        Args:
            documents (list[DocumentSummary]): Candidates, in their original order.
            query (str): The free-text query.

        Returns:
            list[tuple[DocumentSummary, int]]: At most max_results pairs with a score of at least 1,
                highest score first, ties kept in original order.
        """
        tokens = self.tokenize(query)
        if not tokens:
            return []
        scored = [(document, self.score(document, tokens)) for document in documents]
        matches = [pair for pair in scored if pair[1] > 0]
        # sorted() is stable, equal scores keep their input order
        matches = sorted(matches, key=lambda pair: pair[1], reverse=True)
        return matches[: self._max_results]
