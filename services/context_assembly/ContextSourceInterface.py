from abc import ABC, abstractmethod


class ContextSourceInterface(ABC):
    """Anything that turns a query into a single context string for the LLM."""

    @abstractmethod
    async def do_assemble(self, query: str) -> str:
        """
        Builds the context for a query.

        Args:
            query (str): The user's free-text query.

        Returns:
            str: The context handed to the downstream model.
        """
        pass
