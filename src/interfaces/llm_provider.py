"""Abstract base class for LLM service providers.

Defines the contract for the large-language-model backend that turns a
project brief plus cultural data into structured insights, and answers
free-text planning questions.  The concrete adapter wraps the OpenAI chat
completions API; tests substitute a ``MagicMock(spec=ILLMProvider)``.
"""

from __future__ import annotations

# ABC = Abstract Base Class, Python's way of defining interfaces.
# If a concrete class forgets to implement an abstractmethod, Python raises
# TypeError when you try to instantiate it. This catches bugs at startup.
from abc import ABC, abstractmethod
from typing import Any, Callable


# Concrete implementation: OpenAILLMProvider
# Located in: src/providers/llm/
class ILLMProvider(ABC):
    """Contract for LLM services used by the insight orchestrators."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 1500,
    ) -> str:
        """Generate a free-text completion.

        Parameters
        ----------
        system_prompt:
            The system/instruction message that sets the model's behaviour.
        user_prompt:
            The user-facing prompt containing the actual request or data.
        model:
            Model name override; the provider's default when ``None``.
        temperature:
            Sampling temperature (0.0 = deterministic, 1.0 = creative).
        max_tokens:
            Upper bound on the number of tokens in the response.

        Returns
        -------
        str
            The model's text response.

        Raises
        ------
        src.utils.errors.UpstreamError
            If the API call fails after the retry budget.
        """

    @abstractmethod
    async def complete_json(
        self,
        system_prompt: str,
        user_prompt: str,
        parse: Callable[[str], Any],
        *,
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4000,
    ) -> Any:
        """Generate a completion and convert it with *parse*.

        *parse* receives the raw message content.  If it raises
        :class:`~src.utils.errors.OutputShapeError` the request is re-sent
        immediately while attempts remain.

        Raises
        ------
        src.utils.errors.OutputShapeError
            If every attempt produced output that *parse* rejected.
        src.utils.errors.UpstreamError
            If the API call fails after the retry budget.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this LLM provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider has credentials configured.

        Does not contact the remote service.
        """
