"""
Provider registry.

Dispatches an admitted /api/{name} request to one provider family and
normalizes what it did into a ProviderResult. Provider failures never
escape the registry; each one becomes an error outcome.
"""

import asyncio
import random
from typing import Awaitable, Callable, Dict, List, Mapping, Optional

from notapi.config import ProvidersConfig
from notapi.providers import morse, romans
from notapi.providers.lyrics import GeniusClient
from notapi.providers.models import OperationOutcome, ProviderName, ProviderResult
from notapi.providers.spamwatch import SpamWatchClient
from notapi.utils.exceptions import ConfigurationError, NotAPIError
from notapi.utils.logging import get_logger

Handler = Callable[[Mapping[str, str]], Awaitable[List[OperationOutcome]]]


def _describe(error: Exception) -> str:
    if isinstance(error, NotAPIError):
        return error.message
    return str(error) or type(error).__name__


def _transform(operation: str, value: str, func: Callable[[str], object]) -> OperationOutcome:
    try:
        return OperationOutcome(operation=operation, input=value, result=str(func(value)))
    except NotAPIError as e:
        return OperationOutcome(operation=operation, input=value, error=e.message)


class ProviderRegistry:
    """
    Maps provider names to their handlers.

    Every handler receives the request's query parameters and returns the
    outcomes of the operations it attempted, in order. An empty list means
    no parameter triggered any work.

    Attributes:
        config: Provider settings (artificial delay range)
        spamwatch: Client for the SpamWatch ban list
        genius: Client for Genius lyrics
    """

    def __init__(
        self,
        config: ProvidersConfig,
        spamwatch: SpamWatchClient,
        genius: GeniusClient,
    ) -> None:
        if config.delay_min > config.delay_max:
            raise ConfigurationError(
                "Provider delay range is inverted",
                context={"delay_min": config.delay_min, "delay_max": config.delay_max},
            )
        self.config = config
        self.spamwatch = spamwatch
        self.genius = genius
        self.logger = get_logger(__name__)
        self.handlers: Dict[str, Handler] = {
            ProviderName.MORSE.value: self._morse,
            ProviderName.ROMANS.value: self._romans,
            ProviderName.SPAMWATCH.value: self._spamwatch,
            ProviderName.LYRICS.value: self._lyrics,
        }

    async def invoke(self, name: str, params: Mapping[str, str]) -> ProviderResult:
        """
        Run the provider called ``name`` with the given query parameters.

        The artificial delay is applied first, for every request, so that
        unknown names cost the same as real calls.

        Args:
            name: Provider name from the URL
            params: Query parameters (en, de, id, q)

        Returns:
            ProviderResult whose ``is_recognized`` is False for unknown names
            or when no parameter triggered an operation
        """
        await asyncio.sleep(random.uniform(self.config.delay_min, self.config.delay_max))

        handler: Optional[Handler] = self.handlers.get(name)
        if handler is None:
            self.logger.debug("Unknown provider requested", provider=name)
            return ProviderResult(provider=name)

        outcomes = await handler(params)
        for outcome in outcomes:
            if not outcome.ok:
                self.logger.info("Provider operation failed",
                                 provider=name, operation=outcome.operation, error=outcome.error)
        return ProviderResult(provider=name, outcomes=outcomes)

    async def _morse(self, params: Mapping[str, str]) -> List[OperationOutcome]:
        outcomes = []
        if params.get("en"):
            outcomes.append(_transform("encode", params["en"], morse.encode))
        if params.get("de"):
            outcomes.append(_transform("decode", params["de"], morse.decode))
        return outcomes

    async def _romans(self, params: Mapping[str, str]) -> List[OperationOutcome]:
        outcomes = []
        if params.get("en"):
            outcomes.append(_transform("encode", params["en"], romans.romanize))
        if params.get("de"):
            outcomes.append(_transform("decode", params["de"], romans.deromanize))
        return outcomes

    async def _spamwatch(self, params: Mapping[str, str]) -> List[OperationOutcome]:
        user_id = params.get("id")
        if not user_id:
            return []
        try:
            ban = await self.spamwatch.get_ban(user_id)
        except Exception as e:
            return [OperationOutcome(operation="lookup", kind="lookup", input=user_id, error=_describe(e))]
        return [OperationOutcome(operation="lookup", kind="lookup", input=user_id, result="", fields=ban)]

    async def _lyrics(self, params: Mapping[str, str]) -> List[OperationOutcome]:
        query = params.get("q")
        if not query:
            return []
        try:
            song = await self.genius.find(query)
        except Exception as e:
            return [OperationOutcome(operation="search", kind="lookup", input=query, error=_describe(e))]
        return [OperationOutcome(operation="search", kind="lookup", input=query, result="", fields=song)]

    async def close(self) -> None:
        """Close the external service clients."""
        await self.spamwatch.close()
        await self.genius.close()
