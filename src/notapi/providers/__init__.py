"""
Lookup/transform providers served under /api/{name}.

Morse and roman numeral conversion run locally; the SpamWatch ban list and
Genius lyrics search call external services.
"""

from notapi.providers.models import OperationOutcome, ProviderName, ProviderResult
from notapi.providers.registry import ProviderRegistry

__all__ = [
    "OperationOutcome",
    "ProviderName",
    "ProviderResult",
    "ProviderRegistry",
]
