"""
Access filter.

Decides, before a request reaches the execution queue, whether it may use
the API at all.
"""

from enum import Enum
from typing import Iterable

from notapi.api.context import RequestContext
from notapi.config import AccessConfig
from notapi.utils.logging import get_logger


class AccessDecision(str, Enum):
    ADMIT = "admit"
    # Blacklisted user agent: fixed 403 response.
    FORBIDDEN = "forbidden"
    # Blacklisted IP: behave as if the route did not exist.
    FALL_THROUGH = "fall_through"


class AccessFilter:
    """
    IP and user-agent blacklist check.

    The user-agent check runs first and wins regardless of IP. Both
    blacklists are read-only after construction.
    """

    def __init__(self, ips: Iterable[str] = (), user_agents: Iterable[str] = ()) -> None:
        self.ips = frozenset(ips)
        self.user_agents = frozenset(ua.lower() for ua in user_agents if ua)
        self.logger = get_logger(__name__)

    @classmethod
    def from_config(cls, config: AccessConfig) -> "AccessFilter":
        return cls(ips=config.ips, user_agents=config.user_agents)

    def check(self, context: RequestContext) -> AccessDecision:
        source = context.source.lower()
        if any(ua in source for ua in self.user_agents):
            self.logger.info("Rejected blacklisted user agent", ip=context.ip, user_agent=context.source)
            return AccessDecision.FORBIDDEN
        if context.ip in self.ips:
            self.logger.info("Hid API from blacklisted IP", ip=context.ip)
            return AccessDecision.FALL_THROUGH
        return AccessDecision.ADMIT
