"""
Public HTTP surface.

This module provides the aiohttp application serving the landing page, the
/api/{name} gateway route and the catch-all not-found page, along with the
request context and access filter that run ahead of the gateway.
"""
