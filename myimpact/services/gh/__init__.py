"""GitHub CLI gateway: locate gh, run it, return raw stdout."""

from myimpact.services.gh.gateway import GhGateway
from myimpact.services.gh.locator import DEFAULT_SEARCH_PATHS, CommandLocator

__all__ = ["CommandLocator", "DEFAULT_SEARCH_PATHS", "GhGateway"]
