"""
Advisory Cache-Control selection.

The proxy stores nothing; these values are hints for downstream caches.
"""

from typing import List, Tuple


class CachePolicy:
    """
    Maps a path to a max-age by substring match.

    Rules are checked in order and the first match wins, so
    "/3/search/configuration" resolves to the configuration TTL.
    """

    def __init__(
        self,
        configuration_ttl: int = 3600,
        search_ttl: int = 300,
        popular_ttl: int = 1800,
        default_ttl: int = 600,
        image_ttl: int = 604800,
    ):
        self.rules: List[Tuple[str, int]] = [
            ("configuration", configuration_ttl),
            ("search", search_ttl),
            ("popular", popular_ttl),
        ]
        self.default_ttl = default_ttl
        self.image_ttl = image_ttl

    @classmethod
    def from_config(cls, app_config) -> "CachePolicy":
        return cls(
            configuration_ttl=app_config.CACHE_TTL_CONFIGURATION,
            search_ttl=app_config.CACHE_TTL_SEARCH,
            popular_ttl=app_config.CACHE_TTL_POPULAR,
            default_ttl=app_config.CACHE_TTL_DEFAULT,
            image_ttl=app_config.IMAGE_CACHE_MAX_AGE,
        )

    def api_max_age(self, path: str) -> int:
        for needle, ttl in self.rules:
            if needle in path:
                return ttl
        return self.default_ttl

    def api_cache_control(self, path: str) -> str:
        return f"public, max-age={self.api_max_age(path)}"

    def image_cache_control(self) -> str:
        # Image paths are content-addressed, so they never change in place.
        return f"public, max-age={self.image_ttl}, immutable"
