"""
Fetcher Registry - Factory for poll sources.
Handles registration and construction of snapshot fetchers.
"""

from typing import Dict, Type, Optional, List
import logging

from badgewatch.fetchers.base import BaseSnapshotFetcher, FetcherContext


logger = logging.getLogger(__name__)


class FetcherRegistry:
    """
    Registry for snapshot fetchers.

    Usage:
        # Register a fetcher
        @FetcherRegistry.register("returns")
        class ReturnsFetcher(BaseSnapshotFetcher):
            ...

        # Build every registered fetcher around one context
        fetchers = FetcherRegistry.create_all(context)
    """

    _fetchers: Dict[str, Type[BaseSnapshotFetcher]] = {}

    @classmethod
    def register(cls, name: str):
        """
        Decorator to register a fetcher.

        Args:
            name: Unique poll source name (e.g., "returns", "sales_feed")
        """
        def decorator(fetcher_class: Type[BaseSnapshotFetcher]):
            if name in cls._fetchers:
                logger.warning(f"Fetcher '{name}' already registered. Overwriting.")

            fetcher_class.name = name
            cls._fetchers[name] = fetcher_class
            logger.debug(f"Registered fetcher: {name} -> {fetcher_class.__name__}")
            return fetcher_class

        return decorator

    @classmethod
    def get_class(cls, name: str) -> Type[BaseSnapshotFetcher]:
        """
        Raises:
            ValueError: If the fetcher is not registered
        """
        if name not in cls._fetchers:
            available = ", ".join(cls._fetchers.keys())
            raise ValueError(
                f"Fetcher '{name}' not found. Available fetchers: {available}"
            )
        return cls._fetchers[name]

    @classmethod
    def create(
        cls,
        name: str,
        context: Optional[FetcherContext] = None,
        interval_seconds: Optional[float] = None
    ) -> BaseSnapshotFetcher:
        return cls.get_class(name)(context=context, interval_seconds=interval_seconds)

    @classmethod
    def create_all(
        cls,
        context: Optional[FetcherContext] = None,
        names: Optional[List[str]] = None
    ) -> Dict[str, BaseSnapshotFetcher]:
        """Instantiate the named fetchers (all of them by default) around one context."""
        context = context or FetcherContext()
        selected = names if names is not None else list(cls._fetchers)
        return {name: cls.create(name, context) for name in selected}

    @classmethod
    def list_fetchers(cls) -> List[str]:
        return list(cls._fetchers)

    @classmethod
    def is_registered(cls, name: str) -> bool:
        return name in cls._fetchers

    @classmethod
    def clear(cls):
        """Clear all registered fetchers (mainly for testing)."""
        cls._fetchers.clear()
