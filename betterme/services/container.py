"""
Service Container - Dependency Injection Container

Simple DI container for managing service instances and their dependencies.
Uses lazy loading to only instantiate services when first accessed.
"""

from dataclasses import dataclass, field
from typing import Optional
import logging

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for services.

    Services are lazy-loaded on first access via properties.
    Infrastructure dependencies (store, identity) are injected.
    """

    # Infrastructure dependencies (injected)
    store: object  # Storage implementation
    identity: object  # IdentityProvider implementation

    # Services (lazy-loaded via properties)
    _updater: Optional[object] = field(default=None, init=False, repr=False)
    _habit_service: Optional[object] = field(default=None, init=False, repr=False)
    _shop_service: Optional[object] = field(default=None, init=False, repr=False)
    _analytics_service: Optional[object] = field(default=None, init=False, repr=False)
    _session_service: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def updater(self):
        """Get ProgressionUpdater instance (lazy-loaded)"""
        if self._updater is None:
            from betterme.progression.updater import ProgressionUpdater
            self._updater = ProgressionUpdater(self.store)
            logger.debug("ProgressionUpdater instantiated")
        return self._updater

    @property
    def habit_service(self):
        """Get HabitService instance (lazy-loaded)"""
        if self._habit_service is None:
            from betterme.services.habit_service import HabitService
            self._habit_service = HabitService(self.store, self.updater)
            logger.debug("HabitService instantiated")
        return self._habit_service

    @property
    def shop_service(self):
        """Get ShopService instance (lazy-loaded)"""
        if self._shop_service is None:
            from betterme.services.shop_service import ShopService
            self._shop_service = ShopService(self.store)
            logger.debug("ShopService instantiated")
        return self._shop_service

    @property
    def analytics_service(self):
        """Get AnalyticsService instance (lazy-loaded)"""
        if self._analytics_service is None:
            from betterme.services.analytics_service import AnalyticsService
            self._analytics_service = AnalyticsService(self.store)
            logger.debug("AnalyticsService instantiated")
        return self._analytics_service

    @property
    def session_service(self):
        """Get SessionService instance (lazy-loaded)"""
        if self._session_service is None:
            from betterme.services.session_service import SessionService
            self._session_service = SessionService(self.store, self.identity)
            logger.debug("SessionService instantiated")
        return self._session_service
