import logging
import threading
from typing import Any, Dict, cast, override

from jwksauthlib.container.interfaces import IContainer, ServiceFactory
from jwksauthlib.utilities.logger.log_levels import SRC_LOG_LEVELS

logger = logging.getLogger(__name__)
logger.setLevel(SRC_LOG_LEVELS["INITIALIZATION"])


def _safe_type_name(t: Any) -> str:
    """Return a readable name for a type or object."""
    return getattr(t, "__name__", repr(t))


class ContainerError(Exception):
    """Base exception for container errors"""


class ServiceNotFoundError(ContainerError):
    """Raised when a service is not found"""


class SimpleContainer(IContainer):
    """
    Minimal IoC container with two scopes:

    1. Singleton: created once per container and shared by every caller
    2. Transient: created every time it is resolved

    The caches and the verifier are registered as singletons so that every
    request shares the same in-memory state. A reentrant lock guards singleton
    creation so factories may resolve other singletons.
    """

    def __init__(self) -> None:
        self._factories: Dict[type[Any], ServiceFactory[Any]] = {}
        self._singleton_types: set[type[Any]] = set()
        self._singletons: Dict[type[Any], Any] = {}
        self._singleton_lock: threading.RLock = threading.RLock()

    @override
    def register[T](
        self, service_type: type[T], factory: ServiceFactory[T]
    ) -> "SimpleContainer":
        """Register a transient service factory."""
        if not callable(factory):
            raise ValueError(f"Factory for {service_type} must be callable")
        self._factories[service_type] = factory
        self._singleton_types.discard(service_type)
        logger.debug("Registered factory for service '%s'", _safe_type_name(service_type))
        return self

    @override
    def singleton[T](
        self, service_type: type[T], factory: ServiceFactory[T]
    ) -> "SimpleContainer":
        """Register a service that is created once, on first resolve."""
        if not callable(factory):
            raise ValueError(f"Factory for {service_type} must be callable")
        self._factories[service_type] = factory
        self._singleton_types.add(service_type)
        logger.debug("Registered singleton service '%s'", _safe_type_name(service_type))
        return self

    @override
    def resolve[T](self, service_type: type[T]) -> T:
        service_name = _safe_type_name(service_type)

        # Fast path: already instantiated singleton
        if service_type in self._singletons:
            return cast(T, self._singletons[service_type])

        if service_type not in self._factories:
            logger.error("Service '%s' not found during resolve", service_name)
            raise ServiceNotFoundError(f"No factory registered for {service_type}")

        if service_type in self._singleton_types:
            with self._singleton_lock:
                # Double-check: another thread may have created it while we waited
                if service_type in self._singletons:
                    return cast(T, self._singletons[service_type])
                logger.info("Instantiating singleton '%s'", service_name)
                service: T = self._factories[service_type](self)
                self._singletons[service_type] = service
                return service

        return cast(T, self._factories[service_type](self))

    def clear_singletons(self) -> None:
        logger.debug("Clearing %d singleton instances", len(self._singletons))
        with self._singleton_lock:
            self._singletons.clear()
