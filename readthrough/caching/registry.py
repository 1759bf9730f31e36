"""
Cacheable Operation Registry

Declares cache options for named functions and entities up front, so service
calls pick them up without passing options on every call:

    registry.add_cacheable_entity("Books", {"ttl": 60, "tags": ["books"]})
    registry.add_cacheable_function("getRecommendations", {"ttl": 30})
    registry.add_cacheable_function("addReview", {"ttl": 5}, bound=True)

Resolution for a ServiceCallRequest, lowest precedence first:
defaults -> entity options (by ``target``) -> function options (by ``event``;
bound when the request carries a query) -> explicit per-call options.
"""

from collections.abc import Mapping
from typing import Any

from readthrough.caching.descriptors import ServiceCallRequest
from readthrough.caching.models import CacheOptions
from readthrough.core.config.constants import Stage
from readthrough.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)


class CacheableRegistry:
    """Registered cache options for functions (bound/unbound) and entities."""

    def __init__(self):
        self._functions: dict[bool, dict[str, dict[str, Any]]] = {False: {}, True: {}}
        self._entities: dict[str, dict[str, Any]] = {}

    def add_cacheable_function(self, name: str, options: Mapping[str, Any] | None = None, bound: bool = False) -> None:
        self._functions[bool(bound)][name] = dict(options or {})
        log_stage(logger, Stage.OPTIONS_RESOLUTION, "Cacheable function registered", function=name, bound=bound)

    def add_cacheable_entity(self, name: str, options: Mapping[str, Any] | None = None) -> None:
        self._entities[name] = dict(options or {})
        log_stage(logger, Stage.OPTIONS_RESOLUTION, "Cacheable entity registered", entity=name)

    def is_registered(self, request: ServiceCallRequest) -> bool:
        return self._entity_options(request) is not None or self._function_options(request) is not None

    def options_for(
        self,
        request: ServiceCallRequest,
        explicit: CacheOptions | Mapping[str, Any] | None = None,
        default_ttl: int = 0,
    ) -> CacheOptions:
        """Resolve the effective options of a service call."""
        options = CacheOptions(ttl=default_ttl)
        for layer in (self._entity_options(request), self._function_options(request)):
            if layer is not None:
                options = options.merged(layer)
        return options.merged(explicit)

    def _entity_options(self, request: ServiceCallRequest) -> dict[str, Any] | None:
        if request.target is None:
            return None
        return self._entities.get(request.target)

    def _function_options(self, request: ServiceCallRequest) -> dict[str, Any] | None:
        if request.event is None:
            return None
        return self._functions[request.query is not None].get(request.event)
