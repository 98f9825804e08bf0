"""
Action registry: the process-wide catalog of action descriptors.

Population happens once, at startup: self-describing capabilities first, then
the declarative loaders in a fixed order (shell, http, swagger). A later
registration with the same name replaces the earlier one (last write wins).
After population the registry is only read.
"""

import threading
from typing import Dict, Iterable, List, Optional

from config import Config
from error_handler import DiscoveryError, LoaderError
from logger import get_logger
from orchestration.action_model import NO_OP_ACTION, NO_OP_ACTION_NAME, ActionDescriptor
from orchestration.capabilities import CapabilityLoader, CapabilityProvider, load_manifest

logger = get_logger(__name__)

LOADER_ORDER = ("shell", "http", "swagger")


class ActionRegistry:
    """Maps action names to descriptors and renders the name list used in prompts"""

    def __init__(self):
        self._actions: Dict[str, ActionDescriptor] = {}
        self._rendered_names: List[str] = []

    def register(self, descriptor: ActionDescriptor) -> None:
        """
        Raises:
            DiscoveryError: if the descriptor has no name
        """
        if not descriptor.name:
            raise DiscoveryError(f"Cannot register an action without a name: {descriptor!r}")

        if descriptor.name in self._actions:
            logger.info(f"Replacing previously registered action {descriptor.name}")

        self._actions[descriptor.name] = descriptor
        self._rendered_names.append(f"{descriptor.name},")

    def register_provider(self, provider: CapabilityProvider) -> ActionDescriptor:
        descriptor = provider.describe()
        self.register(descriptor)
        return descriptor

    def resolve(self, name: str) -> Optional[ActionDescriptor]:
        """Exact-match lookup. The no-op sentinel always resolves; unknown names give None."""
        descriptor = self._actions.get(name)
        if descriptor is None and name == NO_OP_ACTION_NAME:
            return NO_OP_ACTION
        return descriptor

    def resolve_or_noop(self, name: str) -> ActionDescriptor:
        descriptor = self.resolve(name)
        if descriptor is None:
            logger.warning(f"Action {name!r} is not registered, using {NO_OP_ACTION_NAME}")
            return NO_OP_ACTION
        return descriptor

    def rendered_names(self) -> str:
        return "".join(self._rendered_names)

    def names(self) -> List[str]:
        return list(self._actions)

    def __contains__(self, name: str) -> bool:
        return name in self._actions

    def __len__(self) -> int:
        return len(self._actions)

    def populate(
        self,
        providers: Iterable[CapabilityProvider] = (),
        loaders: Iterable[CapabilityLoader] = ()
    ) -> None:
        """
        Register every provider, then every loader's actions.

        Raises:
            DiscoveryError: if a provider exposes no action metadata
        """
        for provider in providers:
            descriptor = self.register_provider(provider)
            logger.info(f"Registered action {descriptor.name}")

        for loader in _ordered_loaders(loaders):
            try:
                descriptors = list(loader.load())
            except LoaderError as e:
                logger.warning(f"{type(loader).__name__} skipped: {e}")
                continue

            for descriptor in descriptors:
                self.register(descriptor)
            logger.info(f"{type(loader).__name__} registered {len(descriptors)} {loader.source} actions")


def _ordered_loaders(loaders: Iterable[CapabilityLoader]) -> List[CapabilityLoader]:
    """Known sources in LOADER_ORDER, unknown sources after them in given order"""
    def position(loader: CapabilityLoader) -> int:
        if loader.source in LOADER_ORDER:
            return LOADER_ORDER.index(loader.source)
        return len(LOADER_ORDER)

    return sorted(loaders, key=position)


# ============================================================================
# PROCESS-WIDE INSTANCE
# ============================================================================

_registry: Optional[ActionRegistry] = None
_registry_lock = threading.Lock()


def get_registry(
    providers: Optional[Iterable[CapabilityProvider]] = None,
    loaders: Optional[Iterable[CapabilityLoader]] = None
) -> ActionRegistry:
    """
    Return the process-wide registry, populating it on first use.

    The first caller populates while holding the lock; concurrent first
    callers block until it is done and then read the same instance. Without
    explicit providers/loaders the modules in ACTION_MODULES are used.
    Arguments passed after the first call are ignored.
    """
    global _registry

    with _registry_lock:
        if _registry is None:
            if providers is None and loaders is None:
                providers, loaders = load_manifest(Config.action_modules())

            registry = ActionRegistry()
            registry.populate(providers or (), loaders or ())
            _registry = registry

    return _registry


def reset_registry() -> None:
    """Drop the process-wide registry (tests only)"""
    global _registry

    with _registry_lock:
        _registry = None
