"""
Capability providers: where action descriptors come from.

Three sources feed the registry:
- CapabilityProvider subclasses that name one of their own methods as the action
- FunctionCapability, which wraps a plain function
- CapabilityLoader subclasses (shell, http, swagger) that produce ready-made
  descriptors from declarative sources

Discovery is data driven: load_manifest() imports the modules listed in
ACTION_MODULES and collects their CAPABILITIES and LOADERS lists.
"""

import importlib
import inspect
import typing
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

from error_handler import DiscoveryError
from logger import get_logger
from orchestration.action_model import (
    ActionDescriptor, ActionKind, ActionParameter, ParameterType, RiskLevel
)

logger = get_logger(__name__)

_ARRAY_TYPES = (list, tuple, set, frozenset)


def parameter_type_for(annotation: Any) -> ParameterType:
    """
    Map a Python annotation onto the semantic parameter types.
    bool is checked before int because bool is a subclass of int.
    """
    if annotation is inspect.Parameter.empty or annotation is str:
        return ParameterType.STRING
    if annotation is bool:
        return ParameterType.BOOLEAN
    if annotation is int:
        return ParameterType.INTEGER
    if annotation is float:
        return ParameterType.REAL

    origin = typing.get_origin(annotation)
    if annotation in _ARRAY_TYPES or origin in _ARRAY_TYPES:
        return ParameterType.ARRAY

    return ParameterType.COMPLEX


def describe_parameters(func: Callable[..., Any]) -> Tuple[ActionParameter, ...]:
    """Ordered (name, type) pairs of a callable, skipping self and *args/**kwargs"""
    try:
        hints = typing.get_type_hints(func)
    except (NameError, TypeError):
        hints = {}

    parameters = []
    for name, param in inspect.signature(func).parameters.items():
        if name == 'self' or param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        annotation = hints.get(name, param.annotation)
        parameters.append(ActionParameter(
            name=name,
            type=parameter_type_for(annotation),
            annotation=None if annotation is inspect.Parameter.empty else annotation,
        ))

    return tuple(parameters)


class CapabilityProvider(ABC):
    """
    Base class for self-describing capabilities.

    Subclasses set action_method to the name of the method that performs the
    action. The method's name becomes the action name unless action_name is set.

    Example:
        class SearchAction(CapabilityProvider):
            action_method = "search"
            description = "search the web for a query"

            def search(self, query: str) -> str:
                ...
    """

    action_method: Optional[str] = None
    action_name: Optional[str] = None
    description: Optional[str] = None
    risk: RiskLevel = RiskLevel.LOW
    group: Optional[str] = None
    group_description: Optional[str] = None

    def describe(self) -> ActionDescriptor:
        """
        Build this capability's descriptor.

        Raises:
            DiscoveryError: if no action method is declared or it is not callable
        """
        if not self.action_method:
            raise DiscoveryError(
                f"No action available in {type(self).__name__}: set action_method"
            )

        handler = getattr(self, self.action_method, None)
        if not callable(handler):
            raise DiscoveryError(
                f"{type(self).__name__}.{self.action_method} is not a callable action"
            )

        name = self.action_name or self.action_method
        return ActionDescriptor(
            name=name,
            description=self.description or name,
            parameters=describe_parameters(handler),
            handler=handler,
            risk=self.risk,
            group=self.group,
            group_description=self.group_description,
            kind=ActionKind.FUNCTION,
        )


class FunctionCapability(CapabilityProvider):
    """Wraps a plain function so it can be registered without a class"""

    def __init__(
        self,
        func: Callable[..., Any],
        name: Optional[str] = None,
        description: Optional[str] = None,
        risk: RiskLevel = RiskLevel.LOW,
        group: Optional[str] = None,
        group_description: Optional[str] = None
    ):
        self.func = func
        self.action_name = name or getattr(func, '__name__', None)
        self.description = description or inspect.getdoc(func)
        self.risk = risk
        self.group = group
        self.group_description = group_description

    def describe(self) -> ActionDescriptor:
        if not callable(self.func):
            raise DiscoveryError(f"{self.func!r} is not callable")
        if not self.action_name or self.action_name == '<lambda>':
            raise DiscoveryError(f"No action name available for {self.func!r}")

        return ActionDescriptor(
            name=self.action_name,
            description=self.description or self.action_name,
            parameters=describe_parameters(self.func),
            handler=self.func,
            risk=self.risk,
            group=self.group,
            group_description=self.group_description,
            kind=ActionKind.FUNCTION,
        )


class CapabilityLoader(ABC):
    """
    Declarative source of actions (shell commands, HTTP endpoints, swagger specs).

    source decides the registration order: shell, then http, then swagger.
    A loader that cannot load raises LoaderError; the registry logs it and moves on.
    """

    source: str = "extended"

    @abstractmethod
    def load(self) -> Iterable[ActionDescriptor]:
        """Produce this loader's descriptors"""


def load_manifest(module_names: Sequence[str]) -> Tuple[List[CapabilityProvider], List[CapabilityLoader]]:
    """
    Import each module and collect its CAPABILITIES and LOADERS.

    Raises:
        DiscoveryError: if a module cannot be imported
    """
    providers: List[CapabilityProvider] = []
    loaders: List[CapabilityLoader] = []

    for module_name in module_names:
        try:
            module = importlib.import_module(module_name)
        except ImportError as e:
            raise DiscoveryError(f"Cannot import action module {module_name}: {e}") from e

        module_providers = list(getattr(module, 'CAPABILITIES', []))
        module_loaders = list(getattr(module, 'LOADERS', []))
        logger.info(
            f"Module {module_name}: {len(module_providers)} capabilities, "
            f"{len(module_loaders)} loaders"
        )
        providers.extend(module_providers)
        loaders.extend(module_loaders)

    return providers, loaders
