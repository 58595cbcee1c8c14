"""
ElementFactory - maps a type tag to an entity constructor.

This is the only place that knows the concrete entity kinds. New kinds
are plugged in with ``register`` without touching the scene, command or
netlist code.
"""

import logging
from typing import Callable, Optional

from models.elements import BUILTIN_ELEMENTS
from models.entity import Entity

logger = logging.getLogger(__name__)

# maker(x, y, rotation=0, properties=None, **extras) -> Entity
ElementMaker = Callable[..., Entity]


class UnknownElementError(KeyError):
    """Raised when the factory is asked for a type tag nobody registered."""

    def __init__(self, type_tag):
        super().__init__(type_tag)
        self.type_tag = type_tag

    def __str__(self) -> str:
        return f"Unknown element type: {self.type_tag!r}"


def _normalize(type_tag) -> str:
    return str(type_tag).strip().lower()


class ElementFactory:
    """Registry of entity constructors keyed by lower-cased type tag."""

    def __init__(self):
        self._registry: dict[str, ElementMaker] = {}

    def register(self, type_tag: str, maker: ElementMaker) -> None:
        """Register (or replace) the constructor for ``type_tag``."""
        key = _normalize(type_tag)
        if not key:
            raise ValueError("Element type tag must not be empty.")
        if key in self._registry:
            logger.debug("Replacing element maker for %r", key)
        self._registry[key] = maker

    def unregister(self, type_tag: str) -> None:
        self._registry.pop(_normalize(type_tag), None)

    def has(self, type_tag) -> bool:
        if not isinstance(type_tag, str):
            return False
        return _normalize(type_tag) in self._registry

    def create(self, type_tag: str, x: float, y: float, rotation: int = 0,
               properties: Optional[dict] = None, **extras) -> Entity:
        """
        Build a new, detached entity.

        Args:
            type_tag: Registered type tag (case-insensitive).
            x, y: Anchor position.
            rotation: Rotation in 45 degree steps.
            properties: Property patch applied over the kind's defaults.
            **extras: Type-specific options (e.g. a wire's ``end``).

        Raises:
            UnknownElementError: If ``type_tag`` is not registered.
            EntityError: If the construction arguments are invalid.
        """
        maker = self._registry.get(_normalize(type_tag)) if isinstance(type_tag, str) else None
        if maker is None:
            raise UnknownElementError(type_tag)
        return maker(x, y, rotation=rotation, properties=properties, **extras)

    def list_types(self) -> list[str]:
        return list(self._registry)


def create_default_factory() -> ElementFactory:
    """Return a factory with every built-in element kind registered."""
    factory = ElementFactory()
    for element_cls in BUILTIN_ELEMENTS:
        factory.register(element_cls.type_tag, element_cls)
    return factory


# Process-wide table, initialised once; extend it through register()
element_factory = create_default_factory()
