"""Type registry for SchemaForge.

Provides registration and lookup for:
- Built-in base types (string, number, boolean, array, object)
- Named types registered by the application (descriptors or prototype chains)

The registry is process-wide state. Writers serialize on a lock; once the
registry is frozen (compile_schema freezes it by default) every lookup is a
plain dict read and no further registration is possible.
"""

import logging
import threading
from typing import Callable

from schemaforge.core.types import BUILTIN_TYPES, TypeDescriptor
from schemaforge.schema.chain import ConstraintChain
from schemaforge.schema.errors import (
    DuplicateTypeError,
    InvalidSchemaError,
    RegistryFrozenError,
    UnknownTypeError,
)

logger = logging.getLogger(__name__)

# Builder factory signature: () -> fresh ConstraintChain
ChainFactory = Callable[[], ConstraintChain]


class TypeRegistry:
    """Registry of named type constructors.

    Example:
        # Register a named type seeded with constraints
        TypeRegistry.register("username", Types.string().alphanum().min(3))

        # Later, resolve it and keep chaining
        chain = TypeRegistry.create("username").max(30)
    """

    _factories: dict[str, ChainFactory] = {}
    _frozen: bool = False
    _version: int = 0
    _lock = threading.RLock()

    @classmethod
    def register(
        cls,
        name: str,
        definition: TypeDescriptor | ConstraintChain,
        *,
        replace: bool = False,
    ) -> None:
        """Register a named type.

        Args:
            name: Type name used by resolve() and schema documents
            definition: A descriptor (fresh chains start empty) or a prototype
                chain (fresh chains start with its applications)
            replace: Replace an existing registration instead of failing

        Raises:
            DuplicateTypeError: If the name exists and replace is False
            RegistryFrozenError: If the registry is frozen
        """
        if isinstance(definition, TypeDescriptor):
            descriptor = definition
            cls._store(name, lambda: ConstraintChain(descriptor, (), cls._version), replace)
        elif isinstance(definition, ConstraintChain):
            # Chains are immutable; handing out the prototype is handing out a copy
            prototype = definition
            cls._store(name, lambda: prototype, replace)
        else:
            raise InvalidSchemaError(
                f"Cannot register type '{name}': expected a TypeDescriptor or "
                f"ConstraintChain, got {type(definition).__name__}"
            )

    @classmethod
    def register_factory(
        cls,
        name: str,
        factory: ChainFactory,
        *,
        replace: bool = False,
    ) -> None:
        """Register a factory function producing fresh chains.

        Raises:
            DuplicateTypeError: If the name exists and replace is False
            RegistryFrozenError: If the registry is frozen
        """
        cls._store(name, factory, replace)

    @classmethod
    def _store(cls, name: str, factory: ChainFactory, replace: bool) -> None:
        with cls._lock:
            if cls._frozen:
                raise RegistryFrozenError(name)
            if name in cls._factories and not replace:
                raise DuplicateTypeError(name)
            cls._factories[name] = factory
            cls._version += 1
            logger.info("Registered type '%s' (registry version %d)", name, cls._version)

    @classmethod
    def resolve(cls, name: str) -> ChainFactory:
        """Get the factory for a registered type.

        Raises:
            UnknownTypeError: If the type is not registered
        """
        try:
            return cls._factories[name]
        except KeyError:
            raise UnknownTypeError(name, cls.list_registered()) from None

    @classmethod
    def create(cls, name: str) -> ConstraintChain:
        """Create a fresh chain of the named type."""
        return cls.resolve(name)()

    @classmethod
    def freeze(cls) -> None:
        """Disallow further registration. Idempotent."""
        with cls._lock:
            if not cls._frozen:
                cls._frozen = True
                logger.info("Type registry frozen at version %d", cls._version)

    @classmethod
    def is_frozen(cls) -> bool:
        return cls._frozen

    @classmethod
    def version(cls) -> int:
        """Counter bumped on every registration."""
        return cls._version

    @classmethod
    def is_registered(cls, name: str) -> bool:
        """Check if a type is registered."""
        return name in cls._factories

    @classmethod
    def list_registered(cls) -> list[str]:
        """List all registered type names."""
        return sorted(cls._factories.keys())

    @classmethod
    def reset(cls) -> None:
        """Restore the built-in types and unfreeze. Primarily for testing."""
        with cls._lock:
            cls._factories = {}
            cls._frozen = False
            for type_name, descriptor in BUILTIN_TYPES.items():
                cls.register(type_name, descriptor)
            cls._version = 0


class Types:
    """Shorthand accessors for the built-in base types.

    Each call resolves the type through the registry and returns a fresh chain.
    """

    @staticmethod
    def get(name: str) -> ConstraintChain:
        return TypeRegistry.create(name)

    @staticmethod
    def string() -> ConstraintChain:
        return TypeRegistry.create("string")

    @staticmethod
    def number() -> ConstraintChain:
        return TypeRegistry.create("number")

    @staticmethod
    def boolean() -> ConstraintChain:
        return TypeRegistry.create("boolean")

    @staticmethod
    def array() -> ConstraintChain:
        return TypeRegistry.create("array")

    @staticmethod
    def object() -> ConstraintChain:
        return TypeRegistry.create("object")


TypeRegistry.reset()
