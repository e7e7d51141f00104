from wirebox.container import Container, current_container
from wirebox.definitions import ClassRef, Factory, Graph, Instance
from wirebox.exceptions import (
    CircularDependencyError,
    ContainerError,
    ContainerNotBoundError,
    InvalidDefinitionError,
    InvalidGraphError,
    InvalidRegistrationError,
    MissingParameterError,
    ServiceNotFoundError,
)
from wirebox.graph import (
    DeclarativeGraph,
    LiteralArgument,
    MethodCall,
    PropertyAssignment,
    ReferenceArgument,
)
from wirebox.injectable import Injectable, InjectableMixin, ServiceProvider
from wirebox.introspection import ParameterDescriptor

__all__ = [
    "CircularDependencyError",
    "ClassRef",
    "Container",
    "ContainerError",
    "ContainerNotBoundError",
    "DeclarativeGraph",
    "Factory",
    "Graph",
    "Injectable",
    "InjectableMixin",
    "Instance",
    "InvalidDefinitionError",
    "InvalidGraphError",
    "InvalidRegistrationError",
    "LiteralArgument",
    "MethodCall",
    "MissingParameterError",
    "ParameterDescriptor",
    "PropertyAssignment",
    "ReferenceArgument",
    "ServiceNotFoundError",
    "ServiceProvider",
    "current_container",
]
