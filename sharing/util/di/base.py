"""Base classes for dependency injection providers."""

from typing import ClassVar, Literal

from dishka import Provider

# Components with a production and a test implementation
Component = Literal["persistence", "identity", "email", "clock"]


class ProviderBase(Provider):
    """Base for all DI providers.

    A mockable component has one abstract provider naming it in
    ``__mock_component__`` and two direct subclasses, one of them with
    ``__is_mock__`` set. Concrete providers leave both at their defaults.
    """

    __mock_component__: ClassVar[Component | None] = None
    __is_mock__: ClassVar[bool] = False
