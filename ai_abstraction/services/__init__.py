from .abstraction_layer import (
    AIProviderAbstractionLayer,
    close_abstraction_layer,
    create_abstraction_layer,
    get_abstraction_layer,
    init_abstraction_layer,
)

__all__ = [
    "AIProviderAbstractionLayer",
    "close_abstraction_layer",
    "create_abstraction_layer",
    "get_abstraction_layer",
    "init_abstraction_layer",
]
