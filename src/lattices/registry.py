"""Initial-state registry mapping names to generator classes.

Provides a single lookup point for all available starting configurations.
"""
from .dwbc import DWBCHighGenerator, DWBCLowGenerator

INITIAL_STATE_REGISTRY = {
    'dwbc-high': DWBCHighGenerator,
    'dwbc-low': DWBCLowGenerator,
}


def get_generator(name: str):
    """Get an initial-state generator by name.

    Args:
        name: Initial state name (e.g., 'dwbc-high', 'dwbc-low').

    Returns:
        An instance of the corresponding InitialStateGenerator subclass.

    Raises:
        KeyError: If the name is not in the registry.
    """
    if name not in INITIAL_STATE_REGISTRY:
        available = ', '.join(sorted(INITIAL_STATE_REGISTRY.keys()))
        raise KeyError(
            f"Unknown initial state '{name}'. Available: {available}"
        )
    return INITIAL_STATE_REGISTRY[name]()


def list_initial_states():
    """Return sorted list of available initial state names."""
    return sorted(INITIAL_STATE_REGISTRY.keys())
