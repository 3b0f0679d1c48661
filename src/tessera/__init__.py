"""TESSERA

An asynchronous runtime for applications composed of independently versioned
components. Components are registered by definition, instantiated against a
configuration, and wired into a tree whose construction and startup order
follow the data dependencies declared inside that configuration.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
