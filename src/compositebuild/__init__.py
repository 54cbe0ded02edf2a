"""compositebuild - composite build closure and snapshot version resolution."""

__version__ = "0.3.0"
