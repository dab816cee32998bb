"""Cloud Run JVM vs native-image performance comparison tooling."""

__version__ = "0.1.0"
