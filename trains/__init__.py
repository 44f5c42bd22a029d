"""Release-train computation and pull request merge tooling."""

__version__ = "0.1.0"
