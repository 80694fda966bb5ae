"""attest - run compliance profiles against a target and classify the results."""

__version__ = "1.0.0"

from .core.dsl import control  # noqa: E402

__all__ = ["__version__", "control"]
