"""GPU environment and system information checks."""

__version__ = "0.1.0"
__description__ = (
    "Check a machine for GPU/accelerator tooling, CUDA and ML frameworks, "
    "and report general system information."
)

__all__ = ["__version__", "__description__"]
