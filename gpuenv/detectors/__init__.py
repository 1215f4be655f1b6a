"""Accelerator detectors, listed in priority order."""

from .amd import AmdDetector
from .base import DetectionContext, Detector
from .cuda import CudaToolchain
from .macos import MacDisplayDetector
from .nvidia import NvidiaDetector
from .opencl import OpenClDetector
from .pci import PciFallbackDetector
from .python import PythonFrameworks

VENDOR_DETECTORS = (NvidiaDetector, AmdDetector, MacDisplayDetector, OpenClDetector)
FALLBACK_DETECTOR = PciFallbackDetector

__all__ = [
    "AmdDetector",
    "CudaToolchain",
    "DetectionContext",
    "Detector",
    "FALLBACK_DETECTOR",
    "MacDisplayDetector",
    "NvidiaDetector",
    "OpenClDetector",
    "PciFallbackDetector",
    "PythonFrameworks",
    "VENDOR_DETECTORS",
]
