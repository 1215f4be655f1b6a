"""Generic PCI listing, used only when no vendor tool answered."""

from __future__ import annotations

import re

from gpuenv.extract import Pattern
from gpuenv.report import Section
from gpuenv.resolver import resolve_values

from .base import DetectionContext, Detector

# Whole words only: "Corporation" must not count as an ATI device.
GPU_LINE = Pattern(
    r"^.*(?:\b(?:VGA|3D|Display)\b.*controller|\b(?:NVIDIA|AMD|ATI)\b).*$",
    flags=re.IGNORECASE | re.MULTILINE,
)


class PciFallbackDetector(Detector):
    name = "pci"
    title = "GPU (PCI) Overview"
    tool = "lspci"
    platforms = ("Linux",)
    vendor = False

    def collect(self, ctx: DetectionContext, section: Section) -> None:
        for line in resolve_values([ctx.command("lspci", rule=GPU_LINE)], ctx.host):
            section.emit("Device", line)
