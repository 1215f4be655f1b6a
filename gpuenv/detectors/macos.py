"""Built-in display adapters on macOS via system_profiler."""

from __future__ import annotations

from gpuenv.extract import KeyValue
from gpuenv.report import Section
from gpuenv.resolver import resolve_values

from .base import DetectionContext, Detector

CHIPSET = KeyValue(r"^Chipset Model$")
VRAM = KeyValue(r"^VRAM")
CORES = KeyValue(r"^Total Number of Cores$")


class MacDisplayDetector(Detector):
    name = "macos"
    title = "macOS Graphics"
    tool = "system_profiler"
    platforms = ("Darwin",)

    def collect(self, ctx: DetectionContext, section: Section) -> None:
        def source(rule):
            return ctx.command("system_profiler", "SPDisplaysDataType", rule=rule)

        for chipset in resolve_values([source(CHIPSET)], ctx.host):
            section.emit("Chipset", chipset)
        for vram in resolve_values([source(VRAM)], ctx.host):
            section.emit("VRAM", vram)
        for cores in resolve_values([source(CORES)], ctx.host):
            section.emit("GPU cores", cores)

        if ctx.options.verbose:
            section.raw(ctx.raw_output("system_profiler", "SPDisplaysDataType"))
