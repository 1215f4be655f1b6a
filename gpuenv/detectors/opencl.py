"""OpenCL platforms and devices via clinfo."""

from __future__ import annotations

from gpuenv.extract import Pattern
from gpuenv.report import Section
from gpuenv.resolver import resolve_values

from .base import DetectionContext, Detector

PLATFORM_COUNT = Pattern(r"Number of platforms\s+(\d+)")
DEVICE_NAME = Pattern(r"^\s*Device Name\s+(.+)$")
DEVICE_TYPE = Pattern(r"^\s*Device Type\s+(.+)$")


class OpenClDetector(Detector):
    name = "opencl"
    title = "OpenCL Devices"
    tool = "clinfo"
    # OpenCL runtimes also exist for CPUs, so clinfo never answers for a GPU vendor.
    vendor = False

    def collect(self, ctx: DetectionContext, section: Section) -> None:
        section.emit(
            "Platforms", ctx.resolve("platforms", [ctx.command("clinfo", rule=PLATFORM_COUNT)])
        )
        names = resolve_values([ctx.command("clinfo", rule=DEVICE_NAME)], ctx.host)
        types = resolve_values([ctx.command("clinfo", rule=DEVICE_TYPE)], ctx.host)
        for position, name in enumerate(names):
            kind = types[position] if position < len(types) else None
            section.emit("Device", f"{name} ({kind})" if kind else name)
        if not names:
            for kind in types:
                section.emit("Device", kind)

        if ctx.options.verbose:
            section.raw(ctx.raw_output("clinfo"))
