"""AMD ROCm GPU details via rocm-smi."""

from __future__ import annotations

from gpuenv.extract import Fact, Pattern, derive_difference
from gpuenv.report import Section
from gpuenv.resolver import ComputedSource

from .base import DetectionContext, Detector

# rocm-smi prefixes every value line with "GPU[N]" and a colon.
PRODUCT_SERIES = Pattern(r"Card [Ss]eries:\s*(.+)$")
PRODUCT_MODEL = Pattern(r"Card [Mm]odel:\s*(.+)$")
PCI_BUS = Pattern(r"PCI Bus:\s*(\S+)")
VRAM_TOTAL = Pattern(r"VRAM Total Memory \(B\):\s*(\d+)")
VRAM_USED = Pattern(r"VRAM Total Used Memory \(B\):\s*(\d+)")
DRIVER_VERSION = Pattern(r"Driver version:\s*(\S+)", flags=0)


class AmdDetector(Detector):
    name = "amd"
    title = "AMD ROCm & GPU"
    tool = "rocm-smi"

    def collect(self, ctx: DetectionContext, section: Section) -> None:
        section.emit(
            "Product",
            ctx.resolve(
                "product",
                [
                    ctx.command("rocm-smi", "--showproductname", rule=PRODUCT_SERIES),
                    ctx.command("rocm-smi", "--showproductname", rule=PRODUCT_MODEL),
                ],
            ),
        )
        section.emit(
            "Driver version",
            ctx.resolve(
                "driver_version",
                [ctx.command("rocm-smi", "--showdriverversion", rule=DRIVER_VERSION)],
            ),
        )
        section.emit(
            "PCI bus",
            ctx.resolve("bus", [ctx.command("rocm-smi", "--showbus", rule=PCI_BUS)]),
        )

        total = self._vram(ctx, "vram.total", VRAM_TOTAL)
        section.emit("VRAM total (B)", total)
        section.emit(
            "VRAM free (B)",
            ctx.resolve(
                "vram.free",
                [
                    ComputedSource(
                        lambda host: derive_difference(
                            "vram.free", total, self._vram(ctx, "vram.used", VRAM_USED)
                        ),
                        label="total - used",
                    )
                ],
            ),
        )

        if ctx.options.verbose:
            section.raw(ctx.raw_output("rocm-smi"))

    def _vram(self, ctx: DetectionContext, name: str, rule: Pattern) -> Fact:
        return ctx.resolve(
            name, [ctx.command("rocm-smi", "--showmeminfo", "vram", rule=rule)]
        )
