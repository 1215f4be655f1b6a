"""NVIDIA driver and GPU details via nvidia-smi."""

from __future__ import annotations

import re
from typing import List

from gpuenv.extract import (
    Block,
    Column,
    Fact,
    KeyValue,
    Pattern,
    XmlPath,
    derive_difference,
    extract,
)
from gpuenv.report import UNAVAILABLE, Section
from gpuenv.resolver import ComputedSource, Source, TextSource, resolve_values

from .base import DetectionContext, Detector

QUERY_FIELDS = ("index", "name", "memory.total", "memory.used", "uuid", "compute_cap")
INDEX, NAME, TOTAL, USED, UUID, COMPUTE_CAP = range(len(QUERY_FIELDS))

# "|  N/A   34C  P8   9W / 70W |   512MiB / 16384MiB |  0%  Default |"
SUMMARY_USED = Pattern(r"(\d+)MiB\s*/\s*\d+MiB")
SUMMARY_TOTAL = Pattern(r"\d+MiB\s*/\s*(\d+)MiB")

_LIST_LINE = re.compile(r"^GPU\s+(\d+):\s*(.+)$")


def _shown(fact: Fact) -> str:
    return fact.value if fact.present else UNAVAILABLE


class NvidiaDetector(Detector):
    name = "nvidia"
    title = "NVIDIA Driver & GPU"
    tool = "nvidia-smi"

    def collect(self, ctx: DetectionContext, section: Section) -> None:
        section.emit("Driver version", self.driver_version(ctx))

        rows = self.query_rows(ctx)
        if rows:
            for position, row in enumerate(rows):
                self._emit_gpu(ctx, section, row, position)
        else:
            for line in resolve_values([ctx.command("nvidia-smi", "-L")], ctx.host):
                match = _LIST_LINE.match(line)
                if match:
                    section.emit(f"GPU#{match.group(1)}", match.group(2))
                else:
                    section.emit("GPU", line)

        if ctx.options.verbose:
            section.raw(ctx.raw_output("nvidia-smi"))

    def driver_version(self, ctx: DetectionContext) -> Fact:
        return ctx.resolve(
            "driver_version",
            [
                ctx.command(
                    "nvidia-smi",
                    "--query-gpu=driver_version",
                    "--format=csv,noheader",
                    rule=Column(0),
                ),
                ctx.command("nvidia-smi", rule=Pattern(r"Driver Version:\s*([0-9.]+)")),
            ],
        )

    def query_rows(self, ctx: DetectionContext) -> List[str]:
        return resolve_values(
            [
                ctx.command(
                    "nvidia-smi",
                    f"--query-gpu={','.join(QUERY_FIELDS)}",
                    "--format=csv,noheader",
                )
            ],
            ctx.host,
        )

    def _emit_gpu(
        self, ctx: DetectionContext, section: Section, row: str, position: int
    ) -> None:
        index = extract(row, Column(INDEX)).value or str(position)
        name = ctx.resolve("name", [TextSource(row, Column(NAME), label="query")])
        total = ctx.resolve("memory.total", self.total_sources(ctx, row, index))
        free = ctx.resolve("memory.free", self.free_sources(ctx, row, index))

        section.emit(
            f"GPU#{index}",
            Fact(
                name=f"gpu{index}",
                value=f"{_shown(name)} | mem: {_shown(total)}, free: {_shown(free)}",
            ),
        )
        section.emit(
            f"GPU#{index} CC",
            ctx.resolve("compute_cap", [TextSource(row, Column(COMPUTE_CAP))]),
        )
        section.emit(
            f"GPU#{index} UUID", ctx.resolve("uuid", [TextSource(row, Column(UUID))])
        )

    def _memory_query(self, ctx: DetectionContext, index: str, rule):
        return ctx.command("nvidia-smi", "-q", "-i", index, "-d", "MEMORY", rule=rule)

    def _xml_query(self, ctx: DetectionContext, index: str, rule):
        return ctx.command("nvidia-smi", "-q", "-x", "-i", index, rule=rule)

    def total_sources(self, ctx: DetectionContext, row: str, index: str) -> List[Source]:
        return [
            TextSource(row, Column(TOTAL), label="query"),
            self._memory_query(
                ctx, index, Block(r"FB Memory Usage", KeyValue(r"^Total$"))
            ),
            self._memory_query(ctx, index, Block(r"Memory Usage", KeyValue(r"^Total$"))),
            self._xml_query(ctx, index, XmlPath("gpu/fb_memory_usage/total")),
            ComputedSource(
                lambda host: self._summary(ctx, SUMMARY_TOTAL, suffix="MiB"),
                label="summary table",
            ),
        ]

    def free_sources(self, ctx: DetectionContext, row: str, index: str) -> List[Source]:
        def from_query(host) -> Fact:
            return derive_difference(
                "memory.free", extract(row, Column(TOTAL)), extract(row, Column(USED))
            )

        def from_summary(host) -> Fact:
            return derive_difference(
                "memory.free",
                self._summary(ctx, SUMMARY_TOTAL, suffix="MiB"),
                self._summary(ctx, SUMMARY_USED, suffix="MiB"),
            )

        return [
            ComputedSource(from_query, label="query total - used"),
            self._memory_query(
                ctx, index, Block(r"FB Memory Usage", KeyValue(r"^Free$"))
            ),
            self._memory_query(ctx, index, Block(r"Memory Usage", KeyValue(r"^Free$"))),
            self._xml_query(ctx, index, XmlPath("gpu/fb_memory_usage/free")),
            ComputedSource(from_summary, label="summary table"),
        ]

    def _summary(self, ctx: DetectionContext, rule: Pattern, *, suffix: str) -> Fact:
        # First match wins when several GPUs share the table.
        fact = ctx.resolve("summary", [ctx.command("nvidia-smi", rule=rule)])
        if not fact.present:
            return fact
        return Fact(name=fact.name, value=f"{fact.value}{suffix}", source=fact.source)

