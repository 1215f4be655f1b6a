"""CUDA toolkit, driver runtime and cuDNN detection."""

from __future__ import annotations

import posixpath
import re
from typing import List, Optional

from gpuenv.extract import Fact, JsonKey, MissReason, Pattern, extract
from gpuenv.report import Section
from gpuenv.resolver import ComputedSource, FileSource, Source

from .base import DetectionContext

NVCC_RELEASE = Pattern(r"release\s+([0-9][0-9.]*)")
NVCC_BUILD = Pattern(r"\bV([0-9][0-9.]*)")
VERSION_TXT = Pattern(r"CUDA[^0-9]*([0-9][0-9.]*)")
VERSION_JSON = JsonKey("cuda.version")
VERSION_JSON_ANY = Pattern(r'"version"\s*:\s*"([0-9.]+)"')
MAJOR_MINOR = Pattern(r"^(\d+\.\d+)")
DRIVER_CUDA = Pattern(r"CUDA Version:\s*([0-9.]+)")
LDCONFIG_CUDNN = Pattern(r"libcudnn\S*", flags=re.IGNORECASE | re.MULTILINE)

CUDNN_HEADER = "cudnn_version.h"
CUDNN_FIELDS = ("CUDNN_MAJOR", "CUDNN_MINOR", "CUDNN_PATCHLEVEL")
DEFAULT_CUDA_HOME = "/usr/local/cuda"
VERSIONED_CUDA_HOMES = "/usr/local/cuda-*"


def find_cuda_home(ctx: DetectionContext) -> Optional[str]:
    """``$CUDA_HOME``, else the last /usr/local/cuda-* with a version file, else /usr/local/cuda."""
    host = ctx.host
    explicit = host.getenv("CUDA_HOME")
    if explicit:
        return explicit
    home = DEFAULT_CUDA_HOME if host.is_dir(DEFAULT_CUDA_HOME) else None
    for candidate in host.glob(VERSIONED_CUDA_HOMES):
        if not host.is_dir(candidate):
            continue
        if host.is_file(posixpath.join(candidate, "version.txt")) or host.is_file(
            posixpath.join(candidate, "version.json")
        ):
            home = candidate
    return home


def cudnn_header_version(ctx: DetectionContext, header: str) -> Fact:
    text = ctx.host.read_text(header)
    if text is None:
        return Fact.absent("cudnn", MissReason.TOOL_UNAVAILABLE)
    parts = [
        extract(text, Pattern(rf"^\s*#\s*define\s+{field}\s+(\d+)"), name=field)
        for field in CUDNN_FIELDS
    ]
    if not parts[0].present:
        return Fact.absent("cudnn", MissReason.PARSE_MISS)
    version = ".".join(part.value if part.present else "0" for part in parts)
    return Fact(name="cudnn", value=version)


class CudaToolchain:
    title = "CUDA Toolchain"

    def collect(self, ctx: DetectionContext, section: Section) -> None:
        nvcc = self.nvcc_version(ctx)
        if ctx.host.has_command("nvcc"):
            section.emit("NVCC", f"installed, version: {nvcc.value or 'unknown'}")
        else:
            section.emit("NVCC", nvcc, hint="nvcc not found on PATH")

        home = find_cuda_home(ctx)
        section.emit("CUDA home", home)
        section.emit("CUDA", ctx.resolve("cuda", self.toolkit_sources(ctx, home, nvcc)))

        if ctx.host.has_command("nvidia-smi"):
            section.emit(
                "CUDA (driver)",
                ctx.resolve("cuda_driver", [ctx.command("nvidia-smi", rule=DRIVER_CUDA)]),
            )

        cudnn = ctx.resolve("cudnn", self.cudnn_sources(ctx, home))
        if cudnn.source == "ldconfig":
            section.emit("cuDNN", "installed (found via ldconfig)")
        elif cudnn.present:
            section.emit("cuDNN", f"version {cudnn.value}")
        elif ctx.host.has_command("ldconfig"):
            section.emit("cuDNN", cudnn, hint="not detected")
        else:
            section.emit(
                "cuDNN", cudnn, hint="headers not found; not installed or non-standard path"
            )

    def nvcc_version(self, ctx: DetectionContext) -> Fact:
        return ctx.resolve(
            "nvcc",
            [
                ctx.command("nvcc", "--version", rule=NVCC_RELEASE),
                ctx.command("nvcc", "--version", rule=NVCC_BUILD),
            ],
        )

    def toolkit_sources(
        self, ctx: DetectionContext, home: Optional[str], nvcc: Fact
    ) -> List[Source]:
        sources: List[Source] = []
        if home:
            version_txt = posixpath.join(home, "version.txt")
            version_json = posixpath.join(home, "version.json")
            sources += [
                FileSource(version_txt, VERSION_TXT),
                FileSource(version_json, VERSION_JSON),
                FileSource(version_json, VERSION_JSON_ANY),
            ]
        sources.append(
            ComputedSource(
                lambda host: extract(nvcc.value, MAJOR_MINOR, name="cuda"), label="nvcc"
            )
        )
        return sources

    def cudnn_sources(self, ctx: DetectionContext, home: Optional[str]) -> List[Source]:
        directories = [posixpath.join(home, "include")] if home else []
        for entry in ctx.options.cudnn_search_paths:
            if "*" in entry:
                directories.extend(ctx.host.glob(entry))
            else:
                directories.append(entry)

        sources: List[Source] = []
        for directory in directories:
            header = posixpath.join(directory, CUDNN_HEADER)
            if ctx.host.is_file(header):
                sources.append(
                    ComputedSource(
                        lambda host, header=header: cudnn_header_version(ctx, header),
                        label=header,
                    )
                )
        sources.append(ctx.command("ldconfig", "-p", rule=LDCONFIG_CUDNN, label="ldconfig"))
        return sources
