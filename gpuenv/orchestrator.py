"""Run detectors in priority order and assemble the report."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence

from .configuration.schema import CheckOptions
from .detectors import (
    FALLBACK_DETECTOR,
    VENDOR_DETECTORS,
    CudaToolchain,
    DetectionContext,
    Detector,
    PythonFrameworks,
)
from .report import Report, Section
from .sysinfo import SystemInfo
from .system import Host

OVERVIEW_TITLE = "GPU Overview"
NO_GPU_TOOL_WARNING = (
    "No known GPU tool detected; there may be no discrete GPU or no driver installed"
)
PYTHON_SKIPPED_WARNING = "Skipped Python framework checks (--no-python)"
PRESENT_MESSAGES = {
    "nvidia": "NVIDIA environment detected",
    "amd": "AMD ROCm environment detected",
}


class DetectorState(str, Enum):
    NOT_TRIED = "not-tried"
    PRESENT = "present"
    ABSENT = "absent"


def select_detectors(system: str) -> List[Detector]:
    """Instantiate the vendor detectors that apply to ``system``, in priority order."""
    detectors = [cls() for cls in VENDOR_DETECTORS]
    return [detector for detector in detectors if detector.supports(system)]


@dataclass
class Orchestrator:
    """Drive every detector through ``not-tried -> present | absent``.

    The PCI fallback is attempted only when no vendor detector is present. A
    detector that raises still leaves the others and the rest of the report
    intact.
    """

    ctx: DetectionContext
    detectors: Sequence[Detector] = ()
    fallback: Optional[Detector] = None
    states: Dict[str, DetectorState] = field(default_factory=dict)

    def __post_init__(self) -> None:
        system = self.ctx.host.system
        if not self.detectors:
            self.detectors = select_detectors(system)
        if self.fallback is None:
            fallback = FALLBACK_DETECTOR()
            self.fallback = fallback if fallback.supports(system) else None
        for detector in self._all_detectors():
            self.states[detector.name] = DetectorState.NOT_TRIED

    def _all_detectors(self) -> List[Detector]:
        return list(self.detectors) + ([self.fallback] if self.fallback else [])

    def present(self, name: str) -> bool:
        return self.states.get(name) == DetectorState.PRESENT

    def detect(self, report: Report) -> None:
        overview = report.begin_section(OVERVIEW_TITLE)
        for detector in self.detectors:
            if self._run(detector, report):
                message = PRESENT_MESSAGES.get(detector.name)
                if message:
                    overview.note("ok", message)

        vendor_present = any(
            self.present(detector.name) for detector in self.detectors if detector.vendor
        )
        if not vendor_present and self.fallback is not None:
            self._run(self.fallback, report)

        if not any(state == DetectorState.PRESENT for state in self.states.values()):
            overview.note("warn", NO_GPU_TOOL_WARNING)

    def _run(self, detector: Detector, report: Report) -> bool:
        if not detector.probe(self.ctx):
            self.states[detector.name] = DetectorState.ABSENT
            return False
        self.states[detector.name] = DetectorState.PRESENT
        section = report.begin_section(detector.title)
        _collect_safely(lambda: detector.collect(self.ctx, section), section)
        return True


def _collect_safely(collect, section: Section) -> None:
    try:
        collect()
    except Exception as exc:  # noqa: BLE001
        section.note("warn", f"collection failed: {exc}")


def build_report(host: Host, options: CheckOptions) -> Report:
    """Collect the GPU environment and/or system information as ``options`` ask."""
    ctx = DetectionContext(host=host, options=options)
    report = Report()

    if options.include_gpu:
        Orchestrator(ctx).detect(report)

        cuda = CudaToolchain()
        section = report.begin_section(cuda.title)
        _collect_safely(lambda: cuda.collect(ctx, section), section)

        if options.python:
            frameworks = PythonFrameworks()
            section = report.begin_section(frameworks.title)
            _collect_safely(lambda: frameworks.collect(ctx, section), section)
        else:
            report.note("warn", PYTHON_SKIPPED_WARNING)

    if options.include_system:
        system_info = SystemInfo()
        section = report.begin_section(system_info.title)
        _collect_safely(lambda: system_info.collect(ctx, section), section)

    return report
