"""End-to-end tests for detector ordering, fallback gating and report assembly."""

from __future__ import annotations

import pytest

from gpuenv.configuration import CheckOptions
from gpuenv.detectors import Detector
from gpuenv.orchestrator import (
    NO_GPU_TOOL_WARNING,
    OVERVIEW_TITLE,
    PYTHON_SKIPPED_WARNING,
    DetectorState,
    Orchestrator,
    build_report,
    select_detectors,
)
from gpuenv.report import Note, Report

GPU_QUERY = (
    "nvidia-smi",
    "--query-gpu=index,name,memory.total,memory.used,uuid,compute_cap",
    "--format=csv,noheader",
)
LSPCI_LINE = "01:00.0 VGA compatible controller: Advanced Micro Devices, Inc. [AMD/ATI] Navi 21"
LSPCI = f"00:1f.3 Audio device: Intel Corporation Device a348 (rev 10)\n{LSPCI_LINE}\n"


def section_names(report: Report) -> list:
    return [section.name for section in report.sections]


def overview_messages(report: Report) -> list:
    return [note.message for note in report.section(OVERVIEW_TITLE).notes]


class ExplodingDetector(Detector):
    name = "exploding"
    title = "Exploding"
    tool = "boom"

    def collect(self, ctx, section):
        section.emit("Before", "ok")
        raise RuntimeError("parser blew up")


class TestScenarios:
    """Whole-report behaviour against scripted machines."""

    def test_pci_fallback_only(self, fake_host):
        host = fake_host(commands=["lspci"], outputs={("lspci",): LSPCI})
        report = build_report(host, CheckOptions(mode="gpu", python=False))

        assert section_names(report) == [OVERVIEW_TITLE, "GPU (PCI) Overview", "CUDA Toolchain"]
        pci = report.section("GPU (PCI) Overview")
        assert [row.fact.value for row in pci.rows] == [LSPCI_LINE]
        assert NO_GPU_TOOL_WARNING not in overview_messages(report)

    def test_nvidia_memory_row(self, fake_host):
        host = fake_host(
            commands=["nvidia-smi", "lspci"],
            outputs={GPU_QUERY: "0, Tesla T4, 16384MiB, 512MiB, GPU-x, 7.5\n", ("lspci",): LSPCI},
        )
        report = build_report(host, CheckOptions(mode="gpu", python=False))

        assert "  - GPU#0: Tesla T4 | mem: 16384MiB, free: 15872MiB" in report.render()
        assert report.section("GPU (PCI) Overview") is None
        assert overview_messages(report) == ["NVIDIA environment detected"]

    def test_nothing_detected_warns(self, fake_host):
        report = build_report(fake_host(), CheckOptions(mode="gpu", python=False))
        assert section_names(report) == [OVERVIEW_TITLE, "CUDA Toolchain"]
        assert overview_messages(report) == [NO_GPU_TOOL_WARNING]

    def test_report_is_idempotent(self, fake_host):
        def machine():
            return fake_host(
                commands=["nvidia-smi", "python3", "lscpu"],
                outputs={
                    GPU_QUERY: "0, Tesla T4, 16384MiB, 512MiB, GPU-x, 7.5\n",
                    ("python3", "-V"): "Python 3.11.6\n",
                    ("lscpu",): "Model name: AMD EPYC 7B13\nCPU(s): 8\n",
                },
                files={"/etc/machine-id": "0123456789abcdef\n"},
            )

        options = CheckOptions(verbose=True)
        first = build_report(machine(), options).render(verbose=True)
        second = build_report(machine(), options).render(verbose=True)
        assert first == second


class TestGating:
    """Tests for which detectors run and which sections appear."""

    def test_vendor_suppresses_pci_fallback(self, fake_host, make_ctx):
        host = fake_host(commands=["rocm-smi", "lspci"], outputs={("lspci",): LSPCI})
        orchestrator = Orchestrator(make_ctx(host))
        orchestrator.detect(Report())

        assert orchestrator.states["amd"] is DetectorState.PRESENT
        assert orchestrator.states["pci"] is DetectorState.NOT_TRIED
        assert ("lspci",) not in host.calls

    def test_opencl_does_not_suppress_pci_fallback(self, fake_host, make_ctx):
        host = fake_host(commands=["clinfo", "lspci"], outputs={("lspci",): LSPCI})
        report = Report()
        orchestrator = Orchestrator(make_ctx(host))
        orchestrator.detect(report)

        assert orchestrator.states["pci"] is DetectorState.PRESENT
        assert section_names(report) == [OVERVIEW_TITLE, "OpenCL Devices", "GPU (PCI) Overview"]

    def test_absent_detectors_are_marked(self, fake_host, make_ctx):
        orchestrator = Orchestrator(make_ctx(fake_host()))
        orchestrator.detect(Report())
        assert set(orchestrator.states.values()) == {DetectorState.ABSENT}

    @pytest.mark.parametrize(
        "system, expected",
        [
            ("Linux", ["nvidia", "amd", "opencl"]),
            ("Darwin", ["nvidia", "amd", "macos", "opencl"]),
            ("Windows", []),
        ],
    )
    def test_select_detectors(self, system, expected):
        assert [detector.name for detector in select_detectors(system)] == expected

    def test_no_pci_fallback_on_darwin(self, fake_host, make_ctx):
        host = fake_host(system="Darwin", commands=["lspci"])
        orchestrator = Orchestrator(make_ctx(host))
        assert orchestrator.fallback is None
        assert "pci" not in orchestrator.states

    def test_failing_detector_is_isolated(self, fake_host, make_ctx):
        host = fake_host(commands=["boom", "rocm-smi"])
        report = Report()
        orchestrator = Orchestrator(make_ctx(host), detectors=[ExplodingDetector(), *select_detectors("Linux")])
        orchestrator.detect(report)

        exploding = report.section("Exploding")
        assert [row.label for row in exploding.rows] == ["Before"]
        assert exploding.notes == [Note("warn", "collection failed: parser blew up")]
        assert report.section("AMD ROCm & GPU") is not None


class TestModes:
    """Tests for the gpu/sys/all split and the Python skip warning."""

    def test_system_only(self, fake_host):
        report = build_report(fake_host(), CheckOptions(mode="sys"))
        assert section_names(report) == ["System Information"]
        assert report.section(OVERVIEW_TITLE) is None

    def test_all_sections_in_order(self, fake_host):
        report = build_report(fake_host(), CheckOptions())
        assert section_names(report) == [
            OVERVIEW_TITLE,
            "CUDA Toolchain",
            "Python & AI Frameworks",
            "System Information",
        ]

    def test_python_skip_warning(self, fake_host):
        report = build_report(fake_host(), CheckOptions(python=False))
        assert Note("warn", PYTHON_SKIPPED_WARNING) in report.entries
        assert report.section("Python & AI Frameworks") is None
        assert "[WARN] Skipped Python framework checks (--no-python)" in report.render()

    def test_python_checks_never_run_when_skipped(self, fake_host):
        host = fake_host(commands=["python3"])
        build_report(host, CheckOptions(mode="gpu", python=False))
        assert not any(argv[0] == "python3" for argv in host.calls)
