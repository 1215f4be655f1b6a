"""General system information: OS, CPU, memory, disks and identifiers."""

from __future__ import annotations

from typing import List

from gpuenv.detectors.base import DetectionContext
from gpuenv.extract import Column, Fact, KeyValue, MissReason, Pattern, extract, extract_values
from gpuenv.report import Section
from gpuenv.resolver import (
    ComputedSource,
    FileSource,
    Source,
    TextSource,
    resolve_values,
)

OS_RELEASE = "/etc/os-release"
MEMINFO = "/proc/meminfo"
CPUINFO = "/proc/cpuinfo"
MACHINE_ID = "/etc/machine-id"

PRETTY_NAME = Pattern(r'^PRETTY_NAME="?([^"\n]*)"?\s*$')
UPTIME = Pattern(r"\bup\s+([^,]+)")
MEM_TOTAL_KB = Pattern(r"^MemTotal:\s*(\d+)")
MEM_AVAILABLE_KB = Pattern(r"^MemAvailable:\s*(\d+)")
NUL_TERMINATED = Pattern(r"([^\x00\n]+)")
IOREG_SERIAL = Pattern(r'"IOPlatformSerialNumber"\s*=\s*"([^"]+)"')
# Skip the header row and loop devices.
LSBLK_DISK = Pattern(r"^(?!loop|NAME\s)(\S.*?)\s*$")
DISKUTIL_DISK = Pattern(r"^(/\S.*?)\s*$")

SERIAL_HINT = "may need root or hardware does not expose it"


def gib(kib: int) -> str:
    return f"{kib / 1024 / 1024:.1f} GiB"


class SystemInfo:
    title = "System Information"

    def collect(self, ctx: DetectionContext, section: Section) -> None:
        system, release, machine = ctx.host.uname()
        section.emit("Hostname", ctx.host.hostname() or None)
        section.emit("OS", ctx.resolve("os", self.os_sources(ctx)))
        section.emit("Kernel", " ".join(part for part in (system, release, machine) if part))
        section.emit("Architecture", machine or None)
        section.emit("Uptime", ctx.resolve("uptime", [ctx.command("uptime", rule=UPTIME)]))
        section.emit("CPU", ctx.resolve("cpu", self.cpu_sources(ctx)))
        section.emit("Cores", ctx.resolve("cores", self.core_sources(ctx)))
        self._memory(ctx, section)
        section.emit("Root partition (total/used)", self.root_partition(ctx))
        for disk in resolve_values(self.disk_sources(ctx), ctx.host):
            section.emit("Disk", disk)
        section.emit(
            "Serial number", ctx.resolve("serial", self.serial_sources(ctx)), hint=SERIAL_HINT
        )
        section.emit(
            "Machine ID", ctx.resolve("machine_id", [FileSource(MACHINE_ID)])
        )

    def os_sources(self, ctx: DetectionContext) -> List[Source]:
        if ctx.host.system == "Linux":
            return [FileSource(OS_RELEASE, PRETTY_NAME), TextSource("Linux")]
        if ctx.host.system == "Darwin":
            return [
                ComputedSource(lambda host: self._sw_vers(ctx), label="sw_vers"),
                TextSource("macOS"),
            ]
        return [TextSource(ctx.host.system)]

    def _sw_vers(self, ctx: DetectionContext) -> Fact:
        name = ctx.resolve("os", [ctx.command("sw_vers", "-productName")])
        version = ctx.resolve("os", [ctx.command("sw_vers", "-productVersion")])
        if not (name.present and version.present):
            return Fact.absent("os", name.miss or version.miss or MissReason.TOOL_UNAVAILABLE)
        return Fact(name="os", value=f"{name.value} {version.value}")

    def cpu_sources(self, ctx: DetectionContext) -> List[Source]:
        return [
            ctx.command("lscpu", rule=KeyValue(r"^Model name$")),
            FileSource(CPUINFO, KeyValue(r"^model name$")),
            ctx.command("sysctl", "-n", "machdep.cpu.brand_string"),
            ctx.command("system_profiler", "SPHardwareDataType", rule=KeyValue(r"^Chip$")),
            ctx.command("sysctl", "-n", "hw.model"),
        ]

    def core_sources(self, ctx: DetectionContext) -> List[Source]:
        def count_processors(host) -> Fact:
            text = host.read_text(CPUINFO)
            count = len(extract_values(text, Pattern(r"^processor\s*:")))
            if not count:
                return Fact.absent("cores", MissReason.PARSE_MISS)
            return Fact(name="cores", value=str(count))

        return [
            ctx.command("lscpu", rule=KeyValue(r"^CPU\(s\)$")),
            ComputedSource(count_processors, label=CPUINFO),
            ctx.command("sysctl", "-n", "hw.ncpu"),
        ]

    def _memory(self, ctx: DetectionContext, section: Section) -> None:
        if ctx.host.system == "Darwin":
            section.emit("Memory total", ctx.resolve("memory", self.darwin_memory_sources(ctx)))
            return
        section.emit(
            "Memory (total/used)",
            ctx.resolve(
                "memory",
                [
                    ComputedSource(self._meminfo, label=MEMINFO),
                    ComputedSource(lambda host: self._free_h(ctx), label="free -h"),
                ],
            ),
        )

    def _meminfo(self, host) -> Fact:
        text = host.read_text(MEMINFO)
        total = extract(text, MEM_TOTAL_KB)
        available = extract(text, MEM_AVAILABLE_KB)
        if not total.present:
            return Fact.absent("memory", MissReason.PARSE_MISS)
        if not available.present:
            return Fact(name="memory", value=gib(int(total.value)))
        used = int(total.value) - int(available.value)
        return Fact(name="memory", value=f"{gib(int(total.value))} / {gib(used)}")

    def _free_h(self, ctx: DetectionContext) -> Fact:
        def cell(index: int) -> Fact:
            rule = Column(index, delimiter=None, line_filter=r"^Mem:")
            return ctx.resolve("memory", [ctx.command("free", "-h", rule=rule)])

        total, used = cell(1), cell(2)
        if not (total.present and used.present):
            return Fact.absent("memory", total.miss or used.miss or MissReason.PARSE_MISS)
        return Fact(name="memory", value=f"{total.value} / {used.value}")

    def darwin_memory_sources(self, ctx: DetectionContext) -> List[Source]:
        def memsize(host) -> Fact:
            fact = ctx.resolve("memory", [ctx.command("sysctl", "-n", "hw.memsize")])
            if not fact.present or not fact.value.isdigit() or int(fact.value) <= 0:
                return Fact.absent("memory", fact.miss or MissReason.PARSE_MISS)
            return Fact(name="memory", value=f"{int(fact.value) // 1024 ** 3} GiB")

        def vm_stat(host) -> Fact:
            text = ctx.raw_output("vm_stat")
            page = extract(text, Pattern(r"page size of (\d+) bytes"))
            pages = extract_values(text, Pattern(r"^Pages[^:]*:\s*(\d+)\.?"))
            if not page.present or not pages:
                return Fact.absent("memory", MissReason.PARSE_MISS)
            total = sum(int(count) for count in pages) * int(page.value)
            return Fact(name="memory", value=f"{total // 1024 ** 3} GiB (estimated)")

        return [
            ComputedSource(memsize, label="sysctl hw.memsize"),
            ctx.command("system_profiler", "SPHardwareDataType", rule=KeyValue(r"^Memory$")),
            ComputedSource(vm_stat, label="vm_stat"),
        ]

    def root_partition(self, ctx: DetectionContext) -> Fact:
        def cell(index: int) -> Fact:
            rule = Column(index, delimiter=None, skip_header=True)
            return ctx.resolve("root", [ctx.command("df", "-h", "/", rule=rule)])

        size, used, percent = cell(1), cell(2), cell(4)
        if not (size.present and used.present):
            return Fact.absent("root", size.miss or MissReason.PARSE_MISS)
        suffix = f" ({percent.value})" if percent.present else ""
        return Fact(name="root", value=f"{size.value} / {used.value}{suffix}")

    def disk_sources(self, ctx: DetectionContext) -> List[Source]:
        if ctx.host.system == "Darwin":
            return [ctx.command("diskutil", "list", rule=DISKUTIL_DISK)]
        return [ctx.command("lsblk", "-d", "-o", "NAME,SIZE,MODEL", rule=LSBLK_DISK)]

    def serial_sources(self, ctx: DetectionContext) -> List[Source]:
        if ctx.host.system == "Darwin":
            return [
                ctx.command(
                    "system_profiler", "SPHardwareDataType", rule=KeyValue(r"Serial")
                ),
                ctx.command("ioreg", "-l", rule=IOREG_SERIAL),
            ]
        dmidecode = ("dmidecode", "-s", "system-serial-number")
        return [
            FileSource("/sys/class/dmi/id/product_serial"),
            FileSource("/sys/firmware/devicetree/base/serial-number", NUL_TERMINATED),
            FileSource("/proc/device-tree/serial-number", NUL_TERMINATED),
            FileSource(CPUINFO, KeyValue(r"^Serial$")),
            ctx.command(*dmidecode, rule=Pattern(r"^([^#\n].*)$")),
            ctx.command(
                "sudo", "-n", *dmidecode, rule=Pattern(r"^([^#\n].*)$"), requires="dmidecode"
            ),
        ]
