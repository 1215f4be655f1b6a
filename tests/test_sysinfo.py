from __future__ import annotations

from gpuenv.report import Section
from gpuenv.sysinfo import SERIAL_HINT, SystemInfo

OS_RELEASE = 'NAME="Ubuntu"\nVERSION_ID="22.04"\nPRETTY_NAME="Ubuntu 22.04.4 LTS"\n'
MEMINFO = "MemTotal:       16777216 kB\nMemFree:         1048576 kB\nMemAvailable:    8388608 kB\n"
LSCPU = (
    "Architecture:            x86_64\n"
    "CPU(s):                  8\n"
    "Model name:              AMD EPYC 7B13\n"
)
DF = "Filesystem      Size  Used Avail Use% Mounted on\n/dev/sda1        97G   41G   56G  43% /\n"
LSBLK = (
    "NAME   SIZE MODEL\n"
    "loop0 63.9M \n"
    "sda    100G PersistentDisk\n"
    "nvme0n1 477G Samsung SSD 980 PRO 500GB\n"
)


def collect(host, make_ctx) -> dict:
    section = Section(SystemInfo.title)
    SystemInfo().collect(make_ctx(host), section)
    return {row.label: row.text().split(": ", 1)[1] for row in section.rows}


def test_linux_report(fake_host, make_ctx):
    host = fake_host(
        commands=["uptime", "lscpu", "df", "lsblk"],
        outputs={
            ("uptime",): " 10:02:11 up 3 days,  4:05,  1 user,  load average: 0.00, 0.01, 0.05\n",
            ("lscpu",): LSCPU,
            ("df", "-h", "/"): DF,
            ("lsblk", "-d", "-o", "NAME,SIZE,MODEL"): LSBLK,
        },
        files={
            "/etc/os-release": OS_RELEASE,
            "/proc/meminfo": MEMINFO,
            "/sys/class/dmi/id/product_serial": "GoogleCloud-1234\n",
            "/etc/machine-id": "0123456789abcdef\n",
        },
    )
    section = Section(SystemInfo.title)
    SystemInfo().collect(make_ctx(host), section)
    labels = [row.label for row in section.rows]
    rows = {row.label: row.text().split(": ", 1)[1] for row in section.rows}

    assert labels[:4] == ["Hostname", "OS", "Kernel", "Architecture"]
    assert rows["Hostname"] == "testbox"
    assert rows["OS"] == "Ubuntu 22.04.4 LTS"
    assert rows["Kernel"] == "Linux 6.1.0 x86_64"
    assert rows["Architecture"] == "x86_64"
    assert rows["Uptime"] == "3 days"
    assert rows["CPU"] == "AMD EPYC 7B13"
    assert rows["Cores"] == "8"
    assert rows["Memory (total/used)"] == "16.0 GiB / 8.0 GiB"
    assert rows["Root partition (total/used)"] == "97G / 41G (43%)"
    assert [row.fact.value for row in section.rows if row.label == "Disk"] == [
        "sda    100G PersistentDisk",
        "nvme0n1 477G Samsung SSD 980 PRO 500GB",
    ]
    assert rows["Serial number"] == "GoogleCloud-1234"
    assert rows["Machine ID"] == "0123456789abcdef"


def test_cpuinfo_fallbacks(fake_host, make_ctx):
    cpuinfo = (
        "processor\t: 0\nmodel name\t: ARMv8 Processor rev 1 (v8l)\n\n"
        "processor\t: 1\nmodel name\t: ARMv8 Processor rev 1 (v8l)\n\n"
        "Serial\t\t: 10000000abcdef01\n"
    )
    rows = collect(fake_host(files={"/proc/cpuinfo": cpuinfo}), make_ctx)
    assert rows["CPU"] == "ARMv8 Processor rev 1 (v8l)"
    assert rows["Cores"] == "2"
    assert rows["Serial number"] == "10000000abcdef01"


def test_os_falls_back_to_kernel_name(fake_host, make_ctx):
    rows = collect(fake_host(), make_ctx)
    assert rows["OS"] == "Linux"


def test_memory_from_free(fake_host, make_ctx):
    host = fake_host(
        commands=["free"],
        outputs={
            ("free", "-h"): (
                "               total        used        free\n"
                "Mem:            31Gi        12Gi        18Gi\n"
                "Swap:          2.0Gi          0B       2.0Gi\n"
            )
        },
    )
    assert collect(host, make_ctx)["Memory (total/used)"] == "31Gi / 12Gi"


def test_devicetree_serial_strips_nul(fake_host, make_ctx):
    host = fake_host(files={"/sys/firmware/devicetree/base/serial-number": "1000000012345678\x00"})
    assert collect(host, make_ctx)["Serial number"] == "1000000012345678"


def test_serial_via_non_interactive_sudo(fake_host, make_ctx):
    host = fake_host(
        commands=["sudo", "dmidecode"],
        outputs={("sudo", "-n", "dmidecode", "-s", "system-serial-number"): "VMware-42 1a\n"},
    )
    assert collect(host, make_ctx)["Serial number"] == "VMware-42 1a"


def test_missing_serial_has_hint(fake_host, make_ctx):
    assert collect(fake_host(), make_ctx)["Serial number"] == f"unavailable ({SERIAL_HINT})"


def test_darwin_report(fake_host, make_ctx):
    host = fake_host(
        system="Darwin",
        uname=("Darwin", "23.4.0", "arm64"),
        commands=["sw_vers", "sysctl", "system_profiler", "diskutil"],
        outputs={
            ("sw_vers", "-productName"): "macOS\n",
            ("sw_vers", "-productVersion"): "14.4.1\n",
            ("sysctl", "-n", "machdep.cpu.brand_string"): "Apple M2 Pro\n",
            ("sysctl", "-n", "hw.ncpu"): "12\n",
            ("sysctl", "-n", "hw.memsize"): "34359738368\n",
            ("system_profiler", "SPHardwareDataType"): (
                "Hardware:\n\n    Hardware Overview:\n\n"
                "      Chip: Apple M2 Pro\n"
                "      Memory: 32 GB\n"
                "      Serial Number (system): C02XK0AAJGH5\n"
            ),
            ("diskutil", "list"): (
                "/dev/disk0 (internal, physical):\n"
                "   #:                       TYPE NAME                    SIZE       IDENTIFIER\n"
                "   0:      GUID_partition_scheme                        *500.3 GB   disk0\n"
            ),
        },
    )
    rows = collect(host, make_ctx)
    assert rows["OS"] == "macOS 14.4.1"
    assert rows["CPU"] == "Apple M2 Pro"
    assert rows["Cores"] == "12"
    assert rows["Memory total"] == "32 GiB"
    assert rows["Disk"] == "/dev/disk0 (internal, physical):"
    assert rows["Serial number"] == "C02XK0AAJGH5"
    assert "Memory (total/used)" not in rows
