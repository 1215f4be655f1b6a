"""Python interpreter and ML framework checks, each bounded by a timeout."""

from __future__ import annotations

import posixpath
from typing import Optional

from gpuenv.extract import Fact, JsonKey, MissReason
from gpuenv.report import UNAVAILABLE, Section
from gpuenv.resolver import CommandSource

from .base import DetectionContext

TORCH_SNIPPET = """\
import json
try:
    import torch
    cuda = torch.cuda.is_available()
    devices = [torch.cuda.get_device_name(i) for i in range(torch.cuda.device_count())] if cuda else []
    print(json.dumps({"version": torch.__version__, "cuda": getattr(torch.version, "cuda", None), "available": cuda, "devices": devices}))
except Exception as exc:
    print(json.dumps({"error": str(exc)}))
"""

TENSORFLOW_SNIPPET = """\
import json, os
os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"
try:
    import tensorflow as tf
    print(json.dumps({"version": tf.__version__, "gpus": len(tf.config.list_physical_devices("GPU"))}))
except Exception as exc:
    print(json.dumps({"error": str(exc)}))
"""


def select_interpreter(ctx: DetectionContext) -> Optional[str]:
    """Pick the interpreter used for framework checks, or None when there is none."""
    host = ctx.host
    override = ctx.options.python_executable
    if override and host.has_command(override):
        return override
    if host.has_command("python3"):
        return "python3"
    conda = host.getenv("CONDA_PREFIX")
    if conda:
        conda_python = posixpath.join(conda, "bin", "python")
        if host.has_command(conda_python):
            return conda_python
    if host.has_command("python"):
        return "python"
    return None


def _missing_hint(fact: Fact, timeout: float) -> str:
    if fact.miss == MissReason.TIMEOUT:
        return f"timed out after {timeout:g}s"
    return "not installed or import failed"


class PythonFrameworks:
    title = "Python & AI Frameworks"

    def collect(self, ctx: DetectionContext, section: Section) -> None:
        interpreter = select_interpreter(ctx)
        if interpreter is None:
            section.emit("Python", None, hint="not found; choose one with --py")
            section.emit("PyTorch", "skipped")
            section.emit("TensorFlow", "skipped")
            return

        section.emit(
            "Python",
            ctx.resolve(
                "python",
                [ctx.command(interpreter, "-V", requires=interpreter, stderr_fallback=True)],
            ),
        )
        self._torch(ctx, section, interpreter)
        self._tensorflow(ctx, section, interpreter)

    def _probe(self, ctx: DetectionContext, interpreter: str, snippet: str, key: str, **kw):
        return CommandSource(
            (interpreter, "-c", snippet),
            rule=JsonKey(key, **kw),
            timeout=ctx.options.python_timeout,
            requires=interpreter,
            label=f"{interpreter} -c <{key}>",
        )

    def _torch(self, ctx: DetectionContext, section: Section, interpreter: str) -> None:
        def field(key: str, **kw) -> Fact:
            return ctx.resolve(key, [self._probe(ctx, interpreter, TORCH_SNIPPET, key, **kw)])

        version = field("version")
        if not version.present:
            section.emit(
                "PyTorch", version, hint=_missing_hint(version, ctx.options.python_timeout)
            )
            return
        torch_cuda = field("cuda")
        available = field("available")
        devices = field("devices", pick="all")
        section.emit(
            "PyTorch",
            f"{version.value} | TorchCUDA: {torch_cuda.value or 'none'}"
            f" | CUDA available: {available.value or UNAVAILABLE}"
            f" | GPUs: {devices.value or '0'}",
        )

    def _tensorflow(self, ctx: DetectionContext, section: Section, interpreter: str) -> None:
        def field(key: str) -> Fact:
            return ctx.resolve(key, [self._probe(ctx, interpreter, TENSORFLOW_SNIPPET, key)])

        version = field("version")
        if not version.present:
            section.emit(
                "TensorFlow", version, hint=_missing_hint(version, ctx.options.python_timeout)
            )
            return
        gpus = field("gpus")
        section.emit("TensorFlow", f"{version.value} | GPUs: {gpus.value or '0'}")
