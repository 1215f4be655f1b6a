from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Sequence, Tuple

from gpuenv.configuration.schema import CheckOptions
from gpuenv.extract import Fact
from gpuenv.report import Section
from gpuenv.resolver import CommandSource, Source, resolve
from gpuenv.system import Host


@dataclass(frozen=True)
class DetectionContext:
    host: Host
    options: CheckOptions

    def resolve(self, name: str, sources: Sequence[Source]) -> Fact:
        return resolve(name, sources, self.host)

    def command(self, *argv: str, rule=None, **kwargs) -> CommandSource:
        """CommandSource bound to the configured command timeout."""
        kwargs.setdefault("timeout", self.options.command_timeout)
        return CommandSource(argv, rule=rule, **kwargs)

    def raw_output(self, *argv: str) -> str:
        result = self.host.run(argv, timeout=self.options.command_timeout)
        return result.stdout if result.ok else ""


class Detector:
    """One accelerator vendor or fallback mechanism.

    A detector is present iff its defining tool resolves on PATH; only then is
    ``collect`` called to fill its section.
    """

    name: ClassVar[str] = ""
    title: ClassVar[str] = ""
    tool: ClassVar[str] = ""
    platforms: ClassVar[Tuple[str, ...]] = ("Linux", "Darwin")
    # Vendor detectors answer authoritatively and suppress the PCI fallback.
    vendor: ClassVar[bool] = True

    def supports(self, system: str) -> bool:
        return system in self.platforms

    def probe(self, ctx: DetectionContext) -> bool:
        return ctx.host.has_command(self.tool)

    def collect(self, ctx: DetectionContext, section: Section) -> None:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
