"""Pydantic models describing the configuration file and per-run options."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .defaults import DEFAULT_CUDNN_SEARCH_PATHS

Mode = Literal["all", "gpu", "sys"]


class ProbeConfig(BaseModel):
    command_timeout: float = Field(default=10.0, ge=0.5, le=120.0)
    python_timeout: float = Field(default=15.0, ge=1.0, le=600.0)


class PythonConfig(BaseModel):
    enabled: bool = True
    interpreter: Optional[str] = None

    @field_validator("interpreter")
    @classmethod
    def blank_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value.strip()


class CudaConfig(BaseModel):
    extra_search_paths: List[str] = Field(default_factory=list)


class GpuenvConfig(BaseModel):
    probe: ProbeConfig = Field(default_factory=ProbeConfig)
    python: PythonConfig = Field(default_factory=PythonConfig)
    cuda: CudaConfig = Field(default_factory=CudaConfig)

    model_config = ConfigDict(extra="ignore")

    @classmethod
    def from_dict(cls, data: dict) -> "GpuenvConfig":
        return cls.model_validate(data)


class CheckOptions(BaseModel):
    """Everything one report run needs; handed to the orchestrator explicitly."""

    mode: Mode = "all"
    python: bool = True
    verbose: bool = False
    python_executable: Optional[str] = None
    command_timeout: float = Field(default=10.0, ge=0.5, le=120.0)
    python_timeout: float = Field(default=15.0, ge=1.0, le=600.0)
    cudnn_search_paths: List[str] = Field(
        default_factory=lambda: list(DEFAULT_CUDNN_SEARCH_PATHS)
    )

    model_config = ConfigDict(frozen=True)

    @property
    def include_gpu(self) -> bool:
        return self.mode in ("all", "gpu")

    @property
    def include_system(self) -> bool:
        return self.mode in ("all", "sys")

    @classmethod
    def from_config(cls, config: GpuenvConfig, **overrides) -> "CheckOptions":
        """Build options from file configuration; explicit overrides win."""
        values = {
            "python": config.python.enabled,
            "python_executable": config.python.interpreter,
            "command_timeout": config.probe.command_timeout,
            "python_timeout": config.probe.python_timeout,
            "cudnn_search_paths": list(config.cuda.extra_search_paths)
            + list(DEFAULT_CUDNN_SEARCH_PATHS),
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)
