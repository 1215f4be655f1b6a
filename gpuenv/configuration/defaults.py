"""Built-in default configuration for gpuenv."""

from __future__ import annotations

DEFAULT_CUDNN_SEARCH_PATHS = [
    "/usr/include",
    "/usr/local/cuda/include",
    "/opt/cuda/include",
    "/usr/local/cuda-*/include",
    "/Library/Frameworks",
    "/usr/local/include",
]

DEFAULT_CONFIG_DICT = {
    "probe": {
        "command_timeout": 10.0,
        "python_timeout": 15.0,
    },
    "python": {
        "enabled": True,
        "interpreter": None,
    },
    "cuda": {
        "extra_search_paths": [],
    },
}
