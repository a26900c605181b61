from __future__ import annotations

import os
from dataclasses import dataclass, field


# Read when an instance is created, so values loaded from .env in main() apply
@dataclass(slots=True)
class PipelineConfig:
    output_dir: str = field(default_factory=lambda: os.getenv("PRERANK_OUTPUT_DIR", "data"))
    fetch_timeout: float = field(default_factory=lambda: float(os.getenv("PRERANK_FETCH_TIMEOUT", "15")))
    max_workers: int = field(default_factory=lambda: int(os.getenv("PRERANK_MAX_WORKERS", "8")))
