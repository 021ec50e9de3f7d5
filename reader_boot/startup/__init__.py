"""Boot-time orchestration."""
from .bootstrap import BootPhase, BootResult, run_startup

__all__ = ["BootPhase", "BootResult", "run_startup"]
