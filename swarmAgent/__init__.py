"""swarmAgent - resumable multi-agent task orchestration with human tool approval."""

__version__ = "0.1.0"
