from .metrics import Timer
from .writer import save_bytes, write_json

__all__ = ["Timer", "save_bytes", "write_json"]
