from .core import ConnectivityResult, find_reachable

__all__ = ["ConnectivityResult", "find_reachable"]
