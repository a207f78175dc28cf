from .collect import build_orchestrators, run_collection

__all__ = ["build_orchestrators", "run_collection"]
