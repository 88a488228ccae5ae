from . import collector, operators, probes

__all__ = ["collector", "operators", "probes"]
