"""
Scheduler: drives sync passes on an interval until a stop signal.
"""

from relmirror.service.scheduler import MirrorService, run_service, serve

__all__ = ["MirrorService", "run_service", "serve"]
