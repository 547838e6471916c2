"""Background jobs."""

from .maintenance import register_scheduler, run_expiry_digest_once, run_sweep_once

__all__ = ["register_scheduler", "run_expiry_digest_once", "run_sweep_once"]
