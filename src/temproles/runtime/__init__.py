"""Runtime host and service wiring."""

from temproles.runtime.app import RuntimeApp, RuntimeService, configure_logging, run_runtime

__all__ = ["RuntimeApp", "RuntimeService", "configure_logging", "run_runtime"]
