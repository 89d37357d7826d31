"""Workflow-driven resource provisioning and sort config compilation."""

__version__ = "0.1.0"
