"""Agent orchestration core: tool-calling loop, profile routing and DAG node adapters."""

__version__ = "0.1.0"
