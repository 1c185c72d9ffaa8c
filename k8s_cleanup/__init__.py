"""Self-destructing Kubernetes cleanup agent."""

__version__ = "0.1.0"
