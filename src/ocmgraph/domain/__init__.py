"""Domain layer: model, ports, and the reconcile core."""
