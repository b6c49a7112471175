"""Infrastructure layer: HTTP access to the monitoring backend and stateful repositories."""
