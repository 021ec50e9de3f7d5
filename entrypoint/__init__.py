"""Container-facing scripts (boot orchestrator, diagnostics)."""
