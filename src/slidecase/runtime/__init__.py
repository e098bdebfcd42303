"""Runtime services shared across tools."""
