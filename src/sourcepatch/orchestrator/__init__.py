from sourcepatch.orchestrator.batch import apply_batch, load_sources

__all__ = ["apply_batch", "load_sources"]
