"""Services of the change-ingestion and validated-synthesis pipeline."""
