"""Application services: ingestion, chat resolution, deep analysis, deletion."""
