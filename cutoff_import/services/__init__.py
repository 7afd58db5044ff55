"""Import services: entity resolution, merging and orchestration."""
