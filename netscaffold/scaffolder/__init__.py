"""Project scaffolding: CLI orchestration, template rendering and layer generators."""
