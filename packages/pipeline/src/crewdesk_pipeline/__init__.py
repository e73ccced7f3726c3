"""
crewdesk_pipeline — background workers for crewdesk.

Architecture:
  sources/    — adapters for external services (Nominatim geocoding)
  loaders/    — writes results back to Supabase and records pipeline_runs
  pipelines/  — orchestration: select work, call a source, load results
  utils/      — structlog setup and tenacity retry helpers
  cli.py      — click entrypoint (`crewdesk-pipeline`)
"""

__version__ = "0.1.0"
