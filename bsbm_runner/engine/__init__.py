"""Run engine: readiness, workspace, scheduling and orchestration."""
