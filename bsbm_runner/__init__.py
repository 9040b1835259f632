"""Benchmark run orchestration for bsbm-harness.

Import runner-facing types from ``bsbm_runner.api``.
"""
