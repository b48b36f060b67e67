"""
Monitoring package: Prometheus metrics and instrumentation decorators.
"""
