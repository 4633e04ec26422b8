"""
Operations endpoints.

Probes and metrics for the posting engine:
- live: process is up
- ready: database reachable
- full: database, ledger reconciliation and posting account configuration

No authentication; restrict to the internal network in production.
"""
from django.urls import path

from ops.health import LivenessView, ReadinessView, FullHealthView
from ops.metrics import MetricsView

urlpatterns = [
    # Kubernetes probes
    path("live", LivenessView.as_view(), name="health-live"),
    path("ready", ReadinessView.as_view(), name="health-ready"),
    path("full", FullHealthView.as_view(), name="health-full"),
]

# Metrics endpoint (separate path prefix in main urls.py)
metrics_patterns = [
    path("", MetricsView.as_view(), name="metrics"),
]
