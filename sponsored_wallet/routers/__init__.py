"""
HTTP routers.

- health   : /healthz, /readyz, /version
- submit   : POST /submit
- counters : GET /counters, GET /counters/{address}, GET /identity

The app factory includes each router explicitly; /metrics is mounted by
``sponsored_wallet.metrics.setup_metrics``.
"""
