"""
Dialer Reports Package.

FastAPI service layer for the DialedIn call-center reporting pipeline.
Turns one day's worth of vendor report exports into daily KPIs, per-agent
performance, per-skill summaries, anomalies and a compressed raw-data digest.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, thresholds and dependencies
    - models: Pydantic schemas and enums
    - services: Parsing, aggregation and detection services
    - jobs: Completion notifications
"""

__version__ = "1.0.0"
