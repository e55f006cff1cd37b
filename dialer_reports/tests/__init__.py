'''
Dialer Reports Backend Test Suite

Test Modules:
-------------
- test_metrics.py: Rounding, safe division, statistics, durations, keys
- test_daily_kpis.py: Floor KPIs, disposition rates, TPH distribution
- test_agent_performance.py: Per-agent metrics, production join, ranks
- test_skill_summary.py: Production totals by skill
- test_anomalies.py: Zero-transfer, dead-air, hung-up and low-TPH passes
- test_day_processor.py: Source selection, shift merge, raw data, previous day
- test_ingestion.py: Filename recognition, column layouts, checklist
- test_alert_rules.py: Threshold checks, rule scopes, cooldown
- test_jobs.py: Slack completion digest
- test_api.py: FastAPI routes
'''
