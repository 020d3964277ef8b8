"""
RiskBoard Scoring Engine.

Components:
- scoring: Indicator, category and total risk scores, risk level bands
- indicator_alerts: Per-indicator threshold breaches
- trend: Week-over-week trend classification and linear forecast
- history: Read interface for daily score history
- simulator: Seeded historical series for demos and tests (isolated)
"""
