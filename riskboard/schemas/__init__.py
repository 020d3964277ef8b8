"""
RiskBoard Schemas.

Components:
- catalogue: Category → SubCategory → Indicator tree (read-only input)
- scoring: RiskScore snapshots, risk factors, history, trend and forecast
"""
