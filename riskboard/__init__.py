"""
RiskBoard: Risk scoring, trend prediction and alert rule engine.

Architecture:
    riskboard/
    ├── schemas/         # Pydantic models (catalogue, scores, history)
    ├── engine/          # Score calculator, trend analyzer, history simulator
    ├── alerting/        # Alert rules, condition evaluation, channel dispatch
    └── services/        # Monitor orchestration and periodic scheduler

Data Flow:
    Catalogue → Score Calculator → RiskScore → Alert Rule Engine → Action Dispatcher
    History → Trend Analyzer → Trend + Forecast

Version: 1.0.0
"""

__version__ = "1.0.0"
