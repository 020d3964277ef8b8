"""
RiskBoard Configuration.

Pydantic Settings v2: loads from .env and environment variables.
"""

from typing import Dict

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # ── Application ──────────────────────────────────────────────────────
    app_name: str = "RiskBoard"
    app_version: str = "1.0.0"
    environment: str = Field(default="development", alias="ENVIRONMENT")

    # ── Data sources ─────────────────────────────────────────────────────
    catalogue_path: str = Field(default="data/catalogue.json", alias="CATALOGUE_PATH")
    alert_rules_path: str = Field(default="data/alert_rules.json", alias="ALERT_RULES_PATH")

    # ── Scoring ──────────────────────────────────────────────────────────
    # Category id → weight. Categories without an entry get 1/n.
    category_weights: Dict[str, float] = Field(
        default_factory=dict, alias="RISK_CATEGORY_WEIGHTS"
    )
    risk_threshold_medium: float = Field(default=40.0, alias="RISK_THRESHOLD_MEDIUM")
    risk_threshold_high: float = Field(default=70.0, alias="RISK_THRESHOLD_HIGH")
    risk_threshold_critical: float = Field(default=90.0, alias="RISK_THRESHOLD_CRITICAL")

    # ── Trend & forecast ─────────────────────────────────────────────────
    trend_window_days: int = Field(default=7, alias="TREND_WINDOW_DAYS")
    trend_stable_band_percent: float = Field(default=5.0, alias="TREND_STABLE_BAND_PERCENT")
    forecast_horizon_days: int = Field(default=7, alias="FORECAST_HORIZON_DAYS")
    history_days: int = Field(default=30, alias="HISTORY_DAYS")
    simulator_seed: int = Field(default=42, alias="SIMULATOR_SEED")

    # ── Alerting ─────────────────────────────────────────────────────────
    evaluation_interval_seconds: int = Field(default=60, alias="EVALUATION_INTERVAL_SECONDS")
    dispatch_timeout_seconds: float = Field(default=5.0, alias="DISPATCH_TIMEOUT_SECONDS")
    internal_alert_buffer_size: int = Field(default=200, alias="INTERNAL_ALERT_BUFFER_SIZE")
    alert_smtp_host: str = Field(default="", alias="ALERT_SMTP_HOST")
    alert_smtp_port: int = Field(default=587, alias="ALERT_SMTP_PORT")
    alert_smtp_user: str = Field(default="", alias="ALERT_SMTP_USER")
    alert_smtp_password: str = Field(default="", alias="ALERT_SMTP_PASSWORD")
    alert_from_email: str = Field(default="alerts@riskboard.local", alias="ALERT_FROM_EMAIL")
    sms_gateway_url: str = Field(default="", alias="SMS_GATEWAY_URL")
    sms_gateway_token: str = Field(default="", alias="SMS_GATEWAY_TOKEN")

    # ── Operational ──────────────────────────────────────────────────────
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="console", alias="LOG_FORMAT")


settings = Settings()
