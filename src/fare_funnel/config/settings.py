"""
Settings - Pydantic models for type-safe configuration.

This module defines all configuration settings as Pydantic models,
providing validation, type hints, and automatic environment variable loading.

Example:
    >>> from fare_funnel.config import Settings, load_config
    >>> settings = load_config()  # Loads from env, yaml, and defaults
    >>> print(settings.detection.default_budget_s)
    90.0
"""

from typing import List, Literal, Optional
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BrowserSettings(BaseModel):
    """
    Browser automation settings.
    
    Attributes:
        browser_types: Engines to run against; each gets an isolated session
        headless: Run browser in headless mode
        timeout_ms: Default timeout for browser actions
        navigation_timeout_ms: Timeout for page.goto()
        viewport_width: Browser viewport width in pixels
        viewport_height: Browser viewport height in pixels
        slow_mo: Slow down operations by this amount (ms) - useful for debugging
        base_url: Site root used when a relative URL is given to the CLI
    """
    browser_types: List[Literal["chromium", "firefox", "webkit"]] = Field(
        default_factory=lambda: ["chromium", "webkit"],
        min_length=1,
    )
    headless: bool = True
    timeout_ms: int = Field(default=15000, ge=1000, le=300000)
    navigation_timeout_ms: int = Field(default=30000, ge=1000, le=300000)
    viewport_width: int = Field(default=1280, ge=320, le=3840)
    viewport_height: int = Field(default=720, ge=240, le=2160)
    slow_mo: int = Field(default=0, ge=0, le=5000)
    base_url: str = "https://www.aircanada.com"


class DetectionSettings(BaseModel):
    """
    State detection and overlay dismissal settings.
    
    Attributes:
        default_budget_s: Budget for await_state() when the caller gives none
        poll_interval_ms: Interval between polls in bounded waits
        switch_overhead_s: Slack allowed on top of a budget for strategy switching
        overlay_primary_s: Primary window for finding a consent overlay
        overlay_priority_s: Leading part of each scan window in which only
            consent-specific controls (OneTrust id, dialog-scoped) may be clicked
        overlay_grace_s: One-off pause before the secondary scan
        overlay_secondary_s: Window for the secondary scan
        retry_attempts: Caller-side retries of a failed await_state()
    """
    default_budget_s: float = Field(default=90.0, gt=0, le=600)
    poll_interval_ms: int = Field(default=250, ge=10, le=5000)
    switch_overhead_s: float = Field(default=0.5, ge=0, le=10)
    overlay_primary_s: float = Field(default=8.0, gt=0, le=60)
    overlay_priority_s: float = Field(default=2.0, ge=0, le=60)
    overlay_grace_s: float = Field(default=1.5, ge=0, le=30)
    overlay_secondary_s: float = Field(default=3.0, ge=0, le=60)
    retry_attempts: int = Field(default=1, ge=0, le=10)


class SelectionSettings(BaseModel):
    """
    Option selection settings.
    
    Attributes:
        click_timeout_ms: Timeout for the single activation click
        scope_budget_s: Budget to confirm a scope (cabin tab) rendered
        fare_section_budget_s: Budget to wait for the fare section after expanding a result
        default_cabin: Cabin used when none is requested
    """
    click_timeout_ms: int = Field(default=10000, ge=500, le=120000)
    scope_budget_s: float = Field(default=10.0, gt=0, le=120)
    fare_section_budget_s: float = Field(default=15.0, gt=0, le=120)
    default_cabin: Literal["Economy", "Premium Economy", "Business Class"] = "Economy"


class LoggingSettings(BaseModel):
    """
    Logging configuration.
    
    Attributes:
        level: Log level
        format: Log format string
        file: Log file path (None for console only)
        json_format: Use JSON format for logs
    """
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None
    json_format: bool = False


class Settings(BaseSettings):
    """
    Root settings container - single source of truth for all configuration.
    
    Settings are loaded in this priority order (highest to lowest):
    1. Explicit values passed to constructor
    2. Environment variables (prefixed with FARE_FUNNEL__)
    3. Config file (YAML)
    4. Default values
    
    Example:
        >>> settings = Settings()  # Load from env vars
        >>> settings = Settings(browser=BrowserSettings(headless=False))  # Override
    """
    
    model_config = SettingsConfigDict(
        env_prefix="FARE_FUNNEL__",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )
    
    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    detection: DetectionSettings = Field(default_factory=DetectionSettings)
    selection: SelectionSettings = Field(default_factory=SelectionSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    
    # Overall run timeout; fires the cancel token
    run_timeout_s: float = Field(default=120.0, gt=0, le=3600)
    # Forces DEBUG logging regardless of logging.level
    debug: bool = False
    
    def merge_with(self, overrides: dict) -> "Settings":
        """
        Create a new Settings instance with overrides applied.
        
        Args:
            overrides: Dictionary of values to override
            
        Returns:
            New Settings instance with overrides applied
        """
        current = self.model_dump()
        
        def deep_merge(base: dict, updates: dict) -> dict:
            for key, value in updates.items():
                if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                    deep_merge(base[key], value)
                else:
                    base[key] = value
            return base
        
        merged = deep_merge(current, overrides)
        return Settings(**merged)
