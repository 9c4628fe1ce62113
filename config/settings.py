"""Application settings using Pydantic for environment variable validation."""

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with Pydantic validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",  # Ignore extra fields from .env
    )

    # Environment
    environment: str = Field(default="development")
    debug: bool = Field(default=False)
    testing: bool = Field(default=False)

    # Fallback secret for the credential store when no encryption key is set
    secret_key: str = Field(default="dev-secret-key")

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")

    # Google Gemini API Configuration
    # A key configured here lets the relay (and local tools) call Gemini directly.
    gemini_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    )

    # Relay used when no local credential exists
    ai_relay_url: str = Field(default="http://localhost:5000/api/ai/generate")
    ai_relay_timeout_s: float = Field(default=120.0)

    # Retry policy (global per deployment)
    ai_max_retries: int = Field(default=3)
    ai_initial_retry_delay_ms: int = Field(default=2000)
    ai_retry_backoff_multiplier: int = Field(default=2)

    # Cover letter refinement loop
    agent_loop_max_retries: int = Field(default=2)

    # Content limits
    max_job_description_length: int = Field(default=15000)

    # Telemetry
    telemetry_enabled: bool = Field(default=True)
    telemetry_database_url: str = Field(default="sqlite:///./jobfit_telemetry.db")

    # Local credential storage
    credential_store_path: str = Field(default="~/.jobfit/credentials.json")
    credential_encryption_key: str = Field(default="")

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment.lower() == "production"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing."""
        return self.testing or self.environment.lower() == "testing"

    @field_validator("environment")
    @classmethod
    def environment_must_be_valid(cls, v):
        """Validate environment value."""
        valid_envs = ["development", "production", "testing"]
        if v.lower() not in valid_envs:
            raise ValueError(f"Environment must be one of {valid_envs}")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_valid(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()

    @field_validator("ai_max_retries", "ai_retry_backoff_multiplier")
    @classmethod
    def must_be_positive(cls, v):
        """Retry budget and backoff multiplier must be at least 1."""
        if v < 1:
            raise ValueError("Value must be >= 1")
        return v

    @field_validator("ai_initial_retry_delay_ms", "agent_loop_max_retries")
    @classmethod
    def must_not_be_negative(cls, v):
        """Delays and loop budgets cannot be negative."""
        if v < 0:
            raise ValueError("Value must be >= 0")
        return v

    def display_config(self) -> None:
        """Display the AI core configuration at startup."""

        def mask_sensitive(key: str, value: str) -> str:
            """Mask sensitive values like API keys."""
            sensitive_keywords = ['secret', 'key', 'token']
            if any(kw in key.lower() for kw in sensitive_keywords):
                if value and len(value) > 8:
                    return f"{value[:4]}{'*' * (len(value) - 8)}{value[-4:]}"
                elif value:
                    return '*' * len(value)
            return value

        categories = {
            "Core": ["environment", "debug", "testing"],
            "Logging": ["log_level", "log_format"],
            "Gemini": ["gemini_api_key", "ai_relay_url"],
            "Retry": ["ai_max_retries", "ai_initial_retry_delay_ms", "ai_retry_backoff_multiplier"],
            "Agent loop": ["agent_loop_max_retries"],
            "Telemetry": ["telemetry_enabled", "telemetry_database_url"],
            "Credentials": ["credential_store_path"],
        }

        print("\n" + "=" * 80)
        print("JOBFIT AI CORE CONFIGURATION")
        print("=" * 80)

        for category, keys in categories.items():
            print(f"\n{category}")
            print("-" * 40)
            for key in keys:
                if hasattr(self, key):
                    value = str(getattr(self, key))
                    masked_value = mask_sensitive(key, value)
                    if len(masked_value) > 50:
                        masked_value = masked_value[:47] + "..."
                    print(f"  {key:30} = {masked_value}")

        print("\n" + "=" * 80 + "\n")


# Create global settings instance
settings = Settings()
