"""evbus configuration settings - main aggregator."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from evbus.configuration.events import EventBusSettings


class Settings(BaseSettings):
    """evbus configuration settings.

    Environment Variables:
        PREFIX: Environment prefix; an empty prefix means production
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)

    Example:
        ```python
        from evbus.configuration import settings

        if settings.is_production:
            ...
        workers = settings.events.worker_count
        ```
    """

    PREFIX: str = ""
    LOG_LEVEL: str = "INFO"

    events: EventBusSettings

    @property
    def is_production(self) -> bool:
        """Check if the application is running in production."""
        return not bool(self.PREFIX)

    def __init__(self, **kwargs):
        settings_map = {
            "events": EventBusSettings,
        }

        for setting_name, setting_class in settings_map.items():
            if setting_name not in kwargs:
                kwargs[setting_name] = setting_class()

        super().__init__(**kwargs)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


# Create the settings instance
settings = Settings()
