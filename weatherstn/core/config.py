from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "Weather Station"

    # Logging
    log_level: str = "INFO"
    log_file: str = "weatherstn.log"

    # Storage
    sqlite_path: str = Field(default="weatherstn.db")

    # Sensor mode: only "sim" ships with this package
    sensor_mode: str = "sim"

    # Loops
    poll_interval_seconds: int = 30
    publish_interval_seconds: int = 60

    # Collector endpoint (always https)
    endpoint_host: str = "localhost:8443"
    endpoint_method: str = "PUT"
    endpoint_path: str = "observations"
    publish_timeout_seconds: float = 10.0

    # Anemometer (SEN-08942)
    anemometer_pin: int = 5
    anemometer_interval_seconds: float = 5.0
    anemometer_radius_cm: float = 9.0
    anemometer_factor: float = 1.18

    # Wind vane via MCP3008
    vane_channel: int = 0
    adc_max: int = 1023
    adc_vref: float = 3.3

    # Rain gauge
    rain_pin: int = 6
    rain_interval_seconds: float = 5.0
    rain_mm_per_tip: float = 0.2794


settings = Settings()
