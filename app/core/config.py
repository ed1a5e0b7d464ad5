from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )

    # Provider credentials; empty means "not configured"
    GOOGLE_MAPS_API_KEY: str = ""
    GEMINI_API_KEY: str = ""

    GEMINI_MODEL: str = "gemini-1.5-flash"
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    GEMINI_TIMEOUT: int = 30

    PLACES_NEARBY_URL: str = (
        "https://maps.googleapis.com/maps/api/place/nearbysearch/json"
    )
    PLACES_TIMEOUT: int = 10

    # Courtesy pacing for third-party rate limits
    PLACES_REQUEST_DELAY_SEC: float = 0.2
    ROUTE_GENERATION_DELAY_SEC: float = 1.0

    ITINERARY_MAX_OUTPUT_TOKENS: int = 3000
    ITINERARY_TEMPERATURE: float = 0.7
    ROUTE_TEMPERATURE: float = 0.9

    DEFAULT_RADIUS_M: int = 1000
    DEFAULT_ROUTE_COUNT: int = 3
    MAX_ROUTE_COUNT: int = 6

    SEARCH_LOG_ENABLED: bool = True
    SEARCH_LOG_DIR: str = "api_logs"

    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
    ]


settings = Settings()
