from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Spice Garden Table Booking API"
    API_V1_STR: str = "/api/v1"

    # Database
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "12345"
    POSTGRES_DB: str = "tablebook_db"
    POSTGRES_PORT: int = 5432
    DATABASE_URL: str = ""

    # Booking table backend: "sql" keeps rows in DATABASE_URL, "memory" keeps
    # them in the process (single worker only).
    BOOKING_STORE: str = "sql"

    # Exclusion lock: "thread" for a single process, "postgres" uses an
    # advisory lock so several worker processes share one critical section.
    LOCK_BACKEND: str = "thread"
    LOCK_KEY: int = 482_117
    CREATE_LOCK_TIMEOUT_SECONDS: float = 30.0
    MUTATION_LOCK_TIMEOUT_SECONDS: float = 10.0

    SLOT_DURATION_MINUTES: int = 120
    TIMEZONE: str = "Asia/Kolkata"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    def assemble_db_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

settings = Settings()
settings.DATABASE_URL = settings.assemble_db_url()
