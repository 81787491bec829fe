from dotenv import find_dotenv, load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv(find_dotenv(), override=False)


class Settings(BaseSettings):
    PROJECT_NAME: str = "swapfit"
    REGION: str = "eu-west-2"
    ENV: str = "dev"
    DDB_TABLE_NAME: str = "swapfit-dev-table"
    model_config = SettingsConfigDict(env_file=None)

    # ──────────────────── Auth ─────────────────────

    DISABLE_AUTH_FOR_LOCAL_DEV: bool = False
    DEV_USER_SUB: str | None = None
    DEV_ORGANIZATION_ID: str | None = None

    COGNITO_AUDIENCE: str = ""
    COGNITO_ISSUER_URL: str = ""
    ORGANIZATION_CLAIM: str = "custom:organization_id"

    # ──────────────────── OpenAI ─────────────────────

    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-3.5-turbo"
    OPENAI_TEMPERATURE: float = 0.1
    OPENAI_MAX_TOKENS: int = 1500

    # ──────────────────── Alternatives engine ─────────────────────

    ALTERNATIVES_CACHE_TTL_DAYS: int = 7
    ALTERNATIVES_CACHE_SIZE: int = 20
    ALTERNATIVES_CANDIDATE_LIMIT: int = 50
    REASON_LOCALE: str = "es"

    # Used when an organisation has no usage record yet
    DEFAULT_AI_TOKEN_LIMIT: int = 500
    DEFAULT_AI_USER_DAILY_REQUESTS: int = 10

    # ──────────────────── Rate limiting ─────────────────────
    RATE_LIMIT_ENABLED: bool = True

    RATE_LIMIT_READ_PER_MIN: int = 120
    RATE_LIMIT_WRITE_PER_MIN: int = 30
    RATE_LIMIT_AI_PER_MIN: int = 10

    RATE_LIMIT_TTL_SECONDS: int = 600

    RATE_LIMIT_AI_PREFIX: str = "/api/v1/ai/"

    # Prefixes that should never be rate limited
    RATE_LIMIT_EXCLUDED_PREFIXES: tuple[str, ...] = (
        "/healthz",
        "/meta",
        "/docs",
        "/openapi.json",
    )

    # ─────────────────────────────────────────

    @property
    def openai_configured(self) -> bool:
        return bool(self.OPENAI_API_KEY)


settings = Settings()
