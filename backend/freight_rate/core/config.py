# 环境变量和配置
# pydantic‑settings 读取 .env = core/config.py

from typing import Optional, Literal
from pydantic import SecretStr, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# 本机直接跑 uvicorn 时（不走 Docker），才会用到 model_config.env_file=".env"：
# 此时它会读取 backend/.env

class Settings(BaseSettings):

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_prefix="",
        case_sensitive=False,
    )

    # ========= project config =========
    PROJECT_NAME: str = "Freight Rate Hub"
    ENVIRONMENT: str = "dev"
    API_PREFIX: str = "/api/v1"
    BACKEND_CORS_ORIGINS: str = "http://localhost:5173"


    # ========= Database =========
    # 容器内默认连 docker 网络里的 "db" 服务
    DATABASE_URL: str = Field(
        default="postgresql+psycopg://fr_user:fr_pass@db:5432/freight_rate",
        alias="DATABASE_URL",
    )


    # ========= Distance / warehouse resolution =========
    # direct: 调用方传 distance_km；estimate: 邮编哈希估算；routing: Google Distance Matrix
    DISTANCE_STRATEGY: Literal["direct", "estimate", "routing"] = Field("estimate", alias="DISTANCE_STRATEGY")
    GOOGLE_API_KEY: Optional[SecretStr] = Field(None, alias="GOOGLE_API_KEY")
    GOOGLE_DISTANCE_MATRIX_URL: str = Field(
        "https://maps.googleapis.com/maps/api/distancematrix/json",
        alias="GOOGLE_DISTANCE_MATRIX_URL",
    )
    ROUTING_COUNTRY_SUFFIX: str = Field("Canada", alias="ROUTING_COUNTRY_SUFFIX")   # 拼在邮编后面，帮助地理解析
    ROUTING_FALLBACK_DISTANCE_KM: float = Field(500.0, gt=0, alias="ROUTING_FALLBACK_DISTANCE_KM")  # 没有 key 时的固定距离
    ROUTING_HTTP_TIMEOUT: int = Field(15, ge=1, alias="ROUTING_HTTP_TIMEOUT")
    WAREHOUSE_LOOKUP_LIMIT: int = Field(1000, ge=1, alias="WAREHOUSE_LOOKUP_LIMIT")
    WAREHOUSE_DISTANCE_MAX_WORKERS: int = Field(8, ge=1, le=64, alias="WAREHOUSE_DISTANCE_MAX_WORKERS")


    # ========= Rate table / pricing =========
    # range: 价格表按 distance_min_km/distance_max_km；distance_class: 先分距离档再查
    RATE_TABLE_MODE: Literal["range", "distance_class"] = Field("range", alias="RATE_TABLE_MODE")
    # first: 取仓储返回的第一条（历史行为）；lowest: 显式取最低价
    RATE_SELECTION: Literal["first", "lowest"] = Field("first", alias="RATE_SELECTION")
    RATE_PRICES_IN_CENTS: bool = Field(False, alias="RATE_PRICES_IN_CENTS")
    MARKUP_MULTIPLIER: str = Field("1.15", alias="MARKUP_MULTIPLIER")   # 字符串保存，交给 Decimal 解析


    # ========= Freightcom quote comparison =========
    FREIGHTCOM_API_KEY: Optional[SecretStr] = Field(None, alias="FREIGHTCOM_API_KEY")
    FREIGHTCOM_BASE_URL: str = Field("https://external-api.freightcom.com", alias="FREIGHTCOM_BASE_URL")
    FREIGHTCOM_HTTP_TIMEOUT: int = Field(15, ge=1, alias="FREIGHTCOM_HTTP_TIMEOUT")
    QUOTE_COUNTRY: str = Field("CA", alias="QUOTE_COUNTRY")
    QUOTE_TIMEZONE: str = Field("America/Toronto", alias="QUOTE_TIMEZONE")
    QUOTE_SHIP_DATE_OFFSET_DAYS: int = Field(7, ge=0, alias="QUOTE_SHIP_DATE_OFFSET_DAYS")
    QUOTE_POLL_INTERVAL_SEC: float = Field(1.0, gt=0, alias="QUOTE_POLL_INTERVAL_SEC")
    QUOTE_POLL_TIMEOUT_SEC: float = Field(30.0, gt=0, alias="QUOTE_POLL_TIMEOUT_SEC")


    # ========= History =========
    RATE_HISTORY_ENABLED: bool = Field(True, alias="RATE_HISTORY_ENABLED")
    RATE_HISTORY_LIMIT: int = Field(100, ge=1, le=1000, alias="RATE_HISTORY_LIMIT")


    @property
    def google_api_key(self) -> Optional[str]:
        return self.GOOGLE_API_KEY.get_secret_value() if self.GOOGLE_API_KEY else None

    @property
    def freightcom_api_key(self) -> Optional[str]:
        return self.FREIGHTCOM_API_KEY.get_secret_value() if self.FREIGHTCOM_API_KEY else None


settings = Settings()  # 只从环境读取（含 .env）
