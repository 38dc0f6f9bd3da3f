from decimal import Decimal
from typing import List, Union
import logging

from pydantic import AnyHttpUrl, Field, validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

class Settings(BaseSettings):
    PROJECT_NAME: str = "Delivery Planner"
    API_V1_STR: str = "/api/v1"

    # CORS
    BACKEND_CORS_ORIGINS: List[Union[str, AnyHttpUrl]] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000"
    ]

    @validator("BACKEND_CORS_ORIGINS", pre=True)
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    # Database
    SQLITE_DATABASE_URI: str = "sqlite:///./delivery_planner.db"

    # Drop pricing, in pesos
    DROP_SAME_ZONE_RATE: Decimal = Field(default=Decimal("250"), description="Charge for a drop in the same area as the previous stop")
    DROP_OTHER_ZONE_RATE: Decimal = Field(default=Decimal("500"), description="Charge for a drop in a different area from the previous stop")

    # Vehicle recommendation: totals at or below this go on an L300 van
    L300_MAX_VALUE: Decimal = Field(default=Decimal("150000"))

    # Planning
    UPCOMING_WINDOW_DAYS: int = Field(default=7, ge=0)
    PICKUP_DELIVERY_TYPE: str = "Pickup"

    # No authentication in this service; audit fields use a fixed actor
    DEFAULT_ACTOR_ID: int = 1

    LOG_DIR: str = "logs"

    class Config:
        case_sensitive = True
        env_file = ".env"


settings = Settings()
logger.info(f"Loaded settings: API_V1_STR={settings.API_V1_STR}, CORS={settings.BACKEND_CORS_ORIGINS}")
