"""
Configuración de la app cargada desde variables de entorno (.env)

Todo lo que varía entre desarrollo/producción va aquí
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # MongoDB
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db_name: str = "prediction_pool"  # Nombre de la base de datos

    # JWT - los tokens los emite el servicio de identidad, aquí solo se validan
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"

    # App
    app_env: str = "development"  # o "production"
    debug: bool = False
    log_level: str = "INFO"

    # CORS - de dónde pueden venir los requests
    cors_origins: str = "http://localhost:3000"  # URLs separadas por coma
    cors_origin_regex: str = ""  # ej: r"https://.*\.example\.com"

    # ==================== Motor de evaluación ====================
    # Un lock de evaluación caduca solo si su dueño murió a mitad de camino
    evaluation_lock_ttl_seconds: int = 300

    # Reasignar la categoría de un tipo de evaluador, ej: {"question": "special"}
    evaluator_category_overrides: dict[str, str] = {}

    # ==================== Leaderboard ====================
    # "dense": 10, 10, 8 -> 1, 1, 2 | "competition": 10, 10, 8 -> 1, 1, 3
    leaderboard_ranking: Literal["dense", "competition"] = "dense"
    # Orden de los empatados (solo visual, nunca cambia el rank)
    leaderboard_tie_break: Literal["user_id", "username"] = "user_id"
    leaderboard_cache_ttl_seconds: int = 60
    leaderboard_cache_max_leagues: int = 500

    class Config:
        env_file = ".env"  # Lee desde el archivo .env
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignora campos extras del .env que no estén en el modelo


@lru_cache()
def get_settings() -> Settings:
    """Retorna la instancia de configuración (cacheada para no releerla)"""
    return Settings()
