from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class EmitterSettings(BaseSettings):
    """Environment configuration (``SWS_OPENOBSERVE*`` variables, optional .env)."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    SWS_OPENOBSERVE: Optional[str] = None
    SWS_OPENOBSERVE_INDEX_PREFIX: Optional[str] = None
    SWS_OPENOBSERVE_USERNAME: Optional[str] = None
    SWS_OPENOBSERVE_PASSWORD: Optional[str] = None

    def to_config(self) -> dict:
        """Option mapping for ``RRREmitter.initialize``; unset values are left out."""
        opts = {
            "endpointUrl": self.SWS_OPENOBSERVE,
            "indexPrefix": self.SWS_OPENOBSERVE_INDEX_PREFIX,
            "username": self.SWS_OPENOBSERVE_USERNAME,
            "password": self.SWS_OPENOBSERVE_PASSWORD,
        }
        return {k: v for k, v in opts.items() if v is not None}


@lru_cache()
def get_settings() -> EmitterSettings:
    return EmitterSettings()
