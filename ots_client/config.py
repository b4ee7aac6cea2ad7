"""Client configuration"""

from pydantic_settings import BaseSettings

from . import __version__

DEFAULT_ENDPOINT = "https://onetimesecret.com"
MIN_TTL_SECONDS = 1
MAX_TTL_SECONDS = 604800  # 7 days
DEFAULT_TTL_SECONDS = 3600


class ClientSettings(BaseSettings):
    default_endpoint: str = DEFAULT_ENDPOINT
    service_name: str = "onetimesecret-desktop"  # keychain service the vault slots live under
    user_agent: str = f"OnetimesecretDesktop/{__version__}"

    # Transport deadlines, seconds
    timeout: float = 30.0
    connect_timeout: float = 10.0

    # Reject TTLs outside [MIN_TTL_SECONDS, MAX_TTL_SECONDS] before sending.
    # When False the server is left to decide.
    enforce_ttl_bounds: bool = True
    # Treat identities as email addresses and require an "@"
    require_email_identity: bool = False

    log_level: str = "WARNING"

    class Config:
        env_prefix = "OTS_"
        env_file = ".env"
        extra = "ignore"
        frozen = True


settings = ClientSettings()


def get_settings() -> ClientSettings:
    """Get the process-wide settings instance"""
    return settings
