from slowapi import Limiter
from slowapi.util import get_remote_address
import ninebooks.config


def get_limiter() -> Limiter:
    return Limiter(
        key_func=get_remote_address,
        default_limits=[f"{ninebooks.config.settings.rate_limit_per_minute}/minute"],
        enabled=ninebooks.config.settings.rate_limit_enabled
    )


limiter = get_limiter()


def get_default_limit() -> str:
    return f"{ninebooks.config.settings.rate_limit_per_minute}/minute"


def get_search_limit() -> str:
    return f"{ninebooks.config.settings.rate_limit_search_per_minute}/minute"
