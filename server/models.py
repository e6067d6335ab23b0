from pydantic import BaseModel, NonNegativeInt, PositiveFloat, PositiveInt
from pydantic_settings import BaseSettings

from common.models import *


class Settings(BaseSettings, env_ignore_empty=True):
    """
    Model for holding server settings.
    """
    github_token: NonEmptyString | None = None
    github_api_url: NonEmptyString = 'https://api.github.com'
    max_parallel_tasks: PositiveInt = 8
    request_timeout: PositiveFloat = 30.0
    log_level: NonEmptyString = 'INFO'
    log_json: bool = False
    listen_host: NonEmptyString = '0.0.0.0'
    listen_port: PositiveInt = 5000


class RateLimitStatus(BaseModel, frozen=True):
    """
    Model for the core rate limit reported by GitHub API.
    """
    limit: NonNegativeInt
    remaining: NonNegativeInt
    reset: NonNegativeInt = 0


__all__ = 'Settings', 'RateLimitStatus'
