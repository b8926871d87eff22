"""
Configuration

Settings come from the environment (a local .env file is loaded first).
"""
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

DEFAULT_PORT = 3000
DEFAULT_HOST = "127.0.0.1"
DEFAULT_USER_AGENT = "finquery research finquery@example.com"
DEFAULT_API_VERSION = "2024-02-15-preview"
DEFAULT_GRAPH_URL = "https://graph.microsoft.com/v1.0"
DEFAULT_REFERENCE_TTL = 3600
DEFAULT_BATCH_SIZE = 5
DEFAULT_BATCH_DELAY_MS = 600


def get_int(name: str, default: int) -> int:
    """Integer environment variable"""
    value = os.environ.get(name, str(default))
    try:
        return int(value)
    except ValueError:
        msg = f"Invalid {name} value: {value}"
        raise ValueError(msg) from None


def get_str(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.environ.get(name)
    return value if value else default


@dataclass
class Settings:
    """Process configuration"""
    port: int = DEFAULT_PORT
    host: str = DEFAULT_HOST
    sec_user_agent: str = DEFAULT_USER_AGENT
    azure_openai_endpoint: Optional[str] = None
    azure_openai_api_key: Optional[str] = None
    azure_openai_deployment: Optional[str] = None
    openai_api_version: str = DEFAULT_API_VERSION
    alpha_vantage_key: Optional[str] = None
    finnhub_api_key: Optional[str] = None
    graph_api_url: str = DEFAULT_GRAPH_URL
    azure_search_endpoint: Optional[str] = None
    azure_search_index: Optional[str] = None
    azure_search_api_key: Optional[str] = None
    reference_table_ttl: int = DEFAULT_REFERENCE_TTL
    sec_batch_size: int = DEFAULT_BATCH_SIZE
    sec_batch_delay_ms: int = DEFAULT_BATCH_DELAY_MS


def load_settings(dotenv: bool = True) -> Settings:
    """Build Settings from the environment"""
    if dotenv:
        load_dotenv()

    return Settings(
        port=get_int("PORT", DEFAULT_PORT),
        host=get_str("HOST", DEFAULT_HOST),
        sec_user_agent=get_str("SEC_USER_AGENT", DEFAULT_USER_AGENT),
        azure_openai_endpoint=get_str("AZURE_OPENAI_ENDPOINT"),
        azure_openai_api_key=get_str("AZURE_OPENAI_API_KEY"),
        azure_openai_deployment=get_str("AZURE_OPENAI_DEPLOYMENT"),
        openai_api_version=get_str("OPENAI_API_VERSION", DEFAULT_API_VERSION),
        alpha_vantage_key=get_str("ALPHA_VANTAGE_KEY"),
        finnhub_api_key=get_str("FINNHUB_API_KEY"),
        graph_api_url=get_str("GRAPH_API_URL", DEFAULT_GRAPH_URL),
        azure_search_endpoint=get_str("AZURE_SEARCH_ENDPOINT"),
        azure_search_index=get_str("AZURE_SEARCH_INDEX"),
        azure_search_api_key=get_str("AZURE_SEARCH_API_KEY"),
        reference_table_ttl=get_int("REFERENCE_TABLE_TTL", DEFAULT_REFERENCE_TTL),
        sec_batch_size=get_int("SEC_BATCH_SIZE", DEFAULT_BATCH_SIZE),
        sec_batch_delay_ms=get_int("SEC_BATCH_DELAY_MS", DEFAULT_BATCH_DELAY_MS),
    )
