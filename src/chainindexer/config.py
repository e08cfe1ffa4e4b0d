from pydantic_settings import BaseSettings

DEFAULT_INDEXES = [
    "transactions",
    "operations",
    "scresults",
    "receipts",
    "logs",
    "events",
    "accounts",
    "accountshistory",
    "accountsdcdt",
    "accountsdcdthistory",
    "tokens",
    "tags",
    "delegators",
    "scdeploys",
]


class Settings(BaseSettings):
    es_url: str = "http://localhost:9200"
    es_username: str = ""
    es_password: str = ""
    request_timeout: float = 30.0
    bulk_max_size: int = 9 * 1024 * 1024  # bytes per bulk body
    denomination: int = 18
    num_of_shards: int = 3
    address_length: int = 32
    enabled_indexes: list[str] = list(DEFAULT_INDEXES)
    gateway_url: str = "http://localhost:8079"
    gateway_rate_per_second: float = 20.0
    max_parallel_requests: int = 10
    log_level: str = "INFO"

    @property
    def es_auth(self) -> tuple[str, str] | None:
        if not self.es_username:
            return None
        return (self.es_username, self.es_password)

    class Config:
        env_file = ".env"
        env_prefix = "INDEXER_"


settings = Settings()
