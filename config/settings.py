from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Solana RPC (public endpoint used if helius_rpc_url is empty)
    solana_rpc_url: str = "https://api.mainnet-beta.solana.com"

    # Helius (RPC + enhanced transactions for protocol sampling)
    helius_api_key: str = ""
    helius_rpc_url: str = ""

    # Ledger queries
    rpc_max_rps: float = 10.0
    rpc_query_timeout_sec: float = 10.0  # per sub-query (balance / signatures / tokens)
    signature_sample_size: int = 100  # getSignaturesForAddress limit, tx_count is capped by this

    # Scoring pipeline
    score_cache_ttl_sec: int = 300
    score_timeout_sec: float = 55.0  # single-wallet pipeline deadline
    batch_max_size: int = 10
    batch_timeout_sec: float = 55.0

    # Protocol-interaction estimate (needs helius_api_key)
    enable_protocol_sampling: bool = False
    protocol_sample_size: int = 20

    # Watchlist
    watchlist_history_size: int = 50
    change_log_size: int = 100
    significant_change_threshold: int = 5

    # SNS (.sol) resolution
    sns_proxy_url: str = "https://sns-sdk-proxy.bonfida.workers.dev"

    # Admin endpoints (cache clear, forum post); empty disables them
    admin_api_key: str = ""

    # Alerts
    redis_url: str = ""  # pubsub channel alerts:score_changes when set
    forum_api_url: str = ""
    forum_api_key: str = ""

    # HTTP API
    api_host: str = "0.0.0.0"
    api_port: int = 3001
    score_rate_limit: str = "30/minute"
    api_debug: bool = False

    @property
    def rpc_url(self) -> str:
        if self.helius_rpc_url:
            return self.helius_rpc_url
        if self.helius_api_key:
            return f"https://mainnet.helius-rpc.com/?api-key={self.helius_api_key}"
        return self.solana_rpc_url


settings = Settings()
