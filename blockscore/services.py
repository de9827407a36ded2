"""Process-wide service graph, built once at startup and closed on shutdown."""

from dataclasses import dataclass
from typing import Any

from loguru import logger

from blockscore.ledger.client import SolanaRpcClient
from blockscore.ledger.gateway import LedgerGateway
from blockscore.naming.sns import SnsResolver
from blockscore.scoring.batch import BatchCoordinator
from blockscore.scoring.cache import ScoreCache
from blockscore.scoring.engine import ScoringEngine
from blockscore.watchlist.alerts import ChangeAlertDispatcher, ForumNotifier
from blockscore.watchlist.store import Watchlist
from config.settings import Settings


@dataclass
class Services:
    engine: ScoringEngine
    batch: BatchCoordinator
    watchlist: Watchlist
    dispatcher: ChangeAlertDispatcher
    admin_api_key: str = ""
    rpc: SolanaRpcClient | None = None
    resolver: SnsResolver | None = None
    notifier: ForumNotifier | None = None
    redis: Any | None = None  # redis.asyncio.Redis

    async def close(self) -> None:
        logger.info(f"[SCORE] Final stats: {self.engine.metrics.format_stats_line()}")
        if self.rpc is not None:
            await self.rpc.close()
        if self.resolver is not None:
            await self.resolver.close()
        if self.notifier is not None:
            await self.notifier.close()
        if self.redis is not None:
            await self.redis.aclose()


def build_services(settings: Settings) -> Services:
    rpc = SolanaRpcClient(
        settings.rpc_url,
        helius_api_key=settings.helius_api_key,
        max_rps=settings.rpc_max_rps,
    )
    gateway = LedgerGateway(
        rpc,
        query_timeout=settings.rpc_query_timeout_sec,
        signature_sample_size=settings.signature_sample_size,
        protocol_sample_size=(
            settings.protocol_sample_size if settings.enable_protocol_sampling else 0
        ),
    )
    resolver = SnsResolver(settings.sns_proxy_url)
    engine = ScoringEngine(
        gateway,
        ScoreCache(settings.score_cache_ttl_sec),
        resolver=resolver,
        score_timeout=settings.score_timeout_sec,
    )
    watchlist = Watchlist(
        engine,
        history_size=settings.watchlist_history_size,
        change_log_size=settings.change_log_size,
        significance_threshold=settings.significant_change_threshold,
    )

    redis = None
    if settings.redis_url:
        from redis.asyncio import Redis

        redis = Redis.from_url(settings.redis_url, decode_responses=True)

    notifier = None
    if settings.forum_api_url and settings.forum_api_key:
        notifier = ForumNotifier(settings.forum_api_url, settings.forum_api_key)

    logger.info(
        f"[INIT] RPC={settings.rpc_url.split('?')[0]} cache_ttl={settings.score_cache_ttl_sec}s "
        f"batch_max={settings.batch_max_size} protocol_sampling={settings.enable_protocol_sampling}"
    )
    return Services(
        engine=engine,
        batch=BatchCoordinator(
            engine, max_size=settings.batch_max_size, timeout=settings.batch_timeout_sec
        ),
        watchlist=watchlist,
        dispatcher=ChangeAlertDispatcher(redis=redis, notifier=notifier),
        admin_api_key=settings.admin_api_key,
        rpc=rpc,
        resolver=resolver,
        notifier=notifier,
        redis=redis,
    )
