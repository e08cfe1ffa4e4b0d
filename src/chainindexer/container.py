from dependency_injector import containers, providers

from chainindexer.accounts.processor import AccountsProcessor
from chainindexer.config import Settings
from chainindexer.converters.balance import BalanceConverter
from chainindexer.converters.hashing import Blake2bHasher
from chainindexer.converters.pubkey import HexPubkeyConverter
from chainindexer.events.classifier import build_default_classifier
from chainindexer.events.logs import LogsPreparer
from chainindexer.indexer import BlockIndexer
from chainindexer.infra.gateway.client import GatewayClient
from chainindexer.infra.http.rate_limited_client import RateLimitedClient
from chainindexer.infra.store.client import DocumentStoreClient
from chainindexer.merge.serializer import MergeProtocolSerializer
from chainindexer.rollback.coordinator import RollbackCoordinator
from chainindexer.transactions.builder import TransactionBuilder
from chainindexer.transactions.processor import TransactionsProcessor


class Container(containers.DeclarativeContainer):
    settings = providers.Singleton(Settings)

    pubkey_converter = providers.Singleton(HexPubkeyConverter, length=settings.provided.address_length)
    hasher = providers.Singleton(Blake2bHasher)
    balance_converter = providers.Singleton(BalanceConverter, denomination=settings.provided.denomination)

    store_client = providers.Singleton(
        DocumentStoreClient,
        base_url=settings.provided.es_url,
        auth=settings.provided.es_auth,
        timeout=settings.provided.request_timeout,
    )

    transaction_builder = providers.Singleton(
        TransactionBuilder,
        pubkey_converter=pubkey_converter,
        balance_converter=balance_converter,
    )
    transactions_processor = providers.Singleton(
        TransactionsProcessor,
        builder=transaction_builder,
        hasher=hasher,
    )
    logs_preparer = providers.Singleton(LogsPreparer, pubkey_converter=pubkey_converter, hasher=hasher)
    classifier = providers.Singleton(
        build_default_classifier,
        pubkey_converter=pubkey_converter,
        balance_converter=balance_converter,
    )
    accounts_processor = providers.Singleton(
        AccountsProcessor,
        pubkey_converter=pubkey_converter,
        balance_converter=balance_converter,
    )
    serializer = providers.Singleton(
        MergeProtocolSerializer,
        hasher=hasher,
        enabled_indexes=settings.provided.enabled_indexes,
        bulk_max_size=settings.provided.bulk_max_size,
    )
    rollback = providers.Singleton(
        RollbackCoordinator,
        store=store_client,
        enabled_indexes=settings.provided.enabled_indexes,
    )

    block_indexer = providers.Singleton(
        BlockIndexer,
        store=store_client,
        transactions_processor=transactions_processor,
        logs_preparer=logs_preparer,
        classifier=classifier,
        accounts_processor=accounts_processor,
        serializer=serializer,
        rollback=rollback,
        num_shards=settings.provided.num_of_shards,
    )

    gateway_http = providers.Singleton(
        RateLimitedClient,
        base_url=settings.provided.gateway_url,
        rate_per_second=settings.provided.gateway_rate_per_second,
        timeout=settings.provided.request_timeout,
    )
    gateway_client = providers.Singleton(GatewayClient, http_client=gateway_http)
