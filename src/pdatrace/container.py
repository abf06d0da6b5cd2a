from dependency_injector import containers, providers

from pdatrace.config import Settings
from pdatrace.domain.models.program_ids import ProgramIds
from pdatrace.infra.http.rate_limited_client import RateLimitedClient
from pdatrace.infra.solana.rpc_client import SolanaRPCClient
from pdatrace.parser.detector import AccountCreationDetector
from pdatrace.parser.registry import build_default_registry
from pdatrace.parser.tree import InstructionTreeBuilder
from pdatrace.scanner import PdaScanner


class Container(containers.DeclarativeContainer):
    settings = providers.Singleton(Settings)

    program_ids = providers.Singleton(ProgramIds.from_settings, settings=settings)

    http_client = providers.Singleton(
        RateLimitedClient,
        rate_per_second=settings.provided.rpc_rate_per_second,
        timeout=settings.provided.rpc_timeout,
        max_in_flight=settings.provided.lookup_concurrency,
    )

    rpc = providers.Factory(
        SolanaRPCClient,
        rpc_url=settings.provided.solana_rpc_url,
        http_client=http_client,
    )

    registry = providers.Singleton(build_default_registry)

    tree_builder = providers.Factory(InstructionTreeBuilder)

    detector = providers.Factory(
        AccountCreationDetector,
        program_ids=program_ids,
        registry=registry,
        max_concurrency=settings.provided.lookup_concurrency,
    )

    scanner = providers.Factory(
        PdaScanner,
        rpc=rpc,
        detector=detector,
        builder=tree_builder,
        page_size=settings.provided.signature_page_size,
    )
