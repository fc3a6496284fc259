# vault/server/__main__.py

import asyncio
import logging

from hypercorn.asyncio import serve
from hypercorn.config import Config

from ..config import parse_args
from ..faucet import FaucetNotifier
from ..handler.handler import ThetaRPCHandler
from ..keymanager import SqlKeyManager
from ..logging_config import setup_logging
from ..models import create_engine_and_session, init_db
from ..rpc.client import UpstreamClient
from ..tx.types import Coin
from .app import create_app

logger = logging.getLogger(__name__)


async def main(args):
    engine, session_factory = create_engine_and_session(args.database_url)
    await init_db(engine)

    on_create = FaucetNotifier(args.faucet_url) if args.faucet_url else None
    key_manager = SqlKeyManager(session_factory, engine=engine, on_create=on_create)
    client = UpstreamClient(args.upstream_url, timeout=args.upstream_timeout)
    handler = ThetaRPCHandler(
        client,
        key_manager,
        default_fee=Coin(**args.default_fee),
        default_gas=args.default_gas,
        request_timeout=args.request_timeout,
    )
    app = create_app(handler, max_connections=args.max_connections)

    config = Config()
    config.bind = [f'{args.host}:{args.port}']

    logger.info(f"Starting Theta vault gateway on {args.host}:{args.port}")
    logger.info(f"Upstream node: {args.upstream_url}")
    try:
        await serve(app, config)
    finally:
        await client.close()
        await key_manager.close()
        logger.info("Theta vault gateway stopped")


if __name__ == "__main__":
    args = parse_args()
    setup_logging(args.log_level)
    asyncio.run(main(args))
