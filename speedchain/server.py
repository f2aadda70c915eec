"""The node: an RPC server with a periodic miner."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
from datetime import datetime, timezone
from typing import Optional, Sequence

from aiohttp import web

from speedchain.blockchain import Blockchain
from speedchain.rpc import SpeedRpc, create_app

logger = logging.getLogger(__name__)

DB_PATH = "blockchain_db"
DIFFICULTY = 4
HOST = "127.0.0.1"
PORT = 8545

BANNER = """
╔═══════════════════════════════════════════════════════════╗
║                                                           ║
║               🚀 SPEED BLOCKCHAIN 🚀                      ║
║                                                           ║
║              A Fast & Simple Blockchain                   ║
║                                                           ║
╚═══════════════════════════════════════════════════════════╝
"""


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%H:%M:%S")


class SpeedBlockchainServer:
    """Serves JSON-RPC over HTTP and mines pending transactions periodically."""

    MINING_INTERVAL = 5.0

    def __init__(self, blockchain_path: str, difficulty: int, host: str, port: int) -> None:
        self.blockchain = Blockchain(blockchain_path, difficulty)
        self.host = host
        self.port = port
        self.mining_interval = self.MINING_INTERVAL
        self.runner: Optional[web.AppRunner] = None

    async def start(self) -> web.AppRunner:
        """Start listening for RPC calls; returns the running app runner."""
        if self.runner is not None:
            raise RuntimeError("server is already running")
        logger.info("Initializing Speed Blockchain Server...")
        runner = web.AppRunner(create_app(SpeedRpc(self.blockchain)))
        await runner.setup()
        site = web.TCPSite(runner, self.host, self.port)
        try:
            await site.start()
        except OSError:
            await runner.cleanup()
            raise
        self.runner = runner
        logger.info("Speed Blockchain RPC server listening on http://%s:%s", self.host, self.port)
        return runner

    async def stop(self) -> None:
        """Stop the RPC server if it is running."""
        if self.runner is not None:
            await self.runner.cleanup()
            self.runner = None

    async def process_mining(self) -> Optional[bool]:
        """Mine pending transactions; ``True`` if a block was mined, else ``None``."""
        if not await asyncio.to_thread(self.blockchain.has_pending_transactions):
            logger.info("No transactions to mine, skipping...")
            return None
        logger.info("Starting mining transaction...")
        try:
            await asyncio.to_thread(self.blockchain.mine_pending_transactions)
        except Exception as exc:
            if "No transactions to mine" in str(exc):
                return None
            raise
        return True

    async def mining_loop(self) -> None:
        """Mine once every ``mining_interval`` seconds until cancelled."""
        logger.info("Starting node mining every %s seconds", self.mining_interval)
        while True:
            await asyncio.sleep(self.mining_interval)
            try:
                mined = await self.process_mining()
            except Exception as exc:
                logger.error("Mining cycle failed: %s", exc)
                continue
            if mined:
                logger.info("[%s] Block mined", _now())
            else:
                logger.info("[%s] No transactions to mine", _now())

    async def _wait_for_shutdown(self) -> None:
        stop = asyncio.Event()
        loop = asyncio.get_running_loop()
        installed = []
        for signum in (signal.SIGINT, getattr(signal, "SIGTERM", None)):
            if signum is None:
                continue
            try:
                loop.add_signal_handler(signum, stop.set)
            except (NotImplementedError, RuntimeError):
                continue
            installed.append(signum)
        try:
            await stop.wait()
            logger.info("Received shutdown signal")
        finally:
            for signum in installed:
                loop.remove_signal_handler(signum)

    async def run(self) -> None:
        """Serve and mine until interrupted, then shut down cleanly."""
        await self.start()
        mining = asyncio.create_task(self.mining_loop())
        try:
            await self._wait_for_shutdown()
        finally:
            logger.info("Shutting down server...")
            mining.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await mining
            await self.stop()
            self.blockchain.close()
            logger.info("Server stopped gracefully")


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="speedchain", description="Run a Speed Blockchain node.")
    parser.add_argument("--db", default=DB_PATH, help="database directory")
    parser.add_argument("--difficulty", type=int, default=DIFFICULTY, help="leading hex zeros")
    parser.add_argument("--host", default=HOST)
    parser.add_argument("--port", type=int, default=PORT)
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Start a node and run it until Ctrl+C."""
    args = _parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    print(BANNER)
    server = SpeedBlockchainServer(args.db, args.difficulty, args.host, args.port)
    print(f"Server is running on http://{args.host}:{args.port}. Press Ctrl+C to stop.")
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(server.run())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())