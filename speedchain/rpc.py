"""JSON-RPC 2.0 interface to the chain."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from aiohttp import web

from speedchain.blockchain import Blockchain
from speedchain.transaction import U64_MAX

logger = logging.getLogger(__name__)

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

_ParamSpec = Sequence[Tuple[str, type]]

_SEND_TRANSACTION_PARAMS: _ParamSpec = (
    ("from", str),
    ("to", str),
    ("amount", int),
    ("gas_limit", int),
    ("gas_price", int),
)


class RpcError(Exception):
    """A JSON-RPC error with its code."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


def _response(request_id: Any, result: Any) -> dict:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def _error(request_id: Any, error: RpcError) -> dict:
    return {"jsonrpc": "2.0", "id": request_id, "error": error.to_dict()}


def _check_param(value: Any, kind: type) -> Any:
    if kind is int:
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= U64_MAX:
            raise RpcError(INVALID_PARAMS, "Invalid params")
    elif not isinstance(value, kind):
        raise RpcError(INVALID_PARAMS, "Invalid params")
    return value


def _bind(params: Any, spec: _ParamSpec) -> List[Any]:
    if params is None:
        params = []
    if isinstance(params, list):
        if len(params) != len(spec):
            raise RpcError(INVALID_PARAMS, "Invalid params")
        values = params
    elif isinstance(params, dict):
        try:
            values = [params[name] for name, _ in spec]
        except KeyError as exc:
            raise RpcError(INVALID_PARAMS, f"Invalid params: missing {exc}") from exc
    else:
        raise RpcError(INVALID_PARAMS, "Invalid params")
    return [_check_param(value, kind) for value, (_, kind) in zip(values, spec)]


class SpeedRpc:
    """The chain's RPC methods and a dispatcher for JSON-RPC requests."""

    def __init__(self, blockchain: Blockchain) -> None:
        self.blockchain = blockchain
        self._methods: Dict[str, Tuple[Callable[..., Any], _ParamSpec]] = {
            "eth_blockNumber": (self.get_block_number, ()),
            "eth_sendTransaction": (self.create_transaction, _SEND_TRANSACTION_PARAMS),
        }

    async def get_block_number(self) -> int:
        """Index of the newest block."""
        try:
            return await asyncio.to_thread(self.blockchain.get_last_index)
        except Exception as exc:
            raise RpcError(INTERNAL_ERROR, str(exc)) from exc

    async def create_transaction(
        self, sender: str, recipient: str, amount: int, gas_limit: int, gas_price: int
    ) -> str:
        """Create a transaction and queue it; return its hash."""
        try:
            return await asyncio.to_thread(
                self.blockchain.create_transaction, sender, recipient, amount, gas_limit, gas_price
            )
        except Exception as exc:
            raise RpcError(INTERNAL_ERROR, str(exc)) from exc

    async def handle_request(self, payload: Any) -> Optional[Any]:
        """Answer one request or a batch; ``None`` when nothing is to be sent back."""
        if isinstance(payload, list):
            if not payload:
                return _error(None, RpcError(INVALID_REQUEST, "Invalid request"))
            responses = [await self._handle_single(item) for item in payload]
            answered = [response for response in responses if response is not None]
            return answered or None
        return await self._handle_single(payload)

    async def _handle_single(self, payload: Any) -> Optional[dict]:
        if (
            not isinstance(payload, dict)
            or payload.get("jsonrpc") != "2.0"
            or not isinstance(payload.get("method"), str)
        ):
            request_id = payload.get("id") if isinstance(payload, dict) else None
            return _error(request_id, RpcError(INVALID_REQUEST, "Invalid request"))

        is_notification = "id" not in payload
        request_id = payload.get("id")
        try:
            entry = self._methods.get(payload["method"])
            if entry is None:
                raise RpcError(METHOD_NOT_FOUND, "Method not found")
            handler, spec = entry
            result = await handler(*_bind(payload.get("params"), spec))
        except RpcError as exc:
            logger.info("RPC %s failed: %s", payload["method"], exc.message)
            return None if is_notification else _error(request_id, exc)
        return None if is_notification else _response(request_id, result)


def create_app(rpc: SpeedRpc) -> web.Application:
    """An aiohttp application serving ``rpc`` with POST requests at ``/``."""

    async def handle(request: web.Request) -> web.StreamResponse:
        try:
            payload = json.loads(await request.text())
        except ValueError:
            return web.json_response(_error(None, RpcError(PARSE_ERROR, "Parse error")))
        response = await rpc.handle_request(payload)
        if response is None:
            return web.Response(status=204)
        return web.json_response(response)

    app = web.Application()
    app.router.add_post("/", handle)
    return app