"""JSON-RPC client for twitter-deployments."""

import itertools
import logging
from typing import Any, Dict, List, Optional

import requests

from .constants import REQUEST_TIMEOUT
from .exceptions import RPCError

logger = logging.getLogger(__name__)


class JsonRpcClient:
    """Minimal Ethereum JSON-RPC client over HTTP."""

    def __init__(
        self,
        url: str,
        timeout: float = REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.url = url
        self.timeout = timeout
        self._session = session or requests.Session()
        self._ids = itertools.count(1)

    def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """
        Make a JSON-RPC request and return its `result` member.

        Args:
            method: RPC method name, e.g. "eth_chainId"
            params: Positional parameters

        Returns:
            Decoded `result` (may be None, e.g. for a pending receipt)

        Raises:
            RPCError: On network errors, non-200 responses or RPC errors
        """
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or [],
            "id": next(self._ids),
        }
        logger.debug("RPC %s -> %s", method, self.url)

        try:
            response = self._session.post(self.url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise RPCError(f"Network error during {method}: {e}") from e

        # Check for HTTP errors
        if response.status_code != 200:
            raise RPCError(f"{method} failed with HTTP status {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise RPCError(f"{method} returned a non-JSON response") from e

        # Check for RPC errors
        if "error" in body:
            error = body["error"]
            if isinstance(error, dict):
                raise RPCError(
                    f"{method} error: {error.get('message', error)}",
                    code=error.get("code"),
                )
            raise RPCError(f"{method} error: {error}")

        if "result" not in body:
            raise RPCError(f"{method} response has neither result nor error")

        return body["result"]

    def chain_id(self) -> int:
        return int(self.call("eth_chainId"), 16)

    def get_transaction_count(self, address: str, block: str = "pending") -> int:
        return int(self.call("eth_getTransactionCount", [address, block]), 16)

    def gas_price(self) -> int:
        return int(self.call("eth_gasPrice"), 16)

    def estimate_gas(self, transaction: Dict[str, Any]) -> int:
        return int(self.call("eth_estimateGas", [transaction]), 16)

    def send_raw_transaction(self, raw_transaction: str) -> str:
        """Broadcast a signed transaction, returning its hash."""
        return self.call("eth_sendRawTransaction", [raw_transaction])

    def get_transaction_receipt(self, transaction_hash: str) -> Optional[Dict[str, Any]]:
        """Receipt of a mined transaction, or None while it is pending."""
        return self.call("eth_getTransactionReceipt", [transaction_hash])

    def get_code(self, address: str, block: str = "latest") -> str:
        return self.call("eth_getCode", [address, block])
