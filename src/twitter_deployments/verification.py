"""Block explorer source verification for twitter-deployments.

Talks to Etherscan-compatible APIs (Polygonscan for Mumbai).
"""

import json
import logging
import time
from typing import Any, Dict, Optional

import requests

from .constants import REQUEST_TIMEOUT
from .exceptions import VerificationError
from .types import ContractArtifact, DeploymentResult, NetworkProfile

logger = logging.getLogger(__name__)

PENDING_MARKER = "pending in queue"
ALREADY_VERIFIED_MARKER = "already verified"


def _explorer_request(
    method: str,
    api_url: str,
    payload: Dict[str, Any],
    session: Optional[requests.Session],
) -> Dict[str, Any]:
    http = session or requests
    try:
        if method == "POST":
            response = http.post(api_url, data=payload, timeout=REQUEST_TIMEOUT)
        else:
            response = http.get(api_url, params=payload, timeout=REQUEST_TIMEOUT)
    except requests.RequestException as e:
        raise VerificationError(f"Network error talking to {api_url}: {e}") from e

    if response.status_code != 200:
        raise VerificationError(
            f"Explorer request failed with status {response.status_code}"
        )
    try:
        return response.json()
    except ValueError as e:
        raise VerificationError("Explorer returned a non-JSON response") from e


def require_explorer_api(profile: NetworkProfile, api_key: Optional[str]) -> str:
    """
    Return the explorer API URL for `profile`.

    Raises:
        VerificationError: If the API key or the network's explorer is missing
    """
    if not api_key:
        raise VerificationError("Explorer API key is not configured")
    if not profile.explorer_api_url:
        raise VerificationError(
            f"Network '{profile.name}' has no block explorer to verify against"
        )
    return profile.explorer_api_url


def verify_contract(
    result: DeploymentResult,
    artifact: ContractArtifact,
    profile: NetworkProfile,
    api_key: Optional[str],
    constructor_args: str = "",
    session: Optional[requests.Session] = None,
) -> Optional[str]:
    """
    Submit a deployed contract's sources for verification.

    Args:
        result: Confirmed deployment
        artifact: Artifact the deployment was built from
        profile: Network the contract lives on
        api_key: Explorer API key
        constructor_args: ABI-encoded constructor arguments, hex without 0x
        session: Optional requests session

    Returns:
        Explorer GUID to poll, or None if the contract is already verified

    Raises:
        VerificationError: If the explorer rejects the submission
    """
    api_url = require_explorer_api(profile, api_key)

    body = _explorer_request(
        "POST",
        api_url,
        {
            "apikey": api_key,
            "module": "contract",
            "action": "verifysourcecode",
            "contractaddress": result.address,
            "sourceCode": json.dumps(artifact.standard_input),
            "codeformat": "solidity-standard-json-input",
            "contractname": artifact.fully_qualified_name,
            "compilerversion": f"v{artifact.solc_version}",
            # Misspelling is part of the explorer API
            "constructorArguements": constructor_args,
        },
        session,
    )

    message = str(body.get("result", ""))
    if body.get("status") != "1":
        if ALREADY_VERIFIED_MARKER in message.lower():
            logger.info("%s at %s is already verified", result.contract_name, result.address)
            return None
        raise VerificationError(f"Verification submission rejected: {message}")

    logger.info("Submitted %s for verification (guid %s)", result.contract_name, message)
    return message


def check_verification_status(
    guid: str,
    profile: NetworkProfile,
    api_key: Optional[str],
    session: Optional[requests.Session] = None,
) -> bool:
    """
    Check a verification request.

    Returns:
        True once verified, False while the request is still queued

    Raises:
        VerificationError: If verification failed
    """
    api_url = require_explorer_api(profile, api_key)

    body = _explorer_request(
        "GET",
        api_url,
        {
            "apikey": api_key,
            "module": "contract",
            "action": "checkverifystatus",
            "guid": guid,
        },
        session,
    )

    message = str(body.get("result", ""))
    if body.get("status") == "1":
        return True
    lowered = message.lower()
    if PENDING_MARKER in lowered:
        return False
    if ALREADY_VERIFIED_MARKER in lowered:
        return True
    raise VerificationError(f"Verification failed: {message}")


def wait_for_verification(
    guid: str,
    profile: NetworkProfile,
    api_key: Optional[str],
    timeout: float = 60.0,
    poll_interval: float = 5.0,
    session: Optional[requests.Session] = None,
) -> None:
    """
    Poll until a verification request completes.

    Raises:
        VerificationError: If verification failed or did not finish in time
    """
    deadline = time.monotonic() + timeout
    while not check_verification_status(guid, profile, api_key, session=session):
        if time.monotonic() >= deadline:
            raise VerificationError(
                f"Verification {guid} still pending after {timeout} seconds"
            )
        time.sleep(poll_interval)
