"""
Main wallet API client
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

import requests
from requests.structures import CaseInsensitiveDict

from .config import DEFAULT_ADDRESS, ClientConfig
from .crypto import WalletCrypto
from .errors import (
    SUCCESS_CODES,
    InvalidInputError,
    ServiceError,
    TransportError,
    WalletError,
    WalletTimeoutError,
    error_from_code,
)
from .models import (
    SUB_WALLET_TYPES,
    WALLET_TYPES,
    Fee,
    Identifier,
    IssueAssetBody,
    IssueBody,
    POEBody,
    POEPayload,
    RegisterSubWalletBody,
    RegisterWalletBody,
    SignatureBody,
    SignatureParam,
    TransactionLog,
    TransactionLogs,
    TransferAssetBody,
    TransferCTokenBody,
    WalletBalance,
    WalletInfo,
    WalletRequest,
    WalletResponse,
)
from .utils import Utils

logger = logging.getLogger(__name__)

Header = Optional[Mapping[str, str]]

INVOKE_MODE_HEADER = 'BC-Invoke-Mode'
INVOKE_MODE_SYNC = 'sync'
INVOKE_MODE_ASYNC = 'async'
API_KEY_HEADER = 'API-Key'

# Multipart form fields of the POE upload API
OFFCHAIN_POE_ID = 'poe_id'
OFFCHAIN_POE_FILE = 'poe_file'
SIGNATURE_CREATOR = 'signature.creator'
SIGNATURE_CREATED = 'signature.created'
SIGNATURE_NONCE = 'signature.nonce'
SIGNATURE_SIGNATURE_VALUE = 'signature.signatureValue'


@dataclass(frozen=True)
class PrecomputedSignature:
    """Signature produced by the caller with an external signing tool"""
    signature: SignatureBody


@dataclass(frozen=True)
class KeyMaterial:
    """Private key material; the SDK signs the payload itself"""
    param: SignatureParam


SigningStrategy = Union[PrecomputedSignature, KeyMaterial]


def canonical_payload(body: Dict[str, Any]) -> str:
    """Serialize a request body into the exact string that gets signed"""
    return json.dumps(body, sort_keys=True, separators=(',', ':'))


def _require(value: Any, name: str) -> None:
    if not value:
        raise InvalidInputError(f"{name} is required")


def _check_fee(fee: Optional[Fee]) -> None:
    if fee is None:
        return
    if not isinstance(fee.amount, int) or isinstance(fee.amount, bool) or fee.amount < 0:
        raise InvalidInputError("fee amount must be a non-negative integer number of ATOM")


class WalletClient:
    """
    Client for the wallet service.

    Every operation takes a header mapping as its first argument. Set
    'BC-Invoke-Mode: sync' there (see sync_header()) to block until the
    blockchain transaction is confirmed; the default is asynchronous and
    returns as soon as the service accepts the request.

    Operations that carry a signature come in two flavours sharing one body
    type: the plain method takes a SignatureBody produced by an external
    signing tool, the *_sign method takes a SignatureParam with the private
    key and signs inside the SDK.

    Example:
        >>> client = WalletClient("http://localhost:9143")
        >>> resp = client.register(None, RegisterWalletBody(
        ...     type=INDEPENDENT, access="alice", secret="pw"))
        >>> info = client.get_wallet_info(None, resp.id)
    """

    def __init__(
        self,
        base_url: str = DEFAULT_ADDRESS,
        timeout: float = 30,
        sync_timeout: float = 120,
        api_key: str = '',
        verify_tls: bool = True,
    ):
        """
        Initialize wallet client.

        Args:
            base_url: Wallet service URL
            timeout: Request timeout in seconds for asynchronous calls
            sync_timeout: Request timeout in seconds when 'BC-Invoke-Mode' is sync
            api_key: Value of the API-Key header, if the service requires one
            verify_tls: Verify server certificates
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.sync_timeout = sync_timeout
        self.session = requests.Session()
        self.session.verify = verify_tls
        self.session.headers.update({
            'Content-Type': 'application/json',
        })
        if api_key:
            self.session.headers[API_KEY_HEADER] = api_key

    @classmethod
    def from_config(cls, config: ClientConfig) -> 'WalletClient':
        """Build a client from a loaded ClientConfig"""
        return cls(
            base_url=config.address,
            timeout=config.timeout,
            sync_timeout=config.sync_timeout,
            api_key=config.api_key,
            verify_tls=config.verify_tls,
        )

    @staticmethod
    def sync_header() -> Dict[str, str]:
        """Header selecting synchronous invoking mode"""
        return {INVOKE_MODE_HEADER: INVOKE_MODE_SYNC}

    @staticmethod
    def async_header() -> Dict[str, str]:
        """Header selecting asynchronous invoking mode (the default)"""
        return {INVOKE_MODE_HEADER: INVOKE_MODE_ASYNC}

    # Transport

    def _prepare(self, header: Header) -> Tuple[CaseInsensitiveDict, float, str]:
        headers = CaseInsensitiveDict(header or {})
        mode = (headers.get(INVOKE_MODE_HEADER) or INVOKE_MODE_ASYNC).lower()
        if mode not in (INVOKE_MODE_SYNC, INVOKE_MODE_ASYNC):
            raise InvalidInputError(f"invalid {INVOKE_MODE_HEADER} header value {mode!r}")
        timeout = self.sync_timeout if mode == INVOKE_MODE_SYNC else self.timeout
        return headers, timeout, mode

    def _request(
        self,
        method: str,
        endpoint: str,
        header: Header,
        **kwargs: Any,
    ) -> Any:
        headers, timeout, mode = self._prepare(header)
        if 'files' in kwargs:
            # let requests set the multipart boundary
            headers['Content-Type'] = None
        logger.debug("%s %s (invoke mode: %s)", method, endpoint, mode)
        try:
            response = self.session.request(
                method,
                f"{self.base_url}{endpoint}",
                headers=headers,
                timeout=timeout,
                **kwargs
            )
        except requests.Timeout as exc:
            raise WalletTimeoutError(
                f"{method} {endpoint} timed out after {timeout}s; "
                "the outcome is unknown, poll the query APIs"
            ) from exc
        except requests.RequestException as exc:
            raise TransportError(f"{method} {endpoint} failed: {exc}") from exc
        return self._decode(method, endpoint, response)

    def _decode(self, method: str, endpoint: str, response: requests.Response) -> Any:
        try:
            data = response.json()
        except ValueError:
            data = None

        if response.status_code >= 400:
            code, message = response.status_code, response.reason or ''
            if isinstance(data, dict):
                code = data.get('code') or code
                message = data.get('message') or message
            raise self._error(method, endpoint, code, message, response.status_code)

        if data is None:
            raise ServiceError(
                f"{method} {endpoint} returned a body that is not JSON",
                status=response.status_code,
            )
        if not isinstance(data, dict):
            raise ServiceError(
                f"{method} {endpoint} returned a JSON {type(data).__name__}, expected an object",
                status=response.status_code,
            )
        if data.get('code') not in (None,) + SUCCESS_CODES:
            raise self._error(method, endpoint, data['code'], data.get('message', ''), response.status_code)
        return data

    @staticmethod
    def _error(method: str, endpoint: str, code: int, message: str, status: int) -> WalletError:
        logger.warning("%s %s failed with code %s: %s", method, endpoint, code, message)
        return error_from_code(code, message, status)

    def _get(self, endpoint: str, header: Header, params: Dict[str, str]) -> Any:
        """Make GET request"""
        return self._request('GET', endpoint, header, params=params)

    def _post(self, endpoint: str, header: Header, data: Dict[str, Any]) -> Any:
        """Make POST request"""
        return self._request('POST', endpoint, header, json=data)

    def _signed_call(
        self,
        method: str,
        endpoint: str,
        header: Header,
        body: Dict[str, Any],
        strategy: SigningStrategy,
    ) -> WalletResponse:
        payload = canonical_payload(body)
        if isinstance(strategy, PrecomputedSignature):
            _require(strategy.signature, 'signature')
            signature = strategy.signature
        elif isinstance(strategy, KeyMaterial):
            _require(strategy.param, 'signature param')
            _require(strategy.param.private_key, 'private key')
            signature = WalletCrypto.sign_payload(payload, strategy.param)
        else:
            raise TypeError(f"unsupported signing strategy {type(strategy).__name__}")
        request = WalletRequest(payload=payload, signature=signature)
        data = self._request(method, endpoint, header, json=request.to_dict())
        return WalletResponse.from_dict(data)

    # Wallet

    def register(self, header: Header, body: RegisterWalletBody) -> WalletResponse:
        """
        Register a user wallet.

        If body.id is empty the service assigns one. If body.public_key is
        empty the service generates a keypair and returns it once in
        key_pair; keep the private key safe, it cannot be fetched again.

        Returns:
            WalletResponse with the wallet id and endpoint
        """
        if body.type not in WALLET_TYPES:
            raise InvalidInputError(f"invalid wallet type {body.type!r}")
        _require(body.access, 'access')
        _require(body.secret, 'secret')
        data = self._post('/v1/wallet/register', header, body.to_dict())
        return WalletResponse.from_dict(data)

    def register_sub_wallet(self, header: Header, body: RegisterSubWalletBody) -> WalletResponse:
        """
        Register a sub-wallet (cash, fee, loan or interest) under body.id.

        Returns:
            WalletResponse with the sub-wallet id
        """
        _require(body.id, 'parent wallet id')
        if body.type not in SUB_WALLET_TYPES:
            raise InvalidInputError(f"invalid sub-wallet type {body.type!r}")
        data = self._post('/v1/wallet/register/subwallet', header, body.to_dict())
        return WalletResponse.from_dict(data)

    def get_wallet_balance(self, header: Header, wallet_id: Identifier) -> WalletBalance:
        """
        Get colored token and digital asset balances of a wallet.

        Raises:
            NotFoundError: unknown wallet id
        """
        _require(wallet_id, 'wallet id')
        data = self._get('/v1/wallet/balance', header, {'id': wallet_id})
        return WalletBalance.from_dict(data)

    def get_wallet_info(self, header: Header, wallet_id: Identifier) -> WalletInfo:
        """
        Get wallet base information including its sub-wallets.

        Raises:
            NotFoundError: unknown wallet id
        """
        _require(wallet_id, 'wallet id')
        data = self._get('/v1/wallet/info', header, {'id': wallet_id})
        return WalletInfo.from_dict(data)

    # POE

    def _poe(self, method: str, endpoint: str, header: Header, body: POEBody,
             strategy: SigningStrategy) -> WalletResponse:
        _require(body.name, 'POE name')
        _require(body.owner, 'POE owner')
        return self._signed_call(method, endpoint, header, body.to_dict(), strategy)

    def create_poe(self, header: Header, body: POEBody, signature: SignatureBody) -> WalletResponse:
        """
        Create a POE digital asset, signed by the caller.

        The hash and metadata are anchored as given; the SDK does not
        recompute them.
        """
        return self._poe('POST', '/v1/poe/create', header, body, PrecomputedSignature(signature))

    def create_poe_sign(self, header: Header, body: POEBody, param: SignatureParam) -> WalletResponse:
        """Create a POE digital asset, signed by the SDK with param.private_key"""
        return self._poe('POST', '/v1/poe/create', header, body, KeyMaterial(param))

    def update_poe(self, header: Header, body: POEBody, signature: SignatureBody) -> WalletResponse:
        """
        Update an existing POE digital asset, signed by the caller.

        Raises:
            NotFoundError: no POE with body.id
        """
        _require(body.id, 'POE id')
        return self._poe('PUT', '/v1/poe/update', header, body, PrecomputedSignature(signature))

    def update_poe_sign(self, header: Header, body: POEBody, param: SignatureParam) -> WalletResponse:
        """Update an existing POE digital asset, signed by the SDK"""
        _require(body.id, 'POE id')
        return self._poe('PUT', '/v1/poe/update', header, body, KeyMaterial(param))

    def query_poe(self, header: Header, poe_id: Identifier) -> POEPayload:
        """
        Query a POE digital asset.

        Raises:
            NotFoundError: unknown POE id
        """
        _require(poe_id, 'POE id')
        data = self._get('/v1/poe', header, {'id': poe_id})
        return POEPayload.from_dict(data)

    def upload_poe_file(
        self,
        header: Header,
        poe_id: Identifier,
        poe_file: Union[str, Path],
        signature: Optional[SignatureBody] = None,
    ) -> WalletResponse:
        """
        Upload a file for a POE created beforehand with create_poe.

        Args:
            header: Request headers
            poe_id: Id of the existing POE
            poe_file: Path to the file to upload
            signature: Optional detached signature sent as form fields

        Raises:
            InvalidInputError: poe_file does not exist
            NotFoundError: unknown POE id
        """
        _require(poe_id, 'POE id')
        path = Path(poe_file)
        if not path.is_file():
            raise InvalidInputError(f"POE file not found: {path}")

        form = {OFFCHAIN_POE_ID: poe_id}
        if signature is not None:
            form.update({
                SIGNATURE_CREATOR: signature.creator,
                SIGNATURE_CREATED: str(signature.created),
                SIGNATURE_NONCE: signature.nonce,
                SIGNATURE_SIGNATURE_VALUE: signature.signature_value,
            })
        with open(path, 'rb') as fh:
            data = self._request(
                'POST', '/v1/poe/upload', header,
                data=form,
                files={OFFCHAIN_POE_FILE: (path.name, fh)},
            )
        return WalletResponse.from_dict(data)

    # Colored tokens and assets

    def _issue_ctoken(self, header: Header, body: IssueBody, strategy: SigningStrategy) -> WalletResponse:
        _require(body.issuer, 'issuer')
        _require(body.owner, 'owner')
        if body.amount <= 0:
            raise InvalidInputError("issue amount must be positive")
        _check_fee(body.fee)
        return self._signed_call('POST', '/v1/transaction/tokens/issue', header, body.to_dict(), strategy)

    def issue_ctoken(self, header: Header, body: IssueBody, signature: SignatureBody) -> WalletResponse:
        """
        Issue colored tokens, signed by the caller.

        Returns:
            WalletResponse whose token_id is the new colored token
        """
        return self._issue_ctoken(header, body, PrecomputedSignature(signature))

    def issue_ctoken_sign(self, header: Header, body: IssueBody, param: SignatureParam) -> WalletResponse:
        """Issue colored tokens, signed by the SDK"""
        return self._issue_ctoken(header, body, KeyMaterial(param))

    def _issue_asset(self, header: Header, body: IssueAssetBody, strategy: SigningStrategy) -> WalletResponse:
        _require(body.issuer, 'issuer')
        _require(body.owner, 'owner')
        _require(body.asset_id, 'asset id')
        _check_fee(body.fee)
        return self._signed_call('POST', '/v1/transaction/assets/issue', header, body.to_dict(), strategy)

    def issue_asset(self, header: Header, body: IssueAssetBody, signature: SignatureBody) -> WalletResponse:
        """Issue a digital asset, signed by the caller"""
        return self._issue_asset(header, body, PrecomputedSignature(signature))

    def issue_asset_sign(self, header: Header, body: IssueAssetBody, param: SignatureParam) -> WalletResponse:
        """Issue a digital asset, signed by the SDK"""
        return self._issue_asset(header, body, KeyMaterial(param))

    def _transfer_ctoken(self, header: Header, body: TransferCTokenBody,
                         strategy: SigningStrategy) -> WalletResponse:
        _require(body.from_address, 'from')
        _require(body.to_address, 'to')
        _require(body.tokens, 'tokens')
        for token in body.tokens:
            _require(token.token_id, 'token id')
            if token.amount <= 0:
                raise InvalidInputError(f"amount of token {token.token_id} must be positive")
        _check_fee(body.fee)
        return self._signed_call('POST', '/v1/transaction/tokens/transfer', header, body.to_dict(), strategy)

    def transfer_ctoken(self, header: Header, body: TransferCTokenBody,
                        signature: SignatureBody) -> WalletResponse:
        """
        Transfer colored tokens from one wallet to another, signed by the caller.

        The balance check happens on the ledger.

        Raises:
            InsufficientFundsError: sender lacks enough unspent tokens
        """
        return self._transfer_ctoken(header, body, PrecomputedSignature(signature))

    def transfer_ctoken_sign(self, header: Header, body: TransferCTokenBody,
                             param: SignatureParam) -> WalletResponse:
        """Transfer colored tokens, signed by the SDK"""
        return self._transfer_ctoken(header, body, KeyMaterial(param))

    def _transfer_asset(self, header: Header, body: TransferAssetBody,
                        strategy: SigningStrategy) -> WalletResponse:
        _require(body.from_address, 'from')
        _require(body.to_address, 'to')
        _require(body.assets, 'assets')
        _check_fee(body.fee)
        return self._signed_call('POST', '/v1/transaction/assets/transfer', header, body.to_dict(), strategy)

    def transfer_asset(self, header: Header, body: TransferAssetBody,
                       signature: SignatureBody) -> WalletResponse:
        """Transfer digital assets from one wallet to another, signed by the caller"""
        return self._transfer_asset(header, body, PrecomputedSignature(signature))

    def transfer_asset_sign(self, header: Header, body: TransferAssetBody,
                            param: SignatureParam) -> WalletResponse:
        """Transfer digital assets, signed by the SDK"""
        return self._transfer_asset(header, body, KeyMaterial(param))

    # Transaction logs

    def query_transaction_logs(self, header: Header, wallet_id: Identifier,
                               direction: str) -> TransactionLogs:
        """
        Query transaction logs of a wallet.

        Args:
            header: Request headers
            wallet_id: Wallet id
            direction: 'in' for income, 'out' for spending

        Returns:
            dict of endpoint -> TransactionLog
        """
        Utils.validate_direction(direction)
        _require(wallet_id, 'wallet id')
        data = self._get('/v1/transaction/logs', header, {'id': wallet_id, 'type': direction})
        logs = {}
        for endpoint, log in data.items():
            if not isinstance(log, dict):
                raise ServiceError(f"transaction log for endpoint {endpoint!r} is not an object")
            logs[endpoint] = TransactionLog.from_dict(log)
        return logs

    def close(self):
        """Close the session"""
        self.session.close()

    def __enter__(self):
        """Context manager entry"""
        return self

    def __exit__(self, *args):
        """Context manager exit"""
        self.close()
