"""
Data models for the Arxan wallet SDK
"""

import base64
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

Identifier = str

# Wallet types
ORGANIZATION = "Organization"
DEPENDENT = "Dependent"
INDEPENDENT = "Independent"
ASSET = "Asset"
WALLET_TYPES = (ORGANIZATION, DEPENDENT, INDEPENDENT, ASSET)

# Sub-wallet types
CASH = "cash"
FEE = "fee"
LOAN = "loan"
INTEREST = "interest"
SUB_WALLET_TYPES = (CASH, FEE, LOAN, INTEREST)

# DID status
STATUS_NONE = 0
STATUS_VALID = 1
STATUS_INVALID = 2

# AXT fixed-point units
ATOM = 1
MICRO_AXT = 1000 * ATOM
AXT = 1000 * MICRO_AXT


def _encode_bytes(value: Optional[bytes]) -> Optional[str]:
    if value is None:
        return None
    return base64.b64encode(value).decode('ascii')


def _decode_bytes(value: Optional[str]) -> bytes:
    if not value:
        return b''
    return base64.b64decode(value)


@dataclass
class KeyPair:
    """Base64 encoded Ed25519 keypair"""
    public_key: str
    private_key: str = field(default='', repr=False)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional['KeyPair']:
        if not data:
            return None
        return cls(
            public_key=data.get('public_key', ''),
            private_key=data.get('private_key', ''),
        )


@dataclass
class RegisterWalletBody:
    """Register wallet request"""
    type: str
    access: str
    secret: str = field(repr=False)
    id: Identifier = ''
    phone: str = ''
    email: str = ''
    meta_data: Any = None
    public_key: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'type': self.type,
            'access': self.access,
            'phone': self.phone,
            'email': self.email,
            'secret': self.secret,
            'meta_data': self.meta_data,
            'public_key': self.public_key,
        }


@dataclass
class RegisterSubWalletBody:
    """Register sub-wallet request; id is the parent wallet"""
    id: Identifier
    type: str
    public_key: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'type': self.type,
            'public_key': self.public_key,
        }


@dataclass
class SignatureBody:
    """Detached signature computed outside the SDK"""
    creator: Identifier
    created: int
    nonce: str
    signature_value: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'creator': self.creator,
            'created': self.created,
            'nonce': self.nonce,
            'signatureValue': self.signature_value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SignatureBody':
        return cls(
            creator=data.get('creator', ''),
            created=data.get('created', 0),
            nonce=data.get('nonce', ''),
            signature_value=data.get('signatureValue', ''),
        )


@dataclass
class SignatureParam:
    """Key material handed to the SDK so it can sign the payload itself"""
    creator: Identifier
    created: int
    nonce: str
    private_key: str = field(repr=False)


@dataclass
class WalletRequest:
    """Signed request envelope: JSON payload string plus its signature"""
    payload: str
    signature: SignatureBody

    def to_dict(self) -> Dict[str, Any]:
        return {
            'payload': self.payload,
            'signature': self.signature.to_dict(),
        }


@dataclass
class WalletResponse:
    """Common envelope returned by every mutating wallet API"""
    code: int
    message: str = ''
    id: Identifier = ''
    endpoint: str = ''
    key_pair: Optional[KeyPair] = None
    created: int = 0
    token_id: str = ''
    transaction_ids: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'WalletResponse':
        return cls(
            code=data.get('code', 0),
            message=data.get('message') or '',
            id=data.get('id') or '',
            endpoint=data.get('endpoint') or '',
            key_pair=KeyPair.from_dict(data.get('key_pair')),
            created=data.get('created') or 0,
            token_id=data.get('token_id') or '',
            transaction_ids=list(data.get('transaction_ids') or []),
        )


@dataclass
class CTokenBalance:
    """Colored token balance"""
    id: str
    amount: int


@dataclass
class AssetBalance:
    """Digital asset balance"""
    id: str
    amount: int
    name: str = ''
    status: int = STATUS_NONE


@dataclass
class WalletBalance:
    """All colored tokens and digital assets held by a wallet"""
    colored_tokens: Dict[str, CTokenBalance] = field(default_factory=dict)
    digital_assets: Dict[str, AssetBalance] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'WalletBalance':
        tokens = data.get('colored_tokens') or {}
        assets = data.get('digital_assets') or {}
        return cls(
            colored_tokens={
                k: CTokenBalance(id=v.get('id', k), amount=v.get('amount', 0))
                for k, v in tokens.items()
            },
            digital_assets={
                k: AssetBalance(
                    id=v.get('id', k),
                    amount=v.get('amount', 0),
                    name=v.get('name') or '',
                    status=v.get('status', STATUS_NONE),
                )
                for k, v in assets.items()
            },
        )


@dataclass
class WalletInfo:
    """Wallet base information with its sub-wallets (one level deep)"""
    id: Identifier
    type: str
    endpoint: str = ''
    status: int = STATUS_NONE
    created: int = 0
    updated: int = 0
    hds: Dict[Identifier, 'WalletInfo'] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], nested: bool = True) -> 'WalletInfo':
        hds = {}
        if nested:
            hds = {
                k: cls.from_dict(v, nested=False)
                for k, v in (data.get('hds') or {}).items()
            }
        return cls(
            id=data.get('id', ''),
            type=data.get('type', ''),
            endpoint=data.get('endpoint') or '',
            status=data.get('status', STATUS_NONE),
            created=data.get('created') or 0,
            updated=data.get('updated') or 0,
            hds=hds,
        )


@dataclass
class POEBody:
    """POE create/update request"""
    name: str
    owner: Identifier
    hash: str = ''
    id: Identifier = ''
    parent_id: Identifier = ''
    expire_time: int = 0
    metadata: bytes = b''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'parent_id': self.parent_id,
            'owner': self.owner,
            'expire_time': self.expire_time,
            'hash': self.hash,
            'metadata': _encode_bytes(self.metadata),
        }


@dataclass
class POEPayload:
    """POE record as returned by a query"""
    id: Identifier
    name: str
    owner: Identifier
    parent_id: Identifier = ''
    expire_time: int = 0
    hash: str = ''
    metadata: bytes = b''
    created: int = 0
    updated: int = 0
    status: int = STATUS_NONE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'POEPayload':
        return cls(
            id=data.get('id', ''),
            name=data.get('name', ''),
            owner=data.get('owner', ''),
            parent_id=data.get('parent_id') or '',
            expire_time=data.get('expire_time') or 0,
            hash=data.get('hash') or '',
            metadata=_decode_bytes(data.get('metadata')),
            created=data.get('created') or 0,
            updated=data.get('updated') or 0,
            status=data.get('status', STATUS_NONE),
        )

    def offchain_metadata(self) -> Optional['OffchainMetadata']:
        """
        Descriptor of the file uploaded for this POE, if any.

        The service records it under the 'offchain_metadata' key of the
        JSON metadata once upload_poe_file succeeds.
        """
        if not self.metadata:
            return None
        try:
            meta = json.loads(self.metadata.decode('utf-8'))
        except ValueError:
            return None
        if not isinstance(meta, dict) or not meta.get('offchain_metadata'):
            return None
        return OffchainMetadata.from_dict(meta['offchain_metadata'])


@dataclass
class OffchainMetadata:
    """Off-chain storage descriptor of a file uploaded for a POE"""
    filename: str
    endpoint: str
    storage_type: str
    content_hash: str
    size: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OffchainMetadata':
        return cls(
            filename=data.get('filename', ''),
            endpoint=data.get('endpoint', ''),
            storage_type=data.get('storageType', ''),
            content_hash=data.get('contentHash', ''),
            size=data.get('size', 0),
        )


@dataclass
class Timestamp:
    seconds: int = 0
    nanos: int = 0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional['Timestamp']:
        if not data:
            return None
        return cls(seconds=data.get('seconds', 0), nanos=data.get('nanos', 0))


@dataclass
class UTXO:
    """Unspent transaction output"""
    source_tx_data_hash: str
    ix: int = 0
    ctoken_id: str = ''
    ctype: int = 0
    value: int = 0
    addr: str = ''
    until: int = 0
    script: bytes = b''
    created_at: Optional[Timestamp] = None
    founder: str = ''
    tx_type: int = 0
    bc_tx_id: str = ''

    @staticmethod
    def _fields(data: Dict[str, Any]) -> Dict[str, Any]:
        return {
            'source_tx_data_hash': data.get('sourceTxDataHash', ''),
            'ix': data.get('ix', 0),
            'ctoken_id': data.get('cTokenId', ''),
            'ctype': data.get('cType', 0),
            'value': data.get('value', 0),
            'addr': data.get('addr', ''),
            'until': data.get('until', 0),
            'script': _decode_bytes(data.get('script')),
            'created_at': Timestamp.from_dict(data.get('createdAt')),
            'founder': data.get('founder', ''),
            'tx_type': data.get('txType', 0),
            'bc_tx_id': data.get('bcTxID', ''),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'UTXO':
        return cls(**UTXO._fields(data))


@dataclass
class SpentTxOUT(UTXO):
    """Transaction output that has been consumed by a later transaction"""
    spent_tx_data_hash: str = ''
    spent_at: Optional[Timestamp] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SpentTxOUT':
        return cls(
            spent_tx_data_hash=data.get('spentTxDataHash', ''),
            spent_at=Timestamp.from_dict(data.get('spentAt')),
            **UTXO._fields(data),
        )


@dataclass
class TransactionLog:
    """Transaction outputs recorded at one endpoint"""
    utxo: List[UTXO] = field(default_factory=list)
    stxo: List[SpentTxOUT] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'TransactionLog':
        data = data or {}
        return cls(
            utxo=[UTXO.from_dict(u) for u in data.get('utxo') or []],
            stxo=[SpentTxOUT.from_dict(s) for s in data.get('stxo') or []],
        )


# Keyed by endpoint
TransactionLogs = Dict[str, TransactionLog]


@dataclass
class TokenAmount:
    token_id: str
    amount: int

    def to_dict(self) -> Dict[str, Any]:
        return {'token_id': self.token_id, 'amount': self.amount}


@dataclass
class Fee:
    """Transaction fee in ATOM"""
    amount: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {'amount': self.amount}


def _fee_dict(fee: Optional[Fee]) -> Optional[Dict[str, Any]]:
    return fee.to_dict() if fee is not None else None


@dataclass
class IssueBody:
    """Issue colored token request"""
    issuer: Identifier
    owner: Identifier
    asset_id: str
    amount: int
    fee: Optional[Fee] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'issuer': self.issuer,
            'owner': self.owner,
            'asset_id': self.asset_id,
            'amount': self.amount,
            'fee': _fee_dict(self.fee),
        }


@dataclass
class IssueAssetBody:
    """Issue digital asset request"""
    issuer: Identifier
    owner: Identifier
    asset_id: str
    fee: Optional[Fee] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'issuer': self.issuer,
            'owner': self.owner,
            'asset_id': self.asset_id,
            'fee': _fee_dict(self.fee),
        }


@dataclass
class TransferCTokenBody:
    """Transfer colored tokens request"""
    from_address: Identifier
    to_address: Identifier
    tokens: List[TokenAmount]
    asset_id: str = ''
    fee: Optional[Fee] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'from': self.from_address,
            'to': self.to_address,
            'asset_id': self.asset_id,
            'tokens': [t.to_dict() for t in self.tokens],
            'fee': _fee_dict(self.fee),
        }


@dataclass
class TransferAssetBody:
    """Transfer digital assets request"""
    from_address: Identifier
    to_address: Identifier
    assets: List[str]
    fee: Optional[Fee] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'from': self.from_address,
            'to': self.to_address,
            'assets': list(self.assets),
            'fee': _fee_dict(self.fee),
        }

