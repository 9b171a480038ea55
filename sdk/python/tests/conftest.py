"""Shared fixtures and an in-memory wallet service the client talks to."""
from __future__ import annotations

import base64
import hashlib
import itertools
import json
import uuid
from typing import Any
from unittest.mock import patch
from urllib.parse import urlparse

import pytest

from arxan_wallet_sdk import (
    INDEPENDENT,
    RegisterWalletBody,
    SignatureParam,
    WalletClient,
    WalletCrypto,
)
from arxan_wallet_sdk.models import STATUS_VALID, SignatureBody

LEDGER_ENDPOINT = "ledger://fake-node"


class FakeResponse:
    """Stand-in for requests.Response with just what the client reads."""

    def __init__(self, status_code: int = 200, payload: Any = None, text: str | None = None) -> None:
        self.status_code = status_code
        self.reason = "OK" if status_code < 400 else "Error"
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


def _envelope(code: int = 200, **fields: Any) -> dict:
    body = {
        "code": code,
        "message": "",
        "id": "",
        "endpoint": "",
        "key_pair": None,
        "created": 0,
        "token_id": "",
        "transaction_ids": [],
    }
    body.update(fields)
    return body


def _error(code: int, message: str, status: int | None = None) -> FakeResponse:
    return FakeResponse(status or code, {"code": code, "message": message})


class FakeWalletService:
    """Minimal wallet service with UTXO accounting and signature checks."""

    def __init__(self) -> None:
        self.wallets: dict[str, dict] = {}
        self.poes: dict[str, dict] = {}
        self.assets: dict[str, str] = {}
        self.utxos: list[dict] = []
        self.stxos: list[dict] = []
        self.calls: list[dict] = []
        self._clock = itertools.count(1_700_000_000)
        self._seq = itertools.count(1)
        self.routes = {
            ("POST", "/v1/wallet/register"): self._register,
            ("POST", "/v1/wallet/register/subwallet"): self._register_sub_wallet,
            ("GET", "/v1/wallet/balance"): self._balance,
            ("GET", "/v1/wallet/info"): self._info,
            ("POST", "/v1/poe/create"): self._create_poe,
            ("PUT", "/v1/poe/update"): self._update_poe,
            ("GET", "/v1/poe"): self._query_poe,
            ("POST", "/v1/poe/upload"): self._upload_poe,
            ("POST", "/v1/transaction/tokens/issue"): self._issue_ctoken,
            ("POST", "/v1/transaction/assets/issue"): self._issue_asset,
            ("POST", "/v1/transaction/tokens/transfer"): self._transfer_ctoken,
            ("POST", "/v1/transaction/assets/transfer"): self._transfer_asset,
            ("GET", "/v1/transaction/logs"): self._logs,
        }

    # plumbing

    def handle(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        path = urlparse(url).path
        self.calls.append({"method": method, "path": path, **kwargs})
        route = self.routes.get((method, path))
        if route is None:
            return _error(404, f"no route for {method} {path}")
        return route(
            params=kwargs.get("params") or {},
            body=kwargs.get("json"),
            data=kwargs.get("data"),
            files=kwargs.get("files"),
        )

    def _tick(self) -> int:
        return next(self._clock)

    def _tx_hash(self) -> str:
        return hashlib.sha256(f"tx-{next(self._seq)}".encode()).hexdigest()

    def _open_signed(self, body: dict) -> tuple[dict | None, FakeResponse | None]:
        sig = body["signature"]
        wallet = self.wallets.get(sig["creator"])
        if wallet is None or not WalletCrypto.verify_payload(
            body["payload"], SignatureBody.from_dict(sig), wallet["public_key"]
        ):
            return None, _error(401, "signature verification failed")
        return json.loads(body["payload"]), None

    def _new_keys(self, public_key: str | None) -> tuple[str, dict | None]:
        if public_key:
            return public_key, None
        keys = WalletCrypto.generate_keypair()
        return keys.public_key, {"public_key": keys.public_key, "private_key": keys.private_key}

    # wallets

    def _register(self, body: dict, **_: Any) -> FakeResponse:
        wallet_id = body.get("id") or f"did:axn:{uuid.uuid4()}"
        if wallet_id in self.wallets:
            return _error(409, "wallet already exists")
        public_key, key_pair = self._new_keys(body.get("public_key"))
        now = self._tick()
        self.wallets[wallet_id] = {
            "id": wallet_id,
            "type": body["type"],
            "endpoint": LEDGER_ENDPOINT,
            "status": STATUS_VALID,
            "created": now,
            "updated": now,
            "public_key": public_key,
            "secret": body["secret"],
            "hds": [],
        }
        return FakeResponse(200, _envelope(
            id=wallet_id, endpoint=LEDGER_ENDPOINT, key_pair=key_pair, created=now,
        ))

    def _register_sub_wallet(self, body: dict, **_: Any) -> FakeResponse:
        parent = self.wallets.get(body["id"])
        if parent is None:
            return _error(404, "parent wallet not found")
        sub_id = f"{parent['id']}#{body['type']}"
        public_key, key_pair = self._new_keys(body.get("public_key"))
        now = self._tick()
        self.wallets[sub_id] = {
            "id": sub_id,
            "type": body["type"],
            "endpoint": LEDGER_ENDPOINT,
            "status": STATUS_VALID,
            "created": now,
            "updated": now,
            "public_key": public_key,
            "hds": [],
        }
        parent["hds"].append(sub_id)
        return FakeResponse(200, _envelope(
            id=sub_id, endpoint=LEDGER_ENDPOINT, key_pair=key_pair, created=now,
        ))

    def _wallet_view(self, wallet: dict) -> dict:
        view = {k: wallet[k] for k in ("id", "type", "endpoint", "status", "created", "updated")}
        view["hds"] = {sub: self._wallet_view(self.wallets[sub]) for sub in wallet["hds"]}
        return view

    def _info(self, params: dict, **_: Any) -> FakeResponse:
        wallet = self.wallets.get(params.get("id"))
        if wallet is None:
            return _error(404, "wallet not found")
        return FakeResponse(200, self._wallet_view(wallet))

    def _balance(self, params: dict, **_: Any) -> FakeResponse:
        wallet_id = params.get("id")
        if wallet_id not in self.wallets:
            return _error(404, "wallet not found")
        tokens: dict[str, int] = {}
        for u in self.utxos:
            if u["addr"] == wallet_id:
                tokens[u["cTokenId"]] = tokens.get(u["cTokenId"], 0) + u["value"]
        assets = [a for a, owner in self.assets.items() if owner == wallet_id]
        return FakeResponse(200, {
            "colored_tokens": {t: {"id": t, "amount": amt} for t, amt in tokens.items()},
            "digital_assets": {
                a: {"id": a, "amount": 1, "name": a, "status": STATUS_VALID} for a in assets
            },
        })

    # POE

    def _create_poe(self, body: dict, **_: Any) -> FakeResponse:
        payload, err = self._open_signed(body)
        if err:
            return err
        poe_id = payload.get("id") or f"did:axn:poe-{next(self._seq)}"
        if poe_id in self.poes:
            return _error(409, "POE already exists")
        now = self._tick()
        self.poes[poe_id] = dict(payload, id=poe_id, created=now, updated=now, status=STATUS_VALID)
        return FakeResponse(200, _envelope(id=poe_id, endpoint=LEDGER_ENDPOINT, created=now))

    def _update_poe(self, body: dict, **_: Any) -> FakeResponse:
        payload, err = self._open_signed(body)
        if err:
            return err
        record = self.poes.get(payload["id"])
        if record is None:
            return _error(404, "POE not found")
        for key in ("name", "parent_id", "owner", "expire_time", "hash", "metadata"):
            record[key] = payload[key]
        record["updated"] = self._tick()
        return FakeResponse(200, _envelope(id=record["id"], endpoint=LEDGER_ENDPOINT))

    def _query_poe(self, params: dict, **_: Any) -> FakeResponse:
        record = self.poes.get(params.get("id"))
        if record is None:
            return _error(404, "POE not found")
        return FakeResponse(200, dict(record))

    def _upload_poe(self, data: dict, files: dict, **_: Any) -> FakeResponse:
        record = self.poes.get(data.get("poe_id"))
        if record is None:
            return _error(404, "POE not found")
        filename, fh = files["poe_file"]
        content = fh.read()
        meta = {
            "offchain_metadata": {
                "filename": filename,
                "endpoint": f"ipfs://{hashlib.sha256(content).hexdigest()[:16]}",
                "storageType": "IPFS",
                "contentHash": hashlib.sha256(content).hexdigest(),
                "size": len(content),
            }
        }
        record["metadata"] = base64.b64encode(json.dumps(meta).encode()).decode()
        record["updated"] = self._tick()
        return FakeResponse(200, _envelope(id=record["id"], endpoint=LEDGER_ENDPOINT))

    # tokens and assets

    def _utxo(self, tx: str, ix: int, token_id: str, value: int, addr: str, founder: str, tx_type: int) -> dict:
        return {
            "sourceTxDataHash": tx,
            "ix": ix,
            "cTokenId": token_id,
            "cType": 0,
            "value": value,
            "addr": addr,
            "until": -1,
            "createdAt": {"seconds": self._tick(), "nanos": 0},
            "founder": founder,
            "txType": tx_type,
            "bcTxID": f"bc-{tx[:12]}",
        }

    def _issue_ctoken(self, body: dict, **_: Any) -> FakeResponse:
        payload, err = self._open_signed(body)
        if err:
            return err
        if payload["owner"] not in self.wallets:
            return _error(404, "owner wallet not found")
        token_id = f"ctoken-{next(self._seq)}"
        tx = self._tx_hash()
        self.utxos.append(
            self._utxo(tx, 0, token_id, payload["amount"], payload["owner"], payload["issuer"], 1)
        )
        return FakeResponse(200, _envelope(token_id=token_id, transaction_ids=[tx]))

    def _issue_asset(self, body: dict, **_: Any) -> FakeResponse:
        payload, err = self._open_signed(body)
        if err:
            return err
        if payload["owner"] not in self.wallets:
            return _error(404, "owner wallet not found")
        if payload["asset_id"] in self.assets:
            return _error(409, "asset already issued")
        self.assets[payload["asset_id"]] = payload["owner"]
        return FakeResponse(200, _envelope(id=payload["asset_id"], transaction_ids=[self._tx_hash()]))

    def _transfer_ctoken(self, body: dict, **_: Any) -> FakeResponse:
        payload, err = self._open_signed(body)
        if err:
            return err
        sender, receiver = payload["from"], payload["to"]
        if receiver not in self.wallets:
            return _error(404, "receiver wallet not found")
        requested: dict[str, int] = {}
        for token in payload["tokens"]:
            requested[token["token_id"]] = requested.get(token["token_id"], 0) + token["amount"]
        for token_id, amount in requested.items():
            available = sum(
                u["value"] for u in self.utxos
                if u["addr"] == sender and u["cTokenId"] == token_id
            )
            if available < amount:
                # ledger reports business errors inside a 200 envelope
                return FakeResponse(200, _envelope(8003, message="insufficient balance"))

        tx = self._tx_hash()
        ix = itertools.count()
        for token in payload["tokens"]:
            covered = 0
            for u in [u for u in self.utxos if u["addr"] == sender and u["cTokenId"] == token["token_id"]]:
                if covered >= token["amount"]:
                    break
                self.utxos.remove(u)
                self.stxos.append(dict(u, spentTxDataHash=tx, spentAt={"seconds": self._tick(), "nanos": 0}))
                covered += u["value"]
            self.utxos.append(self._utxo(tx, next(ix), token["token_id"], token["amount"], receiver, sender, 2))
            if covered > token["amount"]:
                self.utxos.append(
                    self._utxo(tx, next(ix), token["token_id"], covered - token["amount"], sender, sender, 2)
                )
        return FakeResponse(200, _envelope(transaction_ids=[tx]))

    def _transfer_asset(self, body: dict, **_: Any) -> FakeResponse:
        payload, err = self._open_signed(body)
        if err:
            return err
        for asset in payload["assets"]:
            if self.assets.get(asset) != payload["from"]:
                return _error(402, f"asset {asset} is not owned by sender")
        for asset in payload["assets"]:
            self.assets[asset] = payload["to"]
        return FakeResponse(200, _envelope(transaction_ids=[self._tx_hash()]))

    def _logs(self, params: dict, **_: Any) -> FakeResponse:
        wallet_id, direction = params.get("id"), params.get("type")
        if wallet_id not in self.wallets:
            return _error(404, "wallet not found")
        if direction == "in":
            log = {"utxo": [u for u in self.utxos if u["addr"] == wallet_id], "stxo": []}
        elif direction == "out":
            log = {"utxo": [], "stxo": [s for s in self.stxos if s["addr"] == wallet_id]}
        else:
            return _error(400, "invalid transaction type")
        return FakeResponse(200, {LEDGER_ENDPOINT: log})


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def service() -> FakeWalletService:
    return FakeWalletService()


@pytest.fixture()
def client(service: FakeWalletService):
    wallet_client = WalletClient("http://wallet.example.com", timeout=5, sync_timeout=60)
    with patch.object(wallet_client.session, "request", side_effect=service.handle) as mocked:
        wallet_client.mocked_request = mocked
        yield wallet_client
    wallet_client.close()


def _register(client: WalletClient, access: str) -> tuple[str, SignatureParam]:
    resp = client.register(None, RegisterWalletBody(type=INDEPENDENT, access=access, secret="pw"))
    param = SignatureParam(
        creator=resp.id, created=1_700_000_000, nonce="nonce", private_key=resp.key_pair.private_key
    )
    return resp.id, param


@pytest.fixture()
def alice(client: WalletClient) -> tuple[str, SignatureParam]:
    """Registered wallet id and its signing material."""
    return _register(client, "alice")


@pytest.fixture()
def bob(client: WalletClient) -> tuple[str, SignatureParam]:
    return _register(client, "bob")
