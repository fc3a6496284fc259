# vault/handler/handler.py

import asyncio
import logging
from typing import Any, Dict, Optional

from ..errors import (
    InvalidParamsError, MethodNotFoundError, RequestTimeoutError,
    SigningError, UnauthenticatedError, UpstreamError
)
from ..keymanager import KeyManager, Record
from ..rpc.client import RPCResponse, UpstreamClient
from ..signer import (
    SOURCE, TARGET, ReserveFundTxSignable, SendTxSignable,
    ServicePaymentSignable, sign
)
from ..tx.types import (
    Coin, ReserveFundTx, SendTx, ServicePaymentTx, TxInput, decode_tx, sum_coins
)
from .args import (
    CreatePaymentArgs, GetAccountArgs, ReserveFundArgs, SendArgs,
    SubmitPaymentArgs
)
from .parse import parse_dataclass

logger = logging.getLogger(__name__)

DEFAULT_FEE = Coin("GammaWei", 1)


class ThetaRPCHandler:
    """
    Gateway between authenticated callers and the upstream node. Every signing
    operation resolves the caller's record first (creating it on first use),
    builds the unsigned transaction, signs it with the caller's key and
    broadcasts it. A call never falls back to a different key: if the record
    cannot be resolved, nothing is signed.
    """

    def __init__(
        self,
        client: UpstreamClient,
        key_manager: KeyManager,
        default_fee: Optional[Coin] = None,
        default_gas: int = 1,
        request_timeout: float = 30.0,
    ):
        self.client = client
        self.key_manager = key_manager
        self.default_fee = default_fee or DEFAULT_FEE
        self.default_gas = default_gas
        self.request_timeout = request_timeout
        self.methods = {
            "theta.GetAccount": (GetAccountArgs, self.get_account),
            "theta.Send": (SendArgs, self.send),
            "theta.ReserveFund": (ReserveFundArgs, self.reserve_fund),
            "theta.CreatePayment": (CreatePaymentArgs, self.create_payment),
            "theta.SubmitPayment": (SubmitPaymentArgs, self.submit_payment),
        }

    async def dispatch(self, method: str, user_id: Optional[str], params: Optional[Dict[str, Any]]):
        try:
            args_type, operation = self.methods[method]
        except KeyError:
            raise MethodNotFoundError(method)

        try:
            args = parse_dataclass(args_type, params or {})
        except ValueError as e:
            raise InvalidParamsError(f"Invalid params for {method}: {e}") from e

        try:
            return await asyncio.wait_for(operation(user_id, args), timeout=self.request_timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"[{method}] user={user_id} timed out after {self.request_timeout}s")
            raise RequestTimeoutError(f"{method} timed out") from e

    async def _resolve(self, user_id: Optional[str]) -> Record:
        if not user_id:
            raise UnauthenticatedError("No user ID on request")
        return await self.key_manager.get_or_create(user_id)

    @staticmethod
    def _result(method: str, response: RPCResponse):
        if response.error is not None:
            logger.warning(f"[{method}] upstream error {response.error.code}: {response.error.message}")
            raise UpstreamError(response.error.code, response.error.message, response.error.data)
        return response.result

    async def _account(self, record: Record):
        response = await self.client.get_account(record.address)
        return self._result("theta.GetAccount", response)

    async def _next_sequence(self, record: Record, sequence: Optional[int]) -> int:
        if sequence is not None:
            return sequence
        account = await self._account(record)
        current = 0
        if isinstance(account, dict) and account.get("sequence") is not None:
            current = int(account["sequence"])
        return current + 1

    async def _broadcast(self, tx_bytes: bytes):
        response = await self.client.broadcast_raw_transaction(tx_bytes.hex())
        return self._result("theta.BroadcastRawTransaction", response)

    async def get_account(self, user_id: Optional[str], args: GetAccountArgs):
        record = await self._resolve(user_id)
        account = await self._account(record)
        return {"user_id": record.user_id, "address": record.address, "account": account}

    async def send(self, user_id: Optional[str], args: SendArgs):
        record = await self._resolve(user_id)
        sequence = await self._next_sequence(record, args.sequence)
        tx = SendTx(
            gas=self.default_gas if args.gas is None else args.gas,
            fee=args.fee or self.default_fee,
            inputs=[TxInput(coins=sum_coins([c for o in args.to for c in o.coins]), sequence=sequence)],
            outputs=args.to,
        )
        signable = SendTxSignable(tx)
        signable.add_signer(record.pub_key)
        tx_bytes = sign(record.pub_key, record.priv_key, signable)
        logger.info(f"[send] user={user_id} address={record.address} sequence={sequence}")
        return await self._broadcast(tx_bytes)

    async def reserve_fund(self, user_id: Optional[str], args: ReserveFundArgs):
        record = await self._resolve(user_id)
        sequence = await self._next_sequence(record, args.sequence)
        tx = ReserveFundTx(
            gas=self.default_gas if args.gas is None else args.gas,
            fee=args.fee or self.default_fee,
            source=TxInput(coins=args.fund, sequence=sequence),
            collateral=args.collateral,
            resource_ids=args.resource_ids,
            duration=args.duration,
        )
        signable = ReserveFundTxSignable(tx)
        signable.add_signer(record.pub_key)
        tx_bytes = sign(record.pub_key, record.priv_key, signable)
        logger.info(f"[reserve_fund] user={user_id} address={record.address} sequence={sequence}")
        result = await self._broadcast(tx_bytes)
        return {"reserve_sequence": sequence, "result": result}

    async def create_payment(self, user_id: Optional[str], args: CreatePaymentArgs):
        """
        Source-signs an off-chain service payment to ``args.to``. The payment is
        handed back to the caller, who gives it to the target to submit.
        """
        record = await self._resolve(user_id)
        tx = ServicePaymentTx(
            source=TxInput(coins=args.amount, sequence=args.payment_sequence),
            target=TxInput(address=args.to),
            payment_sequence=args.payment_sequence,
            reserve_sequence=args.reserve_sequence,
            resource_id=args.resource_id,
        )
        signable = ServicePaymentSignable(tx, SOURCE)
        signable.add_signer(record.pub_key)
        tx_bytes = sign(record.pub_key, record.priv_key, signable)
        logger.info(
            f"[create_payment] user={user_id} to={args.to.hex()} "
            f"reserve_sequence={args.reserve_sequence} payment_sequence={args.payment_sequence}"
        )
        return {"payment": tx_bytes.hex()}

    async def submit_payment(self, user_id: Optional[str], args: SubmitPaymentArgs):
        record = await self._resolve(user_id)
        try:
            tx = decode_tx(args.payment)
        except ValueError as e:
            raise InvalidParamsError(f"Invalid payment: {e}") from e
        if not isinstance(tx, ServicePaymentTx):
            raise InvalidParamsError(f"Expected a service payment, got {type(tx).__name__}")
        if tx.source.signature.empty():
            raise InvalidParamsError("Payment is not signed by its source")
        if tx.target.address != record.pub_key.address():
            raise SigningError(f"Cannot add signature for address {record.address.upper()}")

        sequence = await self._next_sequence(record, args.sequence)
        tx.gas = self.default_gas if args.gas is None else args.gas
        tx.fee = args.fee or self.default_fee
        tx.target.sequence = sequence
        signable = ServicePaymentSignable(tx, TARGET)
        signable.add_signer(record.pub_key)
        tx_bytes = sign(record.pub_key, record.priv_key, signable)
        logger.info(f"[submit_payment] user={user_id} address={record.address} sequence={sequence}")
        return await self._broadcast(tx_bytes)
